"""Reset the schema and seed demo users and posts."""
import asyncio
import argparse
import random
import time
from datetime import datetime, timedelta, timezone

from postboard.database import engine, async_session, Base
from postboard.models import ROLE_USER, Post, User
from postboard.security import hash_password

TOPICS = ["python", "fastapi", "postgresql", "redis", "docker", "testing",
          "performance", "security", "asyncio", "sqlalchemy"]

DEMO_PASSWORD = "password123"


async def seed(small: bool = False):
    num_users = 5 if small else 25
    num_posts = 50 if small else 2000

    print(f"Seeding: {num_users} users, {num_posts} posts")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        users = []
        for i in range(num_users):
            user = User(email=f"user_{i:04d}@example.com", roles=[ROLE_USER])
            user.password = hash_password(user, DEMO_PASSWORD)
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users (password: {DEMO_PASSWORD})")

        batch_size = 500
        for batch_start in range(0, num_posts, batch_size):
            batch_end = min(batch_start + batch_size, num_posts)
            for i in range(batch_start, batch_end):
                created = datetime.now(timezone.utc) - timedelta(minutes=random.randint(0, 525600))
                topic = random.choice(TOPICS)
                session.add(Post(
                    title=f"Post {i}: notes on {topic}",
                    content=f"This is post {i}, a few thoughts about {topic} in production. " * 5,
                    owner=random.choice(users),
                    created_at=created,
                    updated_at=created,
                ))
            await session.flush()
            print(f"  Batch {batch_start}-{batch_end}: posts created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the postboard database")
    parser.add_argument("--small", action="store_true", help="Use a small dataset (50 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
