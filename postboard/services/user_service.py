"""
User service — signup and credential checks for the User aggregate.

Registration is check-then-create: the email lookup gives a friendly
error for the common case, and the unique constraint on ``users.email``
catches the concurrent duplicate that slips past the lookup.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.exceptions import UserAlreadyExists
from postboard.models import ROLE_USER, User
from postboard.schemas import SignupRequest
from postboard.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def _already_exists(email: str) -> UserAlreadyExists:
    return UserAlreadyExists(f'User with email "{email}" already exists')


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, data: SignupRequest) -> User:
    """
    Create a user with the default role and a hashed password.

    Raises UserAlreadyExists when the email is taken, whether found by
    the lookup or rejected by the unique constraint on flush.
    """
    if await get_user_by_email(db, data.email) is not None:
        raise _already_exists(data.email)

    user = User(email=data.email, roles=[ROLE_USER])
    user.password = hash_password(user, data.password)

    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        raise _already_exists(data.email) from exc

    logger.info("Registered user %s (%s)", user.id, user.email)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the user matching *email* and *password*, or None."""
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(user, password):
        logger.warning("Failed login attempt for %s", email)
        return None
    return user
