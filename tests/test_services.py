"""
Direct service-layer tests — repository queries, the ownership rule,
registration and post timestamps, exercised without HTTP.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.exceptions import (
    PostNotFound,
    PostPermissionDenied,
    PostValidationFailed,
    UserAlreadyExists,
)
from postboard.models import Post, User
from postboard.repositories import post_repository
from postboard.schemas import CreatePostRequest, SignupRequest, UpdatePostRequest
from postboard.security import verify_password
from postboard.services import post_authorization, post_service, user_service


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_user(db: AsyncSession, email: str = "svc@example.com") -> User:
    return await user_service.register_user(db, SignupRequest(email=email, password="password123"))


async def _create_post(db: AsyncSession, owner: User, title: str = "Service post", **kwargs) -> Post:
    content = kwargs.pop("content", "Service-level post content")
    return await post_service.create_post(
        db, CreatePostRequest(title=title, content=content), owner
    )


async def _seed_posts(db: AsyncSession, owner: User, count: int) -> list[Post]:
    """Insert posts with strictly increasing created_at, oldest first."""
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    posts = []
    for i in range(count):
        stamp = base + timedelta(minutes=i)
        post = Post(
            title=f"Seeded {i}",
            content=f"Seeded content {i}" + (" with needle" if i % 2 == 0 else ""),
            owner=owner,
            created_at=stamp,
            updated_at=stamp,
        )
        db.add(post)
        posts.append(post)
    await db.flush()
    return posts


# ---------------------------------------------------------------------------
# user_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_user_sets_role_and_hashes_password(db_session: AsyncSession):
    user = await _create_user(db_session)
    assert user.id is not None
    assert "ROLE_USER" in user.get_roles()
    assert user.password != "password123"
    assert verify_password(user, "password123")
    assert not verify_password(user, "password124")


@pytest.mark.asyncio
async def test_register_user_twice_fails(db_session: AsyncSession):
    await _create_user(db_session, "twice@example.com")
    with pytest.raises(UserAlreadyExists, match='User with email "twice@example.com" already exists'):
        await _create_user(db_session, "twice@example.com")


@pytest.mark.asyncio
async def test_authenticate(db_session: AsyncSession):
    user = await _create_user(db_session)
    assert await user_service.authenticate(db_session, "svc@example.com", "password123") is user
    assert await user_service.authenticate(db_session, "svc@example.com", "bad-password") is None
    assert await user_service.authenticate(db_session, "nobody@example.com", "password123") is None


# ---------------------------------------------------------------------------
# post_authorization
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_owner_can_modify_post(db_session: AsyncSession):
    owner = await _create_user(db_session)
    post = await _create_post(db_session, owner)
    post_authorization.ensure_user_can_modify_post(post, owner)


@pytest.mark.asyncio
async def test_other_user_cannot_modify_post(db_session: AsyncSession):
    owner = await _create_user(db_session)
    other = await _create_user(db_session, "other@example.com")
    post = await _create_post(db_session, owner)
    with pytest.raises(PostPermissionDenied, match="You do not have permission to modify this post"):
        post_authorization.ensure_user_can_modify_post(post, other)


@pytest.mark.asyncio
async def test_anonymous_cannot_modify_post(db_session: AsyncSession):
    owner = await _create_user(db_session)
    post = await _create_post(db_session, owner)
    with pytest.raises(PostPermissionDenied):
        post_authorization.ensure_user_can_modify_post(post, None)


def test_ownership_is_identity_not_equality():
    owner = User(id=1, email="same@example.com", password="x", roles=["ROLE_USER"])
    lookalike = User(id=1, email="same@example.com", password="x", roles=["ROLE_USER"])
    post = Post(id=1, title="Title", content="Content here", owner=owner)
    assert post_authorization.can_user_modify_post(post, owner)
    assert not post_authorization.can_user_modify_post(post, lookalike)


# ---------------------------------------------------------------------------
# post_service: lookup / create / update / delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_post_by_id_or_fail(db_session: AsyncSession):
    owner = await _create_user(db_session)
    post = await _create_post(db_session, owner)
    assert await post_service.get_post_by_id_or_fail(db_session, post.id) is post


@pytest.mark.asyncio
async def test_get_post_by_id_or_fail_missing(db_session: AsyncSession):
    with pytest.raises(PostNotFound, match="Post with ID 999999 not found"):
        await post_service.get_post_by_id_or_fail(db_session, 999999)


@pytest.mark.asyncio
async def test_create_post_sets_owner_and_timestamps(db_session: AsyncSession):
    owner = await _create_user(db_session)
    before = datetime.now(timezone.utc)
    post = await _create_post(db_session, owner)
    assert post.id is not None
    assert post.owner is owner
    assert post.owner_id == owner.id
    assert post.created_at == post.updated_at
    assert post.created_at >= before
    assert post.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_create_post_allows_duplicate_titles(db_session: AsyncSession):
    owner = await _create_user(db_session)
    first = await _create_post(db_session, owner, title="Same title")
    second = await _create_post(db_session, owner, title="Same title")
    assert first.id != second.id


@pytest.mark.asyncio
async def test_create_post_rejects_invalid_fields(db_session: AsyncSession):
    owner = await _create_user(db_session)
    data = CreatePostRequest.model_construct(title="ab", content="Long enough content")
    with pytest.raises(PostValidationFailed, match="Title must be at least 3 characters long"):
        await post_service.create_post(db_session, data, owner)


@pytest.mark.asyncio
async def test_update_post_refreshes_updated_at_only(db_session: AsyncSession):
    owner = await _create_user(db_session)
    post = await _create_post(db_session, owner)
    created_at, previous_updated_at = post.created_at, post.updated_at

    updated = await post_service.update_post(
        db_session, post, UpdatePostRequest(title="New title", content="New content body")
    )
    assert updated is post
    assert updated.title == "New title"
    assert updated.content == "New content body"
    assert updated.updated_at >= previous_updated_at
    assert updated.created_at == created_at
    assert updated.owner is owner


@pytest.mark.asyncio
async def test_update_post_enforces_lengths(db_session: AsyncSession):
    owner = await _create_user(db_session)
    post = await _create_post(db_session, owner)
    with pytest.raises(PostValidationFailed, match="Content must be at least 10 characters long"):
        await post_service.update_post(
            db_session, post, UpdatePostRequest(title="Valid title", content="short")
        )
    assert post.content == "Service-level post content"


@pytest.mark.asyncio
async def test_delete_post(db_session: AsyncSession):
    owner = await _create_user(db_session)
    post = await _create_post(db_session, owner)
    post_id = post.id
    await post_service.delete_post(db_session, post)
    assert await post_repository.find_by_id(db_session, post_id) is None


# ---------------------------------------------------------------------------
# post_service: pagination
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_paginated_posts_empty(db_session: AsyncSession):
    result = await post_service.get_paginated_posts(db_session, 1, 10)
    assert result.current_page == 1
    assert result.per_page == 10
    assert result.total == 0
    assert result.posts == []


@pytest.mark.asyncio
@pytest.mark.parametrize("page,limit", [(1, 1), (1, 3), (2, 3), (3, 3), (4, 3), (1, 100)])
async def test_get_paginated_posts_window(db_session: AsyncSession, page: int, limit: int):
    owner = await _create_user(db_session)
    posts = await _seed_posts(db_session, owner, 8)
    newest_first = [p.id for p in reversed(posts)]

    result = await post_service.get_paginated_posts(db_session, page, limit)
    offset = (page - 1) * limit
    assert result.current_page == page
    assert result.per_page == limit
    assert result.total == 8
    assert len(result.posts) <= limit
    assert [p["id"] for p in result.posts] == newest_first[offset:offset + limit]


@pytest.mark.asyncio
async def test_get_paginated_posts_projection(db_session: AsyncSession):
    owner = await _create_user(db_session)
    post = await _create_post(db_session, owner)
    result = await post_service.get_paginated_posts(db_session, 1, 10)
    assert result.posts == [post_service.post_to_dict(post)]
    assert set(result.posts[0]) == {"id", "title", "content", "owner", "createdAt", "updatedAt"}


# ---------------------------------------------------------------------------
# post_repository
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_count_all_matches_filtered_set(db_session: AsyncSession):
    owner = await _create_user(db_session)
    await _seed_posts(db_session, owner, 7)

    assert await post_repository.count_all(db_session) == 7
    assert await post_repository.count_all(db_session, "") == 7
    assert await post_repository.count_all(db_session, "needle") == 4
    matches = await post_repository.find_paginated(db_session, 0, 100, "needle")
    assert len(matches) == 4


@pytest.mark.asyncio
async def test_find_paginated_search_is_ordered_window(db_session: AsyncSession):
    owner = await _create_user(db_session)
    await _seed_posts(db_session, owner, 7)

    everything = await post_repository.find_paginated(db_session, 0, 100, "needle")
    window = await post_repository.find_paginated(db_session, 1, 2, "needle")
    assert [p.id for p in window] == [p.id for p in everything[1:3]]
    stamps = [p.created_at for p in everything]
    assert stamps == sorted(stamps, reverse=True)


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(db_session: AsyncSession):
    owner = await _create_user(db_session)
    await _create_post(db_session, owner, title="100% coverage")
    await _create_post(db_session, owner, title="Plain title")
    assert await post_repository.count_all(db_session, "%") == 1


@pytest.mark.asyncio
async def test_find_by_owner(db_session: AsyncSession):
    owner = await _create_user(db_session)
    other = await _create_user(db_session, "other@example.com")
    mine = await _seed_posts(db_session, owner, 3)
    await _create_post(db_session, other)

    found = await post_repository.find_by_owner(db_session, owner)
    assert [p.id for p in found] == [p.id for p in reversed(mine)]
    assert all(p.owner is owner for p in found)


@pytest.mark.asyncio
async def test_owner_relation_is_never_lazy_loaded(db_session: AsyncSession):
    owner = await _create_user(db_session)
    post_id = (await _create_post(db_session, owner)).id
    await db_session.commit()
    db_session.expunge_all()

    bare = (await db_session.execute(select(Post).where(Post.id == post_id))).scalar_one()
    with pytest.raises(InvalidRequestError):
        bare.owner
    db_session.expunge_all()

    loaded = await post_repository.find_by_id(db_session, post_id)
    assert loaded.owner.id == owner.id
