"""
Post service — business logic for the Post aggregate.

Design notes
------------
- The paginated list goes through the cache-aside pattern (Redis, then
  the database).  Keys encode page, limit and search; every write purges
  all list pages since a new or removed post shifts every window.  The
  purge is registered with ``on_commit`` so it runs only once the write
  is durable; a concurrent reader cannot re-cache the old rows.
- Single posts are never cached: the detail and mutation paths need a
  live ORM instance for the ownership check.
- This module owns timestamping.  ``created_at`` and ``updated_at`` are
  captured once per operation from a UTC clock before the flush.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.cache import cache
from postboard.config import settings
from postboard.database import on_commit
from postboard.exceptions import PostCreationFailed, PostNotFound, PostValidationFailed
from postboard.models import Post, User
from postboard.repositories import post_repository
from postboard.schemas import (
    CreatePostRequest,
    PaginatedPostsResponse,
    UpdatePostRequest,
    content_errors,
    title_errors,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="microseconds")


def _ensure_valid(title: str, content: str) -> None:
    errors = title_errors(title) + content_errors(content)
    if errors:
        raise PostValidationFailed(errors[0])


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------

def post_to_dict(post: Post) -> dict:
    """Serialise a Post to the projection used by every post response."""
    owner = post.owner
    return {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "owner": {"id": owner.id, "email": owner.email} if owner is not None else None,
        "createdAt": _isoformat(post.created_at),
        "updatedAt": _isoformat(post.updated_at),
    }


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_paginated_posts(
    db: AsyncSession,
    page: int,
    limit: int,
    search: str | None = None,
) -> PaginatedPostsResponse:
    """
    Return one page of posts, newest first, plus the total match count.

    *page* is 1-based; callers clamp ``page >= 1`` and
    ``1 <= limit <= MAX_PAGE_SIZE`` before calling.
    """
    cache_key = cache.post_list_key(page, limit, search)
    cached = await cache.get(cache_key)
    if cached:
        return PaginatedPostsResponse(**cached)

    offset = (page - 1) * limit
    posts = await post_repository.find_paginated(db, offset, limit, search)
    total = await post_repository.count_all(db, search)

    response = PaginatedPostsResponse(
        current_page=page,
        per_page=limit,
        total=total,
        posts=[post_to_dict(p) for p in posts],
    )
    await cache.set(cache_key, response.model_dump(), ttl=settings.CACHE_TTL_LIST)
    return response


async def get_post_by_id_or_fail(db: AsyncSession, post_id: int) -> Post:
    post = await post_repository.find_by_id(db, post_id)
    if post is None:
        raise PostNotFound(f"Post with ID {post_id} not found")
    return post


async def create_post(db: AsyncSession, data: CreatePostRequest, owner: User) -> Post:
    """
    Create a post owned by *owner*.

    Both timestamps share one clock reading.  A constraint failure on
    flush rolls the session back and surfaces as PostCreationFailed.
    """
    _ensure_valid(data.title, data.content)

    now = _utcnow()
    post = Post(
        title=data.title,
        content=data.content,
        owner=owner,
        created_at=now,
        updated_at=now,
    )
    db.add(post)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        raise PostCreationFailed("Post could not be created") from exc

    logger.info("Created post %s for user %s", post.id, owner.id)
    on_commit(db, cache.invalidate_posts)
    return post


async def update_post(db: AsyncSession, post: Post, data: UpdatePostRequest) -> Post:
    """Overwrite title and content, refresh ``updated_at`` and return *post*."""
    _ensure_valid(data.title, data.content)

    post.title = data.title
    post.content = data.content
    post.updated_at = _utcnow()
    await db.flush()

    on_commit(db, cache.invalidate_posts)
    return post


async def delete_post(db: AsyncSession, post: Post) -> None:
    post_id = post.id
    await db.delete(post)
    await db.flush()

    logger.info("Deleted post %s", post_id)
    on_commit(db, cache.invalidate_posts)
