"""
Post repository: read queries for the Post aggregate.

The owner relationship is declared ``lazy="raise"`` on the model, so every query
here loads it explicitly with ``joinedload``.  Listing queries order by
``created_at`` descending with ``id`` as a tie-breaker so pages stay stable.
"""
from sqlalchemy import desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from postboard.models import Post, User

_NEWEST_FIRST = (desc(Post.created_at), desc(Post.id))


def _search_filter(search: str | None):
    """Substring match on title or content; None when there is nothing to filter."""
    if not search:
        return None
    return or_(
        Post.title.contains(search, autoescape=True),
        Post.content.contains(search, autoescape=True),
    )


async def find_by_id(db: AsyncSession, post_id: int) -> Post | None:
    q = select(Post).where(Post.id == post_id).options(joinedload(Post.owner))
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


async def find_by_owner(db: AsyncSession, owner: User) -> list[Post]:
    q = (
        select(Post)
        .where(Post.owner_id == owner.id)
        .options(joinedload(Post.owner))
        .order_by(*_NEWEST_FIRST)
    )
    result = await db.execute(q)
    return list(result.unique().scalars().all())


async def find_paginated(
    db: AsyncSession,
    offset: int,
    limit: int,
    search: str | None = None,
) -> list[Post]:
    """Return one window of posts, newest first, after applying *search*."""
    q = select(Post).options(joinedload(Post.owner))
    criterion = _search_filter(search)
    if criterion is not None:
        q = q.where(criterion)
    q = q.order_by(*_NEWEST_FIRST).offset(offset).limit(limit)

    result = await db.execute(q)
    return list(result.unique().scalars().all())


async def count_all(db: AsyncSession, search: str | None = None) -> int:
    """Count posts matching *search*, ignoring any pagination window."""
    q = select(func.count(Post.id))
    criterion = _search_filter(search)
    if criterion is not None:
        q = q.where(criterion)
    return (await db.execute(q)).scalar_one()
