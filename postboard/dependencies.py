import re

from fastapi import Query

from postboard.config import settings

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _as_int(value: str | None, default: int) -> int:
    """
    Parse a query value leniently: missing → *default*, otherwise the
    leading integer (``"5abc"`` → 5), and 0 when there is none.
    """
    if value is None:
        return default
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


class PaginationParams:
    """
    Reusable FastAPI dependency that parses the post-list query parameters.

    Values are never rejected; they are clamped instead.

    Attributes
    ----------
    page:
        1-based page number, at least 1.
    limit:
        Posts per page, clamped to ``1..settings.MAX_PAGE_SIZE``.
    search:
        Substring filter on title/content, or None when empty.
    """

    def __init__(
        self,
        page: str | None = Query(None, description="Page number (1-based)."),
        limit: str | None = Query(
            None,
            description=f"Posts per page (default {settings.DEFAULT_PAGE_SIZE}, max {settings.MAX_PAGE_SIZE}).",
        ),
        search: str | None = Query(None, description="Substring to match in title or content."),
    ) -> None:
        self.page = max(1, _as_int(page, 1))
        self.limit = min(settings.MAX_PAGE_SIZE, max(1, _as_int(limit, settings.DEFAULT_PAGE_SIZE)))
        self.search = search or None
