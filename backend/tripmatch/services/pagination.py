"""Offset pagination over ORM select statements."""

from typing import Any, List, Tuple

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


def page_bounds(page: int, limit: int) -> Tuple[int, int]:
    """Return (offset, limit) for a 1-based page number."""
    page = max(page, 1)
    limit = max(limit, 1)
    return (page - 1) * limit, limit


async def fetch_page(
    db: AsyncSession, query: Select, page: int, limit: int
) -> Tuple[List[Any], int]:
    """
    Run `query` for one page and count the full result set.

    The count runs as a separate query over the same filters (ordering
    stripped), matching what the page would contain without LIMIT/OFFSET.
    """
    offset, limit = page_bounds(page, limit)
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()
    result = await db.execute(query.offset(offset).limit(limit))
    return list(result.scalars().unique().all()), total
