"""Helpers shared by the list endpoints."""

from typing import List, TypeVar

from fastapi import Query, Response

from tripmatch.config import settings
from tripmatch.schemas.common import Page

T = TypeVar("T")


class PageParams:
    """`page` and `limit` query parameters, validated by FastAPI."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="1-based page number"),
        limit: int = Query(
            default=settings.default_page_size,
            ge=1,
            le=settings.max_page_size,
            description="Items per page",
        ),
    ):
        self.page = page
        self.limit = limit


def page_response(
    response: Response, items: List[T], total: int, params: PageParams
) -> Page[T]:
    """Wrap a page of items and set X-Total-Count."""
    response.headers["X-Total-Count"] = str(total)
    return Page(items=items, total=total, page=params.page, limit=params.limit)
