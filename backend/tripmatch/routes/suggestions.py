"""GET /api/v1/suggestions: ranked events the caller has not acted on."""

import uuid

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.database import get_db_session
from tripmatch.routes.common import PageParams, page_response
from tripmatch.schemas.common import ErrorResponse, Page
from tripmatch.schemas.event import SuggestionItem
from tripmatch.security import get_current_user_id
from tripmatch.services.suggestion_service import suggestion_service

router = APIRouter(tags=["Suggestions"])


@router.get(
    "/suggestions",
    response_model=Page[SuggestionItem],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Suggested events ranked by match score",
    description=(
        "Published, upcoming events the caller has neither swiped nor joined, "
        "ordered by match score, then recency, then ID."
    ),
)
async def get_suggestions(
    response: Response,
    params: PageParams = Depends(),
    exclude_own: bool = Query(default=True, description="Hide events the caller created"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Page[SuggestionItem]:
    items, total = await suggestion_service.get_suggestions(
        db, user_id, page=params.page, limit=params.limit, exclude_own=exclude_own
    )
    return page_response(response, items, total, params)
