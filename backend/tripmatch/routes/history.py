"""Participation history and per-user stats."""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.database import get_db_session
from tripmatch.routes.common import PageParams, page_response
from tripmatch.schemas.chat import HistoryResponse, UserStatsResponse
from tripmatch.schemas.common import ErrorResponse, Page
from tripmatch.security import get_current_user_id
from tripmatch.services.history_service import history_service

router = APIRouter(prefix="/history", tags=["History"])


@router.get("", response_model=Page[HistoryResponse], summary="The caller's history")
async def list_history(
    response: Response,
    params: PageParams = Depends(),
    completed: Optional[bool] = Query(default=None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Page[HistoryResponse]:
    items, total = await history_service.list_user_history(
        db, user_id, page=params.page, limit=params.limit, completed=completed
    )
    return page_response(response, items, total, params)


@router.get("/stats", response_model=UserStatsResponse, summary="Participation counters")
async def get_stats(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserStatsResponse:
    return await history_service.get_user_stats(db, user_id)


@router.post(
    "/events/{event_id}/complete",
    response_model=HistoryResponse,
    responses={
        403: {"description": "Not a confirmed member", "model": ErrorResponse},
        404: {"description": "Event not found", "model": ErrorResponse},
    },
    summary="Mark the caller's participation complete",
)
async def mark_complete(
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> HistoryResponse:
    return await history_service.mark_event_complete(db, event_id, user_id)


@router.get(
    "/events/{event_id}",
    response_model=List[HistoryResponse],
    responses={404: {"description": "Event not found", "model": ErrorResponse}},
    summary="History rows of one event",
)
async def get_event_history(
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[HistoryResponse]:
    return await history_service.get_event_history(db, event_id)
