"""Unauthenticated read access to published events."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.database import get_db_session
from tripmatch.routes.common import PageParams, page_response
from tripmatch.schemas.common import ErrorResponse, Page
from tripmatch.schemas.event import EventResponse
from tripmatch.services.event_service import event_service

router = APIRouter(prefix="/public/events", tags=["Public"])


@router.get(
    "",
    response_model=Page[EventResponse],
    summary="List published events",
)
async def list_public_events(
    response: Response,
    params: PageParams = Depends(),
    event_type: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> Page[EventResponse]:
    items, total = await event_service.list_public_events(
        db, page=params.page, limit=params.limit, event_type=event_type
    )
    response.headers["Cache-Control"] = "public, max-age=30"
    return page_response(response, items, total, params)


@router.get(
    "/{event_id}",
    response_model=EventResponse,
    responses={404: {"description": "Event not found or not published", "model": ErrorResponse}},
    summary="Get a published event",
)
async def get_public_event(
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> EventResponse:
    return await event_service.get_public_event(db, event_id)
