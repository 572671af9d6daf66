"""
TripMatch Backend — Event Route Handlers
==========================================

What:  /api/v1/events and everything addressed by an event ID: lifecycle,
       membership transitions, swipes, media, tags and the chat room.
Who:   Called by the mobile/web clients with a bearer token.
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.database import get_db_session
from tripmatch.routes.common import PageParams, page_response
from tripmatch.schemas.chat import ChatRoomResponse
from tripmatch.schemas.common import ErrorResponse, Page
from tripmatch.schemas.event import (
    EventCreate,
    EventResponse,
    EventUpdate,
    JoinRequest,
    MemberResponse,
    SwipeRequest,
    SwipeResponse,
)
from tripmatch.schemas.taxonomy import TagResponse
from tripmatch.security import get_current_user_id
from tripmatch.services.chat_service import chat_service
from tripmatch.services.event_service import event_service
from tripmatch.services.membership_service import membership_service
from tripmatch.services.swipe_service import swipe_service
from tripmatch.services.tag_service import tag_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])

COMMON_ERRORS = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    404: {"description": "Event not found", "model": ErrorResponse},
}
TRANSITION_ERRORS = {
    **COMMON_ERRORS,
    409: {"description": "Transition not allowed in the current state", "model": ErrorResponse},
}


# ── Lifecycle ─────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid event data or unknown tags", "model": ErrorResponse},
        401: COMMON_ERRORS[401],
    },
    summary="Create an event",
    description="The creator becomes the first confirmed member and a chat room is opened.",
)
async def create_event(
    payload: EventCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> EventResponse:
    return await event_service.create_event(db, user_id, payload)


@router.get(
    "",
    response_model=Page[EventResponse],
    responses={401: COMMON_ERRORS[401]},
    summary="List events, newest first",
)
async def list_events(
    response: Response,
    params: PageParams = Depends(),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    event_type: Optional[str] = Query(default=None),
    created_by_me: bool = Query(default=False),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Page[EventResponse]:
    items, total = await event_service.list_events(
        db,
        user_id,
        page=params.page,
        limit=params.limit,
        status=status_filter,
        event_type=event_type,
        created_by_me=created_by_me,
    )
    return page_response(response, items, total, params)


@router.get(
    "/{event_id}",
    response_model=EventResponse,
    responses=COMMON_ERRORS,
    summary="Get one event with the caller's membership and swipe",
)
async def get_event(
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> EventResponse:
    return await event_service.get_event(db, event_id, user_id)


@router.put(
    "/{event_id}",
    response_model=EventResponse,
    responses={
        **TRANSITION_ERRORS,
        400: {"description": "Invalid field values", "model": ErrorResponse},
        403: {"description": "Not the event creator", "model": ErrorResponse},
    },
    summary="Partially update an event (creator only)",
    description="Only fields present in the body change; an explicit null clears a field.",
)
async def update_event(
    event_id: uuid.UUID,
    payload: EventUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> EventResponse:
    return await event_service.update_event(db, event_id, user_id, payload)


@router.delete(
    "/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**COMMON_ERRORS, 403: {"description": "Not the event creator", "model": ErrorResponse}},
    summary="Soft-delete an event (creator only)",
)
async def delete_event(
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await event_service.delete_event(db, event_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{event_id}/complete",
    response_model=EventResponse,
    responses={**TRANSITION_ERRORS, 403: {"description": "Not the event creator", "model": ErrorResponse}},
    summary="Mark an event completed (creator only)",
)
async def complete_event(
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> EventResponse:
    return await event_service.complete_event(db, event_id, user_id)


# ── Membership ────────────────────────────────────────────────────────────

@router.post(
    "/{event_id}/join",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    responses=TRANSITION_ERRORS,
    summary="Join an event as a pending member",
)
async def join_event(
    event_id: uuid.UUID,
    payload: Optional[JoinRequest] = None,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MemberResponse:
    note = payload.note if payload else None
    return await membership_service.join_event(db, event_id, user_id, note=note)


@router.post(
    "/{event_id}/leave",
    response_model=MemberResponse,
    responses=TRANSITION_ERRORS,
    summary="Leave an event",
)
async def leave_event(
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MemberResponse:
    return await membership_service.leave_event(db, event_id, user_id)


@router.post(
    "/{event_id}/confirm",
    response_model=MemberResponse,
    responses=TRANSITION_ERRORS,
    summary="Confirm a pending membership",
    description="Fails with 409 when the event has no free capacity.",
)
async def confirm_membership(
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MemberResponse:
    return await membership_service.confirm_member(db, event_id, user_id)


@router.post(
    "/{event_id}/cancel",
    response_model=MemberResponse,
    responses=TRANSITION_ERRORS,
    summary="Decline a pending membership",
)
async def cancel_membership(
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MemberResponse:
    return await membership_service.cancel_member(db, event_id, user_id)


@router.get(
    "/{event_id}/members",
    response_model=List[MemberResponse],
    responses=COMMON_ERRORS,
    summary="List every membership row of an event",
)
async def list_members(
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[MemberResponse]:
    return await membership_service.list_members(db, event_id, user_id)


@router.post(
    "/{event_id}/swipe",
    response_model=SwipeResponse,
    responses={**COMMON_ERRORS, 400: {"description": "Invalid direction", "model": ErrorResponse}},
    summary="Like or pass on an event",
)
async def swipe_event(
    event_id: uuid.UUID,
    payload: SwipeRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SwipeResponse:
    return await swipe_service.swipe(db, event_id, user_id, payload.direction)


# ── Media ─────────────────────────────────────────────────────────────────

@router.post(
    "/{event_id}/cover",
    response_model=EventResponse,
    responses={
        **COMMON_ERRORS,
        400: {"description": "Invalid image", "model": ErrorResponse},
        403: {"description": "Not the event creator", "model": ErrorResponse},
        503: {"description": "Image storage unavailable", "model": ErrorResponse},
    },
    summary="Upload the cover image (creator only)",
)
async def upload_cover(
    event_id: uuid.UUID,
    file: UploadFile = File(..., description="PNG, JPEG or WEBP image"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> EventResponse:
    content = await file.read()
    return await event_service.upload_cover_image(
        db, event_id, user_id, file.filename or "", content
    )


@router.post(
    "/{event_id}/photos",
    response_model=EventResponse,
    responses={
        **COMMON_ERRORS,
        400: {"description": "Invalid image or too many files", "model": ErrorResponse},
        403: {"description": "Not the event creator", "model": ErrorResponse},
        503: {"description": "Image storage unavailable", "model": ErrorResponse},
    },
    summary="Append gallery photos (creator only)",
)
async def upload_photos(
    event_id: uuid.UUID,
    files: List[UploadFile] = File(..., description="PNG, JPEG or WEBP images"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> EventResponse:
    uploads = [(f.filename or "", await f.read()) for f in files]
    return await event_service.upload_photos(db, event_id, user_id, uploads)


# ── Tags & chat ───────────────────────────────────────────────────────────

@router.get(
    "/{event_id}/tags",
    response_model=List[TagResponse],
    responses=COMMON_ERRORS,
    summary="List an event's tags",
)
async def get_event_tags(
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[TagResponse]:
    return await tag_service.get_event_tags(db, event_id)


@router.post(
    "/{event_id}/tags/{tag_id}",
    response_model=List[TagResponse],
    status_code=status.HTTP_201_CREATED,
    responses={**TRANSITION_ERRORS, 403: {"description": "Not the event creator", "model": ErrorResponse}},
    summary="Add a tag to an event (creator only)",
)
async def add_event_tag(
    event_id: uuid.UUID,
    tag_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[TagResponse]:
    return await tag_service.add_event_tag(db, event_id, tag_id, user_id)


@router.delete(
    "/{event_id}/tags/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**COMMON_ERRORS, 403: {"description": "Not the event creator", "model": ErrorResponse}},
    summary="Remove a tag from an event (creator only)",
)
async def remove_event_tag(
    event_id: uuid.UUID,
    tag_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await tag_service.remove_event_tag(db, event_id, tag_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{event_id}/chat",
    response_model=ChatRoomResponse,
    responses={**COMMON_ERRORS, 403: {"description": "Not a confirmed member", "model": ErrorResponse}},
    summary="Get the event's chat room",
)
async def get_event_chat(
    event_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ChatRoomResponse:
    return await chat_service.get_room_for_event(db, event_id, user_id)
