"""Chat rooms and messages. Only confirmed members get past the service checks."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.database import get_db_session
from tripmatch.routes.common import page_response
from tripmatch.schemas.chat import ChatMessageResponse, ChatRoomResponse, SendMessageRequest
from tripmatch.schemas.common import ErrorResponse, Page
from tripmatch.security import get_current_user_id
from tripmatch.services.chat_service import chat_service

router = APIRouter(prefix="/chat", tags=["Chat"])

ROOM_ERRORS = {
    403: {"description": "Not a confirmed member", "model": ErrorResponse},
    404: {"description": "Room not found", "model": ErrorResponse},
}


class MessagePageParams:
    """Chat pages default to 50 messages."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=50, ge=1, le=100),
    ):
        self.page = page
        self.limit = limit


@router.get("/rooms", response_model=List[ChatRoomResponse], summary="The caller's chat rooms")
async def list_rooms(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[ChatRoomResponse]:
    return await chat_service.get_rooms(db, user_id)


@router.get(
    "/rooms/{room_id}/messages",
    response_model=Page[ChatMessageResponse],
    responses=ROOM_ERRORS,
    summary="Messages in a room, oldest first",
)
async def list_messages(
    room_id: uuid.UUID,
    response: Response,
    params: MessagePageParams = Depends(),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Page[ChatMessageResponse]:
    items, total = await chat_service.get_messages(
        db, room_id, user_id, page=params.page, limit=params.limit
    )
    return page_response(response, items, total, params)


@router.post(
    "/rooms/{room_id}/messages",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**ROOM_ERRORS, 400: {"description": "Invalid message", "model": ErrorResponse}},
    summary="Send a message",
)
async def send_message(
    room_id: uuid.UUID,
    payload: SendMessageRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ChatMessageResponse:
    return await chat_service.send_message(
        db,
        room_id,
        user_id,
        body=payload.body,
        message_type=payload.message_type,
        media_url=payload.media_url,
    )
