"""
TripMatch Backend — Chat Service
==================================

What:  One chat room per event, readable and writable by confirmed members.
How:   Rooms are created with the event (create_room) or lazily on first
       confirm (ensure_room). Membership transitions post system messages
       (join/leave/confirm) through post_system_message().

Access rule:
    Only members whose status is `confirmed` may see a room or its
    messages. Pending, declined and left members get Forbidden.
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.exceptions import ForbiddenError, NotFoundError, ValidationError
from tripmatch.models.chat import ChatMessage, ChatRoom
from tripmatch.models.enums import USER_MESSAGE_TYPES, MemberStatus, MessageType
from tripmatch.models.event import Event, EventMember
from tripmatch.schemas.chat import ChatMessageResponse, ChatRoomResponse
from tripmatch.services.db_errors import wrap_db_errors
from tripmatch.services.event_queries import get_active_event, get_membership, not_deleted
from tripmatch.services.pagination import fetch_page

logger = logging.getLogger(__name__)

USER_TYPE_VALUES = {t.value for t in USER_MESSAGE_TYPES}


class ChatService:
    """Rooms, messages and membership-driven system messages."""

    async def create_room(self, db: AsyncSession, event_id: uuid.UUID) -> ChatRoom:
        room = ChatRoom(event_id=event_id)
        db.add(room)
        await db.flush()
        logger.info("Chat room %s created for event %s", room.id, event_id)
        return room

    async def ensure_room(self, db: AsyncSession, event_id: uuid.UUID) -> ChatRoom:
        """Return the event's room, creating it if it is missing."""
        result = await db.execute(select(ChatRoom).where(ChatRoom.event_id == event_id))
        room = result.scalar_one_or_none()
        if room is None:
            room = await self.create_room(db, event_id)
        return room

    async def _require_confirmed(
        self, db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
    ) -> None:
        member = await get_membership(db, event_id, user_id)
        if member is None or member.status != MemberStatus.CONFIRMED.value:
            raise ForbiddenError(
                message="Only confirmed members can access this chat",
                context={"event_id": str(event_id)},
            )

    async def _get_room(self, db: AsyncSession, room_id: uuid.UUID) -> ChatRoom:
        result = await db.execute(
            select(ChatRoom)
            .join(Event, Event.id == ChatRoom.event_id)
            .where(ChatRoom.id == room_id, not_deleted())
        )
        room = result.scalar_one_or_none()
        if room is None:
            raise NotFoundError(resource="chat room", resource_id=str(room_id))
        return room

    @wrap_db_errors("list chat rooms")
    async def get_rooms(self, db: AsyncSession, user_id: uuid.UUID) -> List[ChatRoomResponse]:
        """Rooms of live events where the user is a confirmed member."""
        result = await db.execute(
            select(ChatRoom, Event.title)
            .join(Event, Event.id == ChatRoom.event_id)
            .join(EventMember, EventMember.event_id == Event.id)
            .where(
                not_deleted(),
                EventMember.user_id == user_id,
                EventMember.status == MemberStatus.CONFIRMED.value,
            )
            .order_by(ChatRoom.created_at.desc())
        )
        return [
            ChatRoomResponse(
                id=room.id, event_id=room.event_id, event_title=title, created_at=room.created_at
            )
            for room, title in result.all()
        ]

    @wrap_db_errors("load chat room")
    async def get_room_for_event(
        self, db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
    ) -> ChatRoomResponse:
        event = await get_active_event(db, event_id)
        await self._require_confirmed(db, event_id, user_id)
        room = await self.ensure_room(db, event_id)
        return ChatRoomResponse(
            id=room.id, event_id=event.id, event_title=event.title, created_at=room.created_at
        )

    @wrap_db_errors("load chat messages")
    async def get_messages(
        self,
        db: AsyncSession,
        room_id: uuid.UUID,
        user_id: uuid.UUID,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[ChatMessageResponse], int]:
        room = await self._get_room(db, room_id)
        await self._require_confirmed(db, room.event_id, user_id)
        query = (
            select(ChatMessage)
            .where(ChatMessage.room_id == room.id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
        )
        messages, total = await fetch_page(db, query, page, limit)
        return [ChatMessageResponse.model_validate(m) for m in messages], total

    @wrap_db_errors("send chat message")
    async def send_message(
        self,
        db: AsyncSession,
        room_id: uuid.UUID,
        user_id: uuid.UUID,
        body: Optional[str],
        message_type: str = MessageType.TEXT.value,
        media_url: Optional[str] = None,
    ) -> ChatMessageResponse:
        if message_type not in USER_TYPE_VALUES:
            raise ValidationError(
                message=f"Message type '{message_type}' cannot be sent by users",
                field="message_type",
                context={"allowed": sorted(USER_TYPE_VALUES)},
            )
        if message_type == MessageType.TEXT.value and not (body and body.strip()):
            raise ValidationError(message="Text messages need a body", field="body")
        if message_type != MessageType.TEXT.value and not media_url:
            raise ValidationError(
                message=f"{message_type} messages need a media_url", field="media_url"
            )

        room = await self._get_room(db, room_id)
        await self._require_confirmed(db, room.event_id, user_id)

        message = ChatMessage(
            room_id=room.id,
            sender_id=user_id,
            message_type=message_type,
            body=body,
            media_url=media_url,
        )
        db.add(message)
        await db.flush()
        return ChatMessageResponse.model_validate(message)

    async def post_system_message(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        sender_id: uuid.UUID,
        message_type: MessageType,
        body: str,
    ) -> ChatMessage:
        room = await self.ensure_room(db, event_id)
        message = ChatMessage(
            room_id=room.id,
            sender_id=sender_id,
            message_type=message_type.value,
            body=body,
        )
        db.add(message)
        await db.flush()
        return message


chat_service = ChatService()
