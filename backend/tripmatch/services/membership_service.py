"""
TripMatch Backend — Membership State Machine
==============================================

What:  Join / leave / confirm / cancel transitions for event members.
Who:   Called by the membership routes under /api/v1/events/{id}/...

State Machine (one row per (event, user), reused across episodes):

    (none) ──join──▶ pending ──confirm──▶ confirmed
                        │                    │
                        └──cancel──▶ declined│
                        │                    │
                        └──────leave─────────┴──▶ left ──join──▶ pending

    - join on pending/confirmed/declined → Conflict "already a member"
    - join on left → fresh pending episode (joined_at reset, confirmed_at
      and left_at cleared)
    - the creator's row starts confirmed and cannot leave

Capacity:
    confirm claims its slot with claim_confirmed_slot(), a single conditional
    UPDATE on events.confirmed_count, and only then flips the member row.
    The UPDATE is the first write of the transaction, so on SQLite the
    writer lock is taken at that statement and competing confirms queue
    behind it.

Row transitions:
    leave, confirm and cancel move the member row with a conditional UPDATE
    on the status that was read (pending → confirmed only WHERE status is
    still pending). A request that loses that race gets Conflict, and a
    confirm that loses it hands its slot back first.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from tripmatch.database import utcnow
from tripmatch.exceptions import ConflictError, NotFoundError
from tripmatch.models.enums import EventStatus, MemberRole, MemberStatus, MessageType
from tripmatch.models.event import EventMember
from tripmatch.schemas.event import MemberResponse
from tripmatch.services.chat_service import ChatService, chat_service
from tripmatch.services.db_errors import wrap_db_errors
from tripmatch.services.event_queries import (
    claim_confirmed_slot,
    get_active_event,
    get_membership,
    get_visible_event,
    release_confirmed_slot,
)

logger = logging.getLogger(__name__)


def _require_published(event) -> None:
    if event.status != EventStatus.PUBLISHED.value:
        raise ConflictError(
            message=f"Event is {event.status} and not open for members",
            context={"event_id": str(event.id), "status": event.status},
        )


def _require_active_member(
    member: Optional[EventMember], event_id: uuid.UUID, message: str
) -> EventMember:
    if member is None or member.status == MemberStatus.LEFT.value:
        raise NotFoundError(
            resource="member",
            message=message,
            context={"event_id": str(event_id)},
        )
    return member


async def _transition(db: AsyncSession, member: EventMember, to_status: str, **values) -> None:
    """
    Move the row from the status we read to `to_status` in one conditional UPDATE.

    Raises:
        ConflictError: a concurrent request changed the row first
    """
    result = await db.execute(
        update(EventMember)
        .where(
            EventMember.event_id == member.event_id,
            EventMember.user_id == member.user_id,
            EventMember.status == member.status,
        )
        .values(status=to_status, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError(
            message="Membership was changed by another request",
            context={"event_id": str(member.event_id), "expected_status": member.status},
        )
    # Mirror the row without marking the instance dirty
    set_committed_value(member, "status", to_status)
    for name, value in values.items():
        set_committed_value(member, name, value)


class MembershipService:

    def __init__(self, chat: ChatService):
        self.chat = chat

    @wrap_db_errors("join event")
    async def join_event(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        user_id: uuid.UUID,
        note: Optional[str] = None,
    ) -> MemberResponse:
        """Start a pending episode. Never auto-confirms."""
        event = await get_active_event(db, event_id)
        _require_published(event)

        now = utcnow()
        member = await get_membership(db, event_id, user_id)
        if member is None:
            member = EventMember(
                event_id=event_id,
                user_id=user_id,
                role=MemberRole.MEMBER.value,
                status=MemberStatus.PENDING.value,
                joined_at=now,
                note=note,
            )
            db.add(member)
        elif member.status == MemberStatus.LEFT.value:
            member.status = MemberStatus.PENDING.value
            member.joined_at = now
            member.confirmed_at = None
            member.left_at = None
            member.note = note
        else:
            raise ConflictError(
                message="User is already a member of this event",
                context={"event_id": str(event_id), "status": member.status},
            )

        try:
            await db.flush()
        except IntegrityError as e:
            # Concurrent join for the same (event, user) won the insert
            raise ConflictError(
                message="User is already a member of this event",
                context={"event_id": str(event_id)},
            ) from e

        await self.chat.post_system_message(
            db, event_id, user_id, MessageType.JOIN, "joined the event"
        )
        logger.info("User %s joined event %s (pending)", user_id, event_id)
        return MemberResponse.model_validate(member)

    @wrap_db_errors("leave event")
    async def leave_event(
        self, db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
    ) -> MemberResponse:
        await get_active_event(db, event_id)
        member = _require_active_member(
            await get_membership(db, event_id, user_id),
            event_id,
            "User is not a member of this event",
        )
        if member.role == MemberRole.CREATOR.value:
            raise ConflictError(
                message="The creator cannot leave their own event",
                context={"event_id": str(event_id)},
            )

        was_confirmed = member.status == MemberStatus.CONFIRMED.value
        await _transition(db, member, MemberStatus.LEFT.value, left_at=utcnow())
        if was_confirmed:
            await release_confirmed_slot(db, event_id)

        await self.chat.post_system_message(
            db, event_id, user_id, MessageType.LEAVE, "left the event"
        )
        logger.info("User %s left event %s", user_id, event_id)
        return MemberResponse.model_validate(member)

    @wrap_db_errors("confirm membership")
    async def confirm_member(
        self, db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
    ) -> MemberResponse:
        """
        pending → confirmed, if a capacity slot is free.

        Raises:
            NotFoundError: no live membership row
            ConflictError: already confirmed/declined, or the event is full
        """
        event = await get_active_event(db, event_id)
        _require_published(event)
        member = _require_active_member(
            await get_membership(db, event_id, user_id), event_id, "Member not found"
        )
        if member.status != MemberStatus.PENDING.value:
            raise ConflictError(
                message=f"Membership is already {member.status}",
                context={"event_id": str(event_id), "status": member.status},
            )

        if not await claim_confirmed_slot(db, event_id):
            logger.info("Confirm rejected for %s: event %s is full", user_id, event_id)
            raise ConflictError(
                message="Event is full",
                context={"event_id": str(event_id), "capacity": event.capacity},
            )

        try:
            await _transition(db, member, MemberStatus.CONFIRMED.value, confirmed_at=utcnow())
        except ConflictError:
            await release_confirmed_slot(db, event_id)
            raise

        await self.chat.ensure_room(db, event_id)
        await self.chat.post_system_message(
            db, event_id, user_id, MessageType.CONFIRM, "confirmed attendance"
        )
        logger.info("Member %s confirmed for event %s", user_id, event_id)
        return MemberResponse.model_validate(member)

    @wrap_db_errors("cancel membership")
    async def cancel_member(
        self, db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
    ) -> MemberResponse:
        """pending → declined. Never touches capacity."""
        await get_active_event(db, event_id)
        member = _require_active_member(
            await get_membership(db, event_id, user_id), event_id, "Member not found"
        )
        if member.status != MemberStatus.PENDING.value:
            raise ConflictError(
                message=f"Only pending memberships can be cancelled (status is {member.status})",
                context={"event_id": str(event_id), "status": member.status},
            )
        await _transition(db, member, MemberStatus.DECLINED.value)
        logger.info("Member %s declined event %s", user_id, event_id)
        return MemberResponse.model_validate(member)

    @wrap_db_errors("list members")
    async def list_members(
        self, db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
    ) -> List[MemberResponse]:
        """Every membership row, in join order. Other users' drafts read as NotFound."""
        await get_visible_event(db, event_id, user_id)
        result = await db.execute(
            select(EventMember)
            .where(EventMember.event_id == event_id)
            .order_by(EventMember.joined_at, EventMember.user_id)
            .execution_options(populate_existing=True)
        )
        return [MemberResponse.model_validate(m) for m in result.scalars().all()]


membership_service = MembershipService(chat=chat_service)
