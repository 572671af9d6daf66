"""
Participation history.

When a creator completes an event, every confirmed member gets a history
row with completed = false. Members then mark their own participation
complete; that call also creates the row if completion-time provisioning
missed it.
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.database import utcnow
from tripmatch.exceptions import ForbiddenError
from tripmatch.models.enums import MemberStatus
from tripmatch.models.event import Event, EventMember
from tripmatch.models.history import UserEventHistory
from tripmatch.schemas.chat import HistoryResponse, UserStatsResponse
from tripmatch.services.db_errors import wrap_db_errors
from tripmatch.services.event_queries import get_active_event, get_membership, not_deleted
from tripmatch.services.pagination import page_bounds

logger = logging.getLogger(__name__)


def _to_response(row: UserEventHistory, event: Event) -> HistoryResponse:
    return HistoryResponse(
        id=row.id,
        event_id=row.event_id,
        user_id=row.user_id,
        event_title=event.title,
        event_type=event.event_type,
        start_at=event.start_at,
        completed=row.completed,
        completed_at=row.completed_at,
        created_at=row.created_at,
    )


class HistoryService:

    async def create_eligible_records(self, db: AsyncSession, event_id: uuid.UUID) -> int:
        """Add an uncompleted row for each confirmed member lacking one."""
        confirmed = await db.execute(
            select(EventMember.user_id).where(
                EventMember.event_id == event_id,
                EventMember.status == MemberStatus.CONFIRMED.value,
            )
        )
        existing = await db.execute(
            select(UserEventHistory.user_id).where(UserEventHistory.event_id == event_id)
        )
        have = set(existing.scalars().all())
        new_users = [u for u in confirmed.scalars().all() if u not in have]
        db.add_all(UserEventHistory(event_id=event_id, user_id=u) for u in new_users)
        await db.flush()
        return len(new_users)

    @wrap_db_errors("list history")
    async def list_user_history(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
        completed: Optional[bool] = None,
    ) -> Tuple[List[HistoryResponse], int]:
        filters = [UserEventHistory.user_id == user_id, not_deleted()]
        if completed is not None:
            filters.append(UserEventHistory.completed.is_(completed))

        total = (
            await db.execute(
                select(func.count())
                .select_from(UserEventHistory)
                .join(Event, Event.id == UserEventHistory.event_id)
                .where(*filters)
            )
        ).scalar_one()
        offset, limit = page_bounds(page, limit)
        result = await db.execute(
            select(UserEventHistory, Event)
            .join(Event, Event.id == UserEventHistory.event_id)
            .where(*filters)
            .order_by(UserEventHistory.created_at.desc(), UserEventHistory.id)
            .offset(offset)
            .limit(limit)
        )
        return [_to_response(row, event) for row, event in result.all()], total

    @wrap_db_errors("mark event complete")
    async def mark_event_complete(
        self, db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
    ) -> HistoryResponse:
        """Record the user's own completion. Requires confirmed membership."""
        event = await get_active_event(db, event_id)
        member = await get_membership(db, event_id, user_id)
        if member is None or member.status != MemberStatus.CONFIRMED.value:
            raise ForbiddenError(
                message="Only confirmed members can mark an event complete",
                context={"event_id": str(event_id)},
            )

        result = await db.execute(
            select(UserEventHistory).where(
                UserEventHistory.event_id == event_id,
                UserEventHistory.user_id == user_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = UserEventHistory(event_id=event_id, user_id=user_id)
            db.add(row)
        row.completed = True
        row.completed_at = utcnow()
        await db.flush()
        logger.info("User %s marked event %s complete", user_id, event_id)
        return _to_response(row, event)

    @wrap_db_errors("load event history")
    async def get_event_history(
        self, db: AsyncSession, event_id: uuid.UUID
    ) -> List[HistoryResponse]:
        event = await get_active_event(db, event_id)
        result = await db.execute(
            select(UserEventHistory)
            .where(UserEventHistory.event_id == event_id)
            .order_by(UserEventHistory.created_at, UserEventHistory.id)
        )
        return [_to_response(row, event) for row in result.scalars().all()]

    @wrap_db_errors("load user stats")
    async def get_user_stats(self, db: AsyncSession, user_id: uuid.UUID) -> UserStatsResponse:
        async def count(query) -> int:
            return (await db.execute(query)).scalar_one()

        created = await count(
            select(func.count())
            .select_from(Event)
            .where(Event.creator_id == user_id, not_deleted())
        )
        memberships = (
            select(func.count())
            .select_from(EventMember)
            .join(Event, Event.id == EventMember.event_id)
            .where(EventMember.user_id == user_id, not_deleted())
        )
        joined = await count(
            memberships.where(EventMember.status != MemberStatus.LEFT.value)
        )
        confirmed = await count(
            memberships.where(EventMember.status == MemberStatus.CONFIRMED.value)
        )
        completed = await count(
            select(func.count())
            .select_from(UserEventHistory)
            .where(
                UserEventHistory.user_id == user_id,
                UserEventHistory.completed.is_(True),
            )
        )
        return UserStatsResponse(
            events_created=created,
            events_joined=joined,
            events_confirmed=confirmed,
            events_completed=completed,
        )


history_service = HistoryService()
