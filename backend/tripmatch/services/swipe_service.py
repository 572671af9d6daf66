"""
Like/pass swipes on events. One row per (user, event); re-swiping overwrites it.

The write is a single INSERT ... ON CONFLICT DO UPDATE, so two swipes racing
for the same (user, event) both succeed and the later one wins.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.database import utcnow
from tripmatch.exceptions import ValidationError
from tripmatch.models.enums import SwipeDirection
from tripmatch.models.event import EventSwipe
from tripmatch.schemas.event import SwipeResponse
from tripmatch.services.db_errors import wrap_db_errors
from tripmatch.services.event_queries import get_visible_event

logger = logging.getLogger(__name__)

VALID_DIRECTIONS = {d.value for d in SwipeDirection}

UPSERT_DIALECTS = {"postgresql": postgresql, "sqlite": sqlite}


class SwipeService:

    @wrap_db_errors("record swipe")
    async def swipe(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        user_id: uuid.UUID,
        direction: str,
    ) -> SwipeResponse:
        """
        Record the user's latest opinion of an event.

        Swiping never creates a membership; joining is a separate call.
        """
        if direction not in VALID_DIRECTIONS:
            raise ValidationError(
                message=f"Invalid swipe direction '{direction}'",
                field="direction",
                context={"allowed": sorted(VALID_DIRECTIONS)},
            )
        await get_visible_event(db, event_id, user_id)

        now = utcnow()
        dialect = UPSERT_DIALECTS[db.get_bind().dialect.name]
        statement = dialect.insert(EventSwipe).values(
            user_id=user_id, event_id=event_id, direction=direction, created_at=now
        )
        await db.execute(
            statement.on_conflict_do_update(
                index_elements=["user_id", "event_id"],
                set_={"direction": direction, "created_at": now},
            )
        )

        result = await db.execute(
            select(EventSwipe)
            .where(EventSwipe.user_id == user_id, EventSwipe.event_id == event_id)
            .execution_options(populate_existing=True)
        )
        logger.info("User %s swiped %s on event %s", user_id, direction, event_id)
        return SwipeResponse.model_validate(result.scalar_one())


swipe_service = SwipeService()
