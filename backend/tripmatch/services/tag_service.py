"""
TripMatch Backend — Tag Service
=================================

What:  Generic tag vocabulary plus the user ↔ tag and event ↔ tag
       associations that feed the suggestion score.
Who:   Called by the tag routes, and by EventService to resolve the
       category/tag IDs supplied on create/update.

Unknown IDs policy:
    resolve_tags() rejects the whole request when any ID is unknown or
    inactive. Silently dropping them would make event payloads lossy.
"""

import logging
import uuid
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.exceptions import ConflictError, NotFoundError, ValidationError
from tripmatch.models.enums import TagKind
from tripmatch.models.taxonomy import Tag, UserTag
from tripmatch.schemas.taxonomy import TagResponse
from tripmatch.services.db_errors import wrap_db_errors
from tripmatch.services.event_queries import get_active_event, get_owned_event
from tripmatch.services.pagination import fetch_page

logger = logging.getLogger(__name__)

VALID_KINDS = {k.value for k in TagKind}


class TagService:
    """Tag lookup and association management."""

    @wrap_db_errors("list tags")
    async def list_tags(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        kind: Optional[str] = None,
    ) -> Tuple[List[TagResponse], int]:
        """Active tags ordered by name, optionally filtered by kind."""
        query = select(Tag).where(Tag.is_active.is_(True))
        if kind:
            if kind not in VALID_KINDS:
                raise ValidationError(
                    message=f"Unknown tag kind '{kind}'",
                    field="kind",
                    context={"allowed": sorted(VALID_KINDS)},
                )
            query = query.where(Tag.kind == kind)
        tags, total = await fetch_page(db, query.order_by(Tag.name), page, limit)
        return [TagResponse.model_validate(t) for t in tags], total

    async def resolve_tags(
        self, db: AsyncSession, tag_ids: Sequence[uuid.UUID], field: str = "tag_ids"
    ) -> List[Tag]:
        """
        Map IDs to active Tag rows, preserving first-seen order.

        Raises:
            ValidationError: any ID is unknown or inactive
        """
        wanted = list(dict.fromkeys(tag_ids))
        if not wanted:
            return []
        result = await db.execute(
            select(Tag).where(Tag.id.in_(wanted), Tag.is_active.is_(True))
        )
        found = {t.id: t for t in result.scalars().all()}
        missing = [str(i) for i in wanted if i not in found]
        if missing:
            raise ValidationError(
                message=f"Unknown or inactive tags in {field}",
                field=field,
                context={"unknown_ids": missing},
            )
        return [found[i] for i in wanted]

    async def _get_active_tag(self, db: AsyncSession, tag_id: uuid.UUID) -> Tag:
        result = await db.execute(
            select(Tag).where(Tag.id == tag_id, Tag.is_active.is_(True))
        )
        tag = result.scalar_one_or_none()
        if tag is None:
            raise NotFoundError(resource="tag", resource_id=str(tag_id))
        return tag

    # ── User tags ─────────────────────────────────────────────────────────

    @wrap_db_errors("load user tags")
    async def get_user_tags(self, db: AsyncSession, user_id: uuid.UUID) -> List[TagResponse]:
        result = await db.execute(
            select(Tag)
            .join(UserTag, UserTag.tag_id == Tag.id)
            .where(UserTag.user_id == user_id, Tag.is_active.is_(True))
            .order_by(Tag.name)
        )
        return [TagResponse.model_validate(t) for t in result.scalars().all()]

    @wrap_db_errors("add user tag")
    async def add_user_tag(
        self, db: AsyncSession, user_id: uuid.UUID, tag_id: uuid.UUID
    ) -> TagResponse:
        tag = await self._get_active_tag(db, tag_id)
        existing = await db.get(UserTag, (user_id, tag_id))
        if existing is not None:
            raise ConflictError(
                message="Tag already added to user",
                context={"tag_id": str(tag_id)},
            )
        db.add(UserTag(user_id=user_id, tag_id=tag_id))
        await db.flush()
        logger.info("User %s added tag %s", user_id, tag.name)
        return TagResponse.model_validate(tag)

    @wrap_db_errors("remove user tag")
    async def remove_user_tag(
        self, db: AsyncSession, user_id: uuid.UUID, tag_id: uuid.UUID
    ) -> None:
        result = await db.execute(
            delete(UserTag).where(UserTag.user_id == user_id, UserTag.tag_id == tag_id)
        )
        if result.rowcount == 0:
            raise NotFoundError(
                resource="user tag",
                message="Tag is not associated with this user",
                context={"tag_id": str(tag_id)},
            )

    # ── Event tags ────────────────────────────────────────────────────────

    @wrap_db_errors("load event tags")
    async def get_event_tags(self, db: AsyncSession, event_id: uuid.UUID) -> List[TagResponse]:
        event = await get_active_event(db, event_id)
        return [TagResponse.model_validate(t) for t in event.tags]

    @wrap_db_errors("add event tag")
    async def add_event_tag(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        tag_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> List[TagResponse]:
        """Creator only. Returns the event's tags after the change."""
        event = await get_owned_event(db, event_id, user_id, action="tag")
        tag = await self._get_active_tag(db, tag_id)
        if any(t.id == tag.id for t in event.tags):
            raise ConflictError(
                message="Tag already added to event",
                context={"event_id": str(event_id), "tag_id": str(tag_id)},
            )
        event.tags.append(tag)
        await db.flush()
        logger.info("Tag %s added to event %s", tag.name, event_id)
        return [TagResponse.model_validate(t) for t in event.tags]

    @wrap_db_errors("remove event tag")
    async def remove_event_tag(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        tag_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> None:
        event = await get_owned_event(db, event_id, user_id, action="tag")
        remaining = [t for t in event.tags if t.id != tag_id]
        if len(remaining) == len(event.tags):
            raise NotFoundError(
                resource="event tag",
                message="Tag is not associated with this event",
                context={"event_id": str(event_id), "tag_id": str(tag_id)},
            )
        event.tags = remaining
        await db.flush()


tag_service = TagService()
