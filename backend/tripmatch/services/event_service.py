"""
TripMatch Backend — Event Lifecycle Service
=============================================

What:  Create, read, update, soft-delete and complete events; attach cover
       images and gallery photos.
Who:   Called by the event and public routes.
How:   Collaborators (tags, interests, chat, files, history) are injected
       through the constructor; the module-level `event_service` wires the
       default instances.

Status transitions:
    create:   draft | published
    update:   draft ⇄ published, → cancelled
    complete: published/draft → completed (creator only)
    completed and cancelled are terminal: further updates are conflicts.

Visibility:
    - soft-deleted events are invisible everywhere (event_queries)
    - drafts are visible only to their creator
    - public reads see published events only
"""

import logging
import uuid
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.config import settings
from tripmatch.database import utcnow
from tripmatch.exceptions import ConflictError, NotFoundError, ValidationError
from tripmatch.models.enums import (
    EVENT_TYPE_ALIASES,
    EventStatus,
    EventType,
    MemberRole,
    MemberStatus,
)
from tripmatch.models.event import Event, EventMember, EventPhoto
from tripmatch.schemas.event import EventCreate, EventResponse, EventUpdate
from tripmatch.services.chat_service import ChatService, chat_service
from tripmatch.services.db_errors import wrap_db_errors
from tripmatch.services.event_queries import (
    active_events,
    get_active_event,
    get_owned_event,
    get_visible_event,
    serialize_events,
    set_capacity_if_fits,
    to_event_response,
)
from tripmatch.services.file_service import FileService, file_service
from tripmatch.services.history_service import HistoryService, history_service
from tripmatch.services.interest_service import InterestService, interest_service
from tripmatch.services.pagination import fetch_page
from tripmatch.services.tag_service import TagService, tag_service

logger = logging.getLogger(__name__)

EVENT_TYPES = {t.value for t in EventType}
CREATE_STATUSES = {EventStatus.DRAFT.value, EventStatus.PUBLISHED.value}
UPDATE_STATUSES = CREATE_STATUSES | {EventStatus.CANCELLED.value}
TERMINAL_STATUSES = {EventStatus.COMPLETED.value, EventStatus.CANCELLED.value}

# Plain columns copied from EventUpdate when present in the payload
SIMPLE_FIELDS = (
    "title",
    "description",
    "address_text",
    "lat",
    "lng",
    "start_at",
    "end_at",
    "budget_min",
    "budget_max",
    "currency",
    "cover_image_url",
)


def normalize_event_type(value: Optional[str]) -> str:
    """Map aliases (daytrip) to canonical values and reject anything else."""
    if not value:
        raise ValidationError(message="event_type is required", field="event_type")
    canonical = EVENT_TYPE_ALIASES.get(value, value)
    if canonical not in EVENT_TYPES:
        raise ValidationError(
            message=f"Unknown event type '{value}'",
            field="event_type",
            context={"allowed": sorted(EVENT_TYPES)},
        )
    return canonical


def validate_schedule(start_at, end_at) -> None:
    if start_at is not None and end_at is not None and end_at < start_at:
        raise ValidationError(message="end_at must not be before start_at", field="end_at")


def validate_budget(budget_min, budget_max) -> None:
    if budget_min is not None and budget_max is not None and budget_max < budget_min:
        raise ValidationError(
            message="budget_max must not be less than budget_min", field="budget_max"
        )


class EventService:
    """
    Event CRUD and lifecycle.

    Capacity is never assigned on the ORM object after creation; it goes
    through set_capacity_if_fits() so it cannot drop below confirmed_count.
    """

    def __init__(
        self,
        tags: TagService,
        interests: InterestService,
        chat: ChatService,
        files: FileService,
        history: HistoryService,
    ):
        self.tags = tags
        self.interests = interests
        self.chat = chat
        self.files = files
        self.history = history

    # ── Create ────────────────────────────────────────────────────────────

    @wrap_db_errors("create event")
    async def create_event(
        self, db: AsyncSession, creator_id: uuid.UUID, payload: EventCreate
    ) -> EventResponse:
        event_type = normalize_event_type(payload.event_type)
        if payload.status not in CREATE_STATUSES:
            raise ValidationError(
                message="New events must be draft or published",
                field="status",
                context={"allowed": sorted(CREATE_STATUSES)},
            )
        validate_schedule(payload.start_at, payload.end_at)
        validate_budget(payload.budget_min, payload.budget_max)

        categories = await self.tags.resolve_tags(db, payload.category_ids, field="category_ids")
        tags = await self.tags.resolve_tags(db, payload.tag_ids, field="tag_ids")
        interests = await self.interests.resolve_interests(db, payload.interest_codes)

        now = utcnow()
        event = Event(
            creator_id=creator_id,
            title=payload.title,
            description=payload.description,
            event_type=event_type,
            address_text=payload.address_text,
            lat=payload.lat,
            lng=payload.lng,
            start_at=payload.start_at,
            end_at=payload.end_at,
            capacity=payload.capacity,
            budget_min=payload.budget_min,
            budget_max=payload.budget_max,
            currency=payload.currency.upper(),
            status=payload.status,
            cover_image_url=payload.cover_image_url,
            confirmed_count=1,
            categories=categories,
            tags=tags,
            interests=interests,
            photos=[
                EventPhoto(url=url, sort_no=i) for i, url in enumerate(payload.gallery_urls)
            ],
        )
        db.add(event)
        await db.flush()

        db.add(
            EventMember(
                event_id=event.id,
                user_id=creator_id,
                role=MemberRole.CREATOR.value,
                status=MemberStatus.CONFIRMED.value,
                joined_at=now,
                confirmed_at=now,
            )
        )
        await self.chat.create_room(db, event.id)
        await db.flush()

        logger.info(
            "Event %s created by %s (type=%s, status=%s, capacity=%s)",
            event.id, creator_id, event_type, payload.status, payload.capacity,
        )
        return await self.get_event(db, event.id, creator_id)

    # ── Read ──────────────────────────────────────────────────────────────

    @wrap_db_errors("load event")
    async def get_event(
        self, db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
    ) -> EventResponse:
        """Drafts of other users read as NotFound."""
        event = await get_visible_event(db, event_id, user_id)
        return (await serialize_events(db, [event], viewer_id=user_id))[0]

    @wrap_db_errors("list events")
    async def list_events(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        event_type: Optional[str] = None,
        created_by_me: bool = False,
    ) -> Tuple[List[EventResponse], int]:
        query = active_events().where(
            or_(Event.status != EventStatus.DRAFT.value, Event.creator_id == user_id)
        )
        if status:
            query = query.where(Event.status == status)
        if event_type:
            query = query.where(Event.event_type == normalize_event_type(event_type))
        if created_by_me:
            query = query.where(Event.creator_id == user_id)

        events, total = await fetch_page(
            db, query.order_by(Event.created_at.desc(), Event.id), page, limit
        )
        return await serialize_events(db, events, viewer_id=user_id), total

    @wrap_db_errors("load public event")
    async def get_public_event(self, db: AsyncSession, event_id: uuid.UUID) -> EventResponse:
        event = await get_active_event(db, event_id)
        if event.status != EventStatus.PUBLISHED.value:
            raise NotFoundError(resource="event", resource_id=str(event_id))
        return to_event_response(event)

    @wrap_db_errors("list public events")
    async def list_public_events(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        event_type: Optional[str] = None,
    ) -> Tuple[List[EventResponse], int]:
        query = active_events().where(Event.status == EventStatus.PUBLISHED.value)
        if event_type:
            query = query.where(Event.event_type == normalize_event_type(event_type))
        events, total = await fetch_page(
            db, query.order_by(Event.created_at.desc(), Event.id), page, limit
        )
        return [to_event_response(e) for e in events], total

    # ── Update / Delete ───────────────────────────────────────────────────

    @wrap_db_errors("update event")
    async def update_event(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        user_id: uuid.UUID,
        payload: EventUpdate,
    ) -> EventResponse:
        """
        Partial update: only fields present in the request body change.

        An explicit null clears a nullable field. title, event_type and
        currency cannot be cleared.
        """
        event = await get_owned_event(db, event_id, user_id, action="update")
        if event.status in TERMINAL_STATUSES:
            raise ConflictError(
                message=f"A {event.status} event cannot be updated",
                context={"event_id": str(event_id), "status": event.status},
            )

        fields = payload.model_fields_set
        for name in ("title", "event_type", "currency"):
            if name in fields and getattr(payload, name) is None:
                raise ValidationError(message=f"{name} cannot be null", field=name)

        if "status" in fields:
            if payload.status == EventStatus.COMPLETED.value:
                raise ValidationError(
                    message="Use the complete action to mark an event completed",
                    field="status",
                )
            if payload.status not in UPDATE_STATUSES:
                raise ValidationError(
                    message=f"Invalid status '{payload.status}'",
                    field="status",
                    context={"allowed": sorted(UPDATE_STATUSES)},
                )

        start_at = payload.start_at if "start_at" in fields else event.start_at
        end_at = payload.end_at if "end_at" in fields else event.end_at
        validate_schedule(start_at, end_at)
        budget_min = payload.budget_min if "budget_min" in fields else event.budget_min
        budget_max = payload.budget_max if "budget_max" in fields else event.budget_max
        validate_budget(budget_min, budget_max)

        if "category_ids" in fields:
            event.categories = await self.tags.resolve_tags(
                db, payload.category_ids or [], field="category_ids"
            )
        if "tag_ids" in fields:
            event.tags = await self.tags.resolve_tags(db, payload.tag_ids or [], field="tag_ids")
        if "interest_codes" in fields:
            event.interests = await self.interests.resolve_interests(
                db, payload.interest_codes or []
            )

        if "capacity" in fields:
            if not await set_capacity_if_fits(db, event_id, payload.capacity):
                raise ConflictError(
                    message="Capacity cannot be lower than the number of confirmed members",
                    context={"event_id": str(event_id), "capacity": payload.capacity},
                )

        for name in SIMPLE_FIELDS:
            if name in fields:
                value = getattr(payload, name)
                if name == "currency" and value is not None:
                    value = value.upper()
                setattr(event, name, value)
        if "event_type" in fields:
            event.event_type = normalize_event_type(payload.event_type)
        if "status" in fields:
            event.status = payload.status

        await db.flush()
        logger.info("Event %s updated by %s: %s", event_id, user_id, sorted(fields))
        return await self.get_event(db, event_id, user_id)

    @wrap_db_errors("delete event")
    async def delete_event(
        self, db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
    ) -> None:
        event = await get_owned_event(db, event_id, user_id, action="delete")
        event.is_deleted = True
        event.deleted_at = utcnow()
        await db.flush()
        logger.info("Event %s soft-deleted by %s", event_id, user_id)

    # ── Complete ──────────────────────────────────────────────────────────

    @wrap_db_errors("complete event")
    async def complete_event(
        self, db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
    ) -> EventResponse:
        """
        Mark the event completed and open history records for every
        confirmed member.
        """
        event = await get_owned_event(db, event_id, user_id, action="complete")
        if event.status in TERMINAL_STATUSES:
            raise ConflictError(
                message=f"Event is already {event.status}",
                context={"event_id": str(event_id), "status": event.status},
            )
        event.status = EventStatus.COMPLETED.value
        await db.flush()
        created = await self.history.create_eligible_records(db, event_id)
        logger.info("Event %s completed; %d history records opened", event_id, created)
        return await self.get_event(db, event_id, user_id)

    # ── Media ─────────────────────────────────────────────────────────────

    @wrap_db_errors("upload cover image")
    async def upload_cover_image(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        user_id: uuid.UUID,
        filename: str,
        content: bytes,
    ) -> EventResponse:
        event = await get_owned_event(db, event_id, user_id, action="update")
        url = await self.files.upload_image(event_id, "cover", filename, content)
        event.cover_image_url = url
        await db.flush()
        return await self.get_event(db, event_id, user_id)

    @wrap_db_errors("upload photos")
    async def upload_photos(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        user_id: uuid.UUID,
        files: Sequence[Tuple[str, bytes]],
    ) -> EventResponse:
        """
        Append gallery photos after the current last position.

        Args:
            files: (filename, content) pairs
        """
        await get_owned_event(db, event_id, user_id, action="update")
        if not files:
            raise ValidationError(message="At least one file is required", field="files")
        if len(files) > settings.max_photos_per_upload:
            raise ValidationError(
                message=f"At most {settings.max_photos_per_upload} photos per upload",
                field="files",
                context={"received": len(files)},
            )

        for filename, content in files:
            self.files.validate_extension(filename)
            self.files.validate_size(len(content))
            self.files.validate_image_content(content)

        last = (
            await db.execute(
                select(func.max(EventPhoto.sort_no)).where(EventPhoto.event_id == event_id)
            )
        ).scalar_one_or_none()
        next_no = 0 if last is None else last + 1

        for offset, (filename, content) in enumerate(files):
            url = await self.files.upload_image(event_id, "photos", filename, content)
            db.add(EventPhoto(event_id=event_id, url=url, sort_no=next_no + offset))
        await db.flush()
        logger.info("Added %d photos to event %s", len(files), event_id)
        return await self.get_event(db, event_id, user_id)


event_service = EventService(
    tags=tag_service,
    interests=interest_service,
    chat=chat_service,
    files=file_service,
    history=history_service,
)
