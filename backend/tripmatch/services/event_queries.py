"""
TripMatch Backend — Event Query Helpers
=========================================

What:  The one place that knows how to find a live event.
Why:   Soft-deleted events must be invisible everywhere. Every read path
       (lifecycle, membership, suggestions, chat, history, public reads)
       goes through active_events()/get_active_event(), so none of them
       can forget the not-deleted predicate.
How:   Also hosts the two atomic capacity operations used by the
       membership state machine and the serializer that turns Event rows
       into EventResponse objects with the caller's membership/swipe state.

Capacity claim (the only correctness-sensitive concurrent write):

    UPDATE events
       SET confirmed_count = confirmed_count + 1
     WHERE id = :event_id
       AND is_deleted IS false
       AND (capacity IS NULL OR confirmed_count < capacity)

    rowcount == 1 → slot claimed, rowcount == 0 → event full (or gone).
    PostgreSQL re-checks the WHERE clause against the latest row version
    after waiting on the row lock; SQLite serialises writers on its
    database lock. Either way two confirms cannot both take the last slot.
"""

import logging
import uuid
from typing import Dict, Iterable, List, Optional

from sqlalchemy import Select, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.exceptions import ForbiddenError, NotFoundError
from tripmatch.models.event import Event, EventMember, EventSwipe
from tripmatch.models.enums import EventStatus, MemberStatus
from tripmatch.schemas.event import EventResponse, PhotoResponse
from tripmatch.schemas.taxonomy import InterestResponse, TagResponse

logger = logging.getLogger(__name__)


def not_deleted():
    """SQL predicate selecting events that have not been soft-deleted."""
    return Event.is_deleted.is_(False)


def active_events() -> Select:
    """
    Base query for live events.

    populate_existing refreshes rows already in the identity map, so a
    counter changed by an atomic UPDATE earlier in the session is re-read.
    """
    return (
        select(Event)
        .where(not_deleted())
        .execution_options(populate_existing=True)
    )


async def get_active_event(db: AsyncSession, event_id: uuid.UUID) -> Event:
    """
    Fetch a live event or raise NotFoundError.

    Raises:
        NotFoundError: the event does not exist or was soft-deleted
    """
    result = await db.execute(active_events().where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFoundError(resource="event", resource_id=str(event_id))
    return event


async def get_visible_event(
    db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
) -> Event:
    """Fetch a live event the caller may see. Other users' drafts read as NotFound."""
    event = await get_active_event(db, event_id)
    if event.status == EventStatus.DRAFT.value and event.creator_id != user_id:
        raise NotFoundError(resource="event", resource_id=str(event_id))
    return event


async def get_owned_event(
    db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID, action: str = "modify"
) -> Event:
    """Fetch a live event and require that `user_id` created it."""
    event = await get_active_event(db, event_id)
    if event.creator_id != user_id:
        raise ForbiddenError(
            message=f"Only the event creator can {action} this event",
            context={"event_id": str(event_id)},
        )
    return event


async def get_membership(
    db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
) -> Optional[EventMember]:
    result = await db.execute(
        select(EventMember)
        .where(EventMember.event_id == event_id, EventMember.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def claim_confirmed_slot(db: AsyncSession, event_id: uuid.UUID) -> bool:
    """Atomically take one confirmed slot. Returns False when the event is full."""
    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            not_deleted(),
            or_(Event.capacity.is_(None), Event.confirmed_count < Event.capacity),
        )
        .values(confirmed_count=Event.confirmed_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def release_confirmed_slot(db: AsyncSession, event_id: uuid.UUID) -> None:
    """Atomically give back one confirmed slot."""
    await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.confirmed_count > 0)
        .values(confirmed_count=Event.confirmed_count - 1)
        .execution_options(synchronize_session=False)
    )


async def set_capacity_if_fits(
    db: AsyncSession, event_id: uuid.UUID, capacity: Optional[int]
) -> bool:
    """
    Atomically change capacity unless it would drop below the number of
    members already confirmed. Returns False if it would.
    """
    query = update(Event).where(Event.id == event_id, not_deleted())
    if capacity is not None:
        query = query.where(Event.confirmed_count <= capacity)
    result = await db.execute(
        query.values(capacity=capacity).execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def to_event_response(
    event: Event,
    viewer_id: Optional[uuid.UUID] = None,
    membership: Optional[EventMember] = None,
    swipe: Optional[EventSwipe] = None,
) -> EventResponse:
    membership_status = membership.status if membership is not None else None
    return EventResponse(
        id=event.id,
        creator_id=event.creator_id,
        title=event.title,
        description=event.description,
        event_type=event.event_type,
        address_text=event.address_text,
        lat=event.lat,
        lng=event.lng,
        start_at=event.start_at,
        end_at=event.end_at,
        capacity=event.capacity,
        budget_min=event.budget_min,
        budget_max=event.budget_max,
        currency=event.currency,
        status=event.status,
        cover_image_url=event.cover_image_url,
        photos=[PhotoResponse.model_validate(p) for p in event.photos],
        categories=[TagResponse.model_validate(t) for t in event.categories],
        tags=[TagResponse.model_validate(t) for t in event.tags],
        interests=[InterestResponse.model_validate(i) for i in event.interests],
        member_count=event.confirmed_count,
        is_creator=viewer_id is not None and event.creator_id == viewer_id,
        is_joined=membership_status is not None and membership_status != MemberStatus.LEFT.value,
        membership_status=membership_status,
        user_swipe=swipe.direction if swipe is not None else None,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


async def serialize_events(
    db: AsyncSession,
    events: Iterable[Event],
    viewer_id: Optional[uuid.UUID] = None,
) -> List[EventResponse]:
    """
    Convert events to responses, attaching the viewer's membership and swipe.

    Uses two IN queries for the whole batch rather than two per event.
    """
    events = list(events)
    if not events:
        return []
    memberships: Dict[uuid.UUID, EventMember] = {}
    swipes: Dict[uuid.UUID, EventSwipe] = {}
    if viewer_id is not None:
        ids = [e.id for e in events]
        member_rows = await db.execute(
            select(EventMember)
            .where(EventMember.user_id == viewer_id, EventMember.event_id.in_(ids))
            .execution_options(populate_existing=True)
        )
        memberships = {m.event_id: m for m in member_rows.scalars().all()}
        swipe_rows = await db.execute(
            select(EventSwipe)
            .where(EventSwipe.user_id == viewer_id, EventSwipe.event_id.in_(ids))
            .execution_options(populate_existing=True)
        )
        swipes = {s.event_id: s for s in swipe_rows.scalars().all()}
    return [
        to_event_response(e, viewer_id, memberships.get(e.id), swipes.get(e.id))
        for e in events
    ]
