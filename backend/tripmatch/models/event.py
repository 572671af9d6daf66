"""
TripMatch Backend — Event SQLAlchemy Models
=============================================

What:  ORM models for events and everything hanging off them: membership
       rows, swipes, gallery photos and the tag/category/interest
       association tables.
Who:   Used by the lifecycle, swipe and suggestion services and by Alembic.

Table Design:
    - events.confirmed_count is a denormalised counter of confirmed members.
      It is only changed through atomic conditional UPDATEs, which is what
      keeps concurrent confirms from overshooting capacity. The CHECK
      constraint backs that up at the database level.
    - events.is_deleted is the soft-delete flag; deleted_at records when.
    - event_members has a composite key (event_id, user_id): one row per
      pair, reused across join episodes.
    - event_swipes has a composite key (user_id, event_id): repeat swipes
      overwrite the row.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    false,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tripmatch.database import Base, UTCDateTime, utcnow
from tripmatch.models.enums import EventStatus

# ── Association tables ────────────────────────────────────────────────────
event_tags = Table(
    "event_tags",
    Base.metadata,
    Column("event_id", Uuid, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

event_categories = Table(
    "event_categories",
    Base.metadata,
    Column("event_id", Uuid, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

event_interests = Table(
    "event_interests",
    Base.metadata,
    Column("event_id", Uuid, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "interest_code",
        String(50),
        ForeignKey("interests.code", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Event(Base):
    """
    A trip/meal/activity that users can join.

    Lifecycle:
        draft ⇄ published → cancelled (via update)
        published → completed (creator-only Complete action)
        any → soft-deleted (is_deleted = true, excluded from every read)
    """

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
        comment="User ID issued by the identity provider",
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    event_type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="meal, one_day_trip, overnight, activity, other",
    )

    address_text: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    lng: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    start_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    end_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    capacity: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Maximum confirmed members; NULL means unlimited",
    )
    budget_min: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    budget_max: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, default="THB", server_default=text("'THB'")
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=EventStatus.PUBLISHED.value,
        server_default=text("'published'"),
        comment="draft, published, cancelled, completed",
    )
    cover_image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    confirmed_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Number of confirmed members; updated atomically",
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )

    photos: Mapped[List["EventPhoto"]] = relationship(
        back_populates="event",
        order_by="EventPhoto.sort_no",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    tags: Mapped[List["Tag"]] = relationship(  # noqa: F821
        secondary=event_tags, order_by="Tag.name", lazy="selectin"
    )
    categories: Mapped[List["Tag"]] = relationship(  # noqa: F821
        secondary=event_categories, order_by="Tag.name", lazy="selectin"
    )
    interests: Mapped[List["Interest"]] = relationship(  # noqa: F821
        secondary=event_interests, order_by="Interest.code", lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint("capacity IS NULL OR capacity >= 1", name="ck_events_capacity_positive"),
        CheckConstraint("confirmed_count >= 0", name="ck_events_confirmed_non_negative"),
        CheckConstraint(
            "capacity IS NULL OR confirmed_count <= capacity",
            name="ck_events_confirmed_within_capacity",
        ),
        Index("idx_events_status_created_at", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title='{self.title}', status='{self.status}')>"


class EventMember(Base):
    """
    Membership of one user in one event.

    A member episode runs join → (confirm | cancel) → leave. Re-joining after
    leave reuses this row and starts a new pending episode.
    """

    __tablename__ = "event_members"

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, comment="creator, member")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="pending, confirmed, declined, left"
    )
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    left_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_event_members_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<EventMember(event_id={self.event_id}, user_id={self.user_id}, "
            f"status='{self.status}')>"
        )


class EventSwipe(Base):
    """A user's like/pass signal on an event. One row per (user, event)."""

    __tablename__ = "event_swipes"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    direction: Mapped[str] = mapped_column(String(10), nullable=False, comment="like, pass")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)


class EventPhoto(Base):
    """Gallery photo; sort_no gives the display order within an event."""

    __tablename__ = "event_photos"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    sort_no: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    event: Mapped[Event] = relationship(back_populates="photos")

    __table_args__ = (
        UniqueConstraint("event_id", "sort_no", name="uq_event_photos_event_sort"),
    )
