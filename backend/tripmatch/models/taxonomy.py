"""
TripMatch Backend — Taxonomy SQLAlchemy Models
================================================

What:  Controlled vocabularies (generic tags, interests, food categories,
       travel styles) and the per-user association rows that feed the
       suggestion score.
How:   Master tables are seeded from tripmatch.reference_data and treated
       as read-only at runtime. User associations are join rows keyed by
       (user_id, code/id).
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tripmatch.database import Base, UTCDateTime, utcnow


class Tag(Base):
    """Generic tag attached to users and events (also used for event categories)."""

    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    kind: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        index=True,
        comment="interest, category, activity, location, food, transport, accommodation",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Tag(name='{self.name}', kind='{self.kind}')>"


class UserTag(Base):
    __tablename__ = "user_tags"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    tag_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    tag: Mapped[Tag] = relationship(lazy="joined")


class Interest(Base):
    """Interest master row, e.g. ('karaoke', 'Karaoke', 'activity')."""

    __tablename__ = "interests"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )


class UserInterest(Base):
    __tablename__ = "user_interests"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    interest_code: Mapped[str] = mapped_column(
        String(50), ForeignKey("interests.code", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    interest: Mapped[Interest] = relationship(lazy="joined")


class FoodCategory(Base):
    """Food category master row, e.g. ('thai_food', 'Thai Food')."""

    __tablename__ = "food_categories"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )


class FoodPreference(Base):
    """
    How much a user likes a food category.

    preference_level: 1 = dislike, 2 = neutral, 3 = love
    """

    __tablename__ = "food_preferences"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    category_code: Mapped[str] = mapped_column(
        String(50), ForeignKey("food_categories.code", ondelete="CASCADE"), primary_key=True
    )
    preference_level: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )

    category: Mapped[FoodCategory] = relationship(lazy="joined")

    __table_args__ = (
        CheckConstraint(
            "preference_level BETWEEN 1 AND 3", name="ck_food_preferences_level_range"
        ),
    )


class TravelStyle(Base):
    """Travel style master row, e.g. ('karaoke', 'Karaoke', 'social')."""

    __tablename__ = "travel_styles"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )


class TravelPreference(Base):
    __tablename__ = "travel_preferences"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    style_code: Mapped[str] = mapped_column(
        String(50), ForeignKey("travel_styles.code", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    style: Mapped[TravelStyle] = relationship(lazy="joined")
