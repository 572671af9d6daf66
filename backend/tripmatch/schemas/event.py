"""
TripMatch Backend — Event Schemas
===================================

What:  API contracts for events, memberships, swipes and suggestions.

Partial updates:
    EventUpdate declares every field optional. The service walks
    `payload.model_fields_set`, so a field that was sent as null is
    distinguishable from one that was not sent at all:
        {"capacity": null}  → clears capacity (unlimited)
        {}                  → capacity unchanged

Timestamps:
    start_at/end_at sent without an offset are read as UTC, so they always
    compare cleanly with the aware values stored on the event.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from tripmatch.schemas.taxonomy import InterestResponse, TagResponse


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps without an offset are taken to be UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    event_type: str = Field(description="meal, one_day_trip (or daytrip), overnight, activity, other")
    address_text: Optional[str] = Field(default=None, max_length=500)
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    capacity: Optional[int] = Field(default=None, ge=1, description="Null means unlimited")
    budget_min: Optional[int] = Field(default=None, ge=0)
    budget_max: Optional[int] = Field(default=None, ge=0)
    currency: str = Field(default="THB", min_length=3, max_length=3)
    status: str = Field(default="published", description="draft or published")
    category_ids: List[uuid.UUID] = Field(default_factory=list)
    tag_ids: List[uuid.UUID] = Field(default_factory=list)
    interest_codes: List[str] = Field(default_factory=list)
    cover_image_url: Optional[str] = Field(default=None, max_length=1024)
    gallery_urls: List[str] = Field(default_factory=list)

    @field_validator("start_at", "end_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    event_type: Optional[str] = None
    address_text: Optional[str] = Field(default=None, max_length=500)
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    budget_min: Optional[int] = Field(default=None, ge=0)
    budget_max: Optional[int] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    status: Optional[str] = None
    category_ids: Optional[List[uuid.UUID]] = None
    tag_ids: Optional[List[uuid.UUID]] = None
    interest_codes: Optional[List[str]] = None
    cover_image_url: Optional[str] = Field(default=None, max_length=1024)

    @field_validator("start_at", "end_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class PhotoResponse(BaseModel):
    id: uuid.UUID
    url: str
    sort_no: int

    model_config = {"from_attributes": True}


class EventResponse(BaseModel):
    """
    Full event representation.

    Caller-specific fields (is_joined, membership_status, user_swipe,
    is_creator) are null/false for unauthenticated public reads.
    """

    id: uuid.UUID
    creator_id: uuid.UUID
    title: str
    description: Optional[str] = None
    event_type: str
    address_text: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    capacity: Optional[int] = None
    budget_min: Optional[int] = None
    budget_max: Optional[int] = None
    currency: str
    status: str
    cover_image_url: Optional[str] = None
    photos: List[PhotoResponse] = Field(default_factory=list)
    categories: List[TagResponse] = Field(default_factory=list)
    tags: List[TagResponse] = Field(default_factory=list)
    interests: List[InterestResponse] = Field(default_factory=list)
    member_count: int = Field(description="Number of confirmed members")
    is_creator: bool = False
    is_joined: bool = False
    membership_status: Optional[str] = None
    user_swipe: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class JoinRequest(BaseModel):
    note: Optional[str] = Field(default=None, max_length=1000)


class MemberResponse(BaseModel):
    event_id: uuid.UUID
    user_id: uuid.UUID
    role: str
    status: str
    joined_at: datetime
    confirmed_at: Optional[datetime] = None
    left_at: Optional[datetime] = None
    note: Optional[str] = None

    model_config = {"from_attributes": True}


class SwipeRequest(BaseModel):
    direction: str = Field(description="like or pass")


class SwipeResponse(BaseModel):
    user_id: uuid.UUID
    event_id: uuid.UUID
    direction: str
    created_at: datetime

    model_config = {"from_attributes": True}


class SuggestionItem(BaseModel):
    """
    One ranked suggestion.

    matched_tags is the intersection of the user's tags with the event's
    tags and categories; score_breakdown shows the weighted contribution of
    each component (tags, interests, food, travel).
    """

    event: EventResponse
    match_score: float
    matched_tags: List[TagResponse] = Field(default_factory=list)
    matched_interests: List[str] = Field(default_factory=list)
    score_breakdown: Dict[str, float] = Field(default_factory=dict)
