"""ORM models. Importing this package registers every table on Base.metadata."""

from tripmatch.models.chat import ChatMessage, ChatRoom
from tripmatch.models.event import (
    Event,
    EventMember,
    EventPhoto,
    EventSwipe,
    event_categories,
    event_interests,
    event_tags,
)
from tripmatch.models.history import UserEventHistory
from tripmatch.models.taxonomy import (
    FoodCategory,
    FoodPreference,
    Interest,
    Tag,
    TravelPreference,
    TravelStyle,
    UserInterest,
    UserTag,
)

__all__ = [
    "ChatMessage",
    "ChatRoom",
    "Event",
    "EventMember",
    "EventPhoto",
    "EventSwipe",
    "FoodCategory",
    "FoodPreference",
    "Interest",
    "Tag",
    "TravelPreference",
    "TravelStyle",
    "UserEventHistory",
    "UserInterest",
    "UserTag",
    "event_categories",
    "event_interests",
    "event_tags",
]
