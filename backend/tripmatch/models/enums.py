"""
Wire-visible vocabularies.

These values are stored as plain strings and exposed verbatim in the API,
so they must stay stable.
"""

import enum


class EventType(str, enum.Enum):
    MEAL = "meal"
    ONE_DAY_TRIP = "one_day_trip"
    OVERNIGHT = "overnight"
    ACTIVITY = "activity"
    OTHER = "other"


# Accepted on input, normalised before storage
EVENT_TYPE_ALIASES = {"daytrip": EventType.ONE_DAY_TRIP.value}


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class MemberRole(str, enum.Enum):
    CREATOR = "creator"
    MEMBER = "member"


class MemberStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    LEFT = "left"


class SwipeDirection(str, enum.Enum):
    LIKE = "like"
    PASS = "pass"


class TagKind(str, enum.Enum):
    INTEREST = "interest"
    CATEGORY = "category"
    ACTIVITY = "activity"
    LOCATION = "location"
    FOOD = "food"
    TRANSPORT = "transport"
    ACCOMMODATION = "accommodation"


class MessageType(str, enum.Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    SYSTEM = "system"
    JOIN = "join"
    LEAVE = "leave"
    CONFIRM = "confirm"


# Message types a member may send; the rest are emitted by the server
USER_MESSAGE_TYPES = frozenset({MessageType.TEXT, MessageType.IMAGE, MessageType.FILE})
