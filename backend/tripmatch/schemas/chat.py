"""Chat and history contracts."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ChatRoomResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    event_title: str
    created_at: datetime


class ChatMessageResponse(BaseModel):
    id: uuid.UUID
    room_id: uuid.UUID
    sender_id: uuid.UUID
    message_type: str
    body: Optional[str] = None
    media_url: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class SendMessageRequest(BaseModel):
    body: Optional[str] = Field(default=None, max_length=4000)
    message_type: str = Field(default="text", description="text, image or file")
    media_url: Optional[str] = Field(default=None, max_length=1024)


class HistoryResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    user_id: uuid.UUID
    event_title: str
    event_type: str
    start_at: Optional[datetime] = None
    completed: bool
    completed_at: Optional[datetime] = None
    created_at: datetime


class UserStatsResponse(BaseModel):
    events_created: int
    events_joined: int
    events_confirmed: int
    events_completed: int
