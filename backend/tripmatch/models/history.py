"""
Per-user participation history.

Rows are created for every confirmed member when the creator completes an
event (completed = false), and flipped to completed by the member.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, UniqueConstraint, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

from tripmatch.database import Base, UTCDateTime, utcnow


class UserEventHistory(Base):
    __tablename__ = "user_event_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_user_event_history_event_user"),
    )
