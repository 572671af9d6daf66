"""
TripMatch Backend — Shared Pydantic Schemas
=============================================

What:  Response shapes shared by every router: the error envelope, the
       health payload and the generic page wrapper.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """
    Offset-paginated list.

    total is the size of the full result set so clients can render
    "Showing 21-40 of 157". The same number is sent in X-Total-Count.
    """

    items: List[T] = Field(description="Items on this page")
    total: int = Field(description="Total number of items across all pages")
    page: int = Field(description="1-based page number")
    limit: int = Field(description="Page size")


class ErrorResponse(BaseModel):
    """
    Error envelope returned for every handled failure.

    Example:
        {
            "error": "conflict",
            "message": "event is full",
            "details": {"event_id": "..."},
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Stable error kind (validation, not_found, conflict, ...)")
    message: str = Field(description="Human-readable description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Extra context")
    request_id: Optional[str] = Field(default=None, description="Correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy, degraded or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    storage: str = Field(description="available, unavailable or circuit_open")
    uptime_seconds: float
