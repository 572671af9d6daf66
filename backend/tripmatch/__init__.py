"""
TripMatch Backend
==================

Social event-matching API: users create and join trip events, swipe on
events they like, chat with confirmed members, and curate the tag and
preference vocabularies that rank their suggestion feed.

Architecture:
    routes/      → HTTP layer (FastAPI routers, request parsing, status codes)
    services/    → Business logic (state machine, matching, taxonomy, storage)
    models/      → SQLAlchemy ORM models
    schemas/     → Pydantic request/response contracts
    middleware/  → Cross-cutting concerns (request ID, access log, rate limit)
"""

__version__ = "1.0.0"
