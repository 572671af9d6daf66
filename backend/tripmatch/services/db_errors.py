"""
Translation of unexpected database failures into DatabaseError.

Application errors (TripMatchError subclasses) pass through untouched;
anything raised by SQLAlchemy is logged with its operation name and
re-raised as a DatabaseError, whose message is safe to return to clients.
"""

import functools
import logging

from sqlalchemy.exc import SQLAlchemyError

from tripmatch.exceptions import DatabaseError

logger = logging.getLogger(__name__)


def wrap_db_errors(operation: str):
    """
    Decorator for async service methods.

    Example:
        @wrap_db_errors("join event")
        async def join_event(self, db, event_id, user_id): ...
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
                raise DatabaseError(
                    message=f"Could not {operation}. Please try again.",
                    context={"operation": operation, "original_error": type(e).__name__},
                ) from e

        return wrapper

    return decorator
