"""Domain errors raised by the booking services.

Each error carries the HTTP status it maps to; ``booking_api.main`` turns them
into ``{"error": message}`` responses.
"""

import logging

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class BookingError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BookingValidationError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(BookingError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class BookingConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT


DATABASE_UNAVAILABLE = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def database_unavailable(exc: Exception) -> HTTPException:
    logger.error('Database error: %s', exc, exc_info=exc)
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE)
