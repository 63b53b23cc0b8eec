"""Application error taxonomy.

Services raise these; ``src.main`` turns them into JSON responses carrying
``status_code``. The addon listing path never raises ``NotFoundError``, it
answers with an empty ``metas`` list instead.
"""

from fastapi import status


class AppError(Exception):
    """Base exception for application errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(AppError):
    """Unknown user, catalog or media item."""

    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(AppError):
    """Kind mismatch, duplicate item in a batch, malformed document."""

    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(AppError):
    """Caller lacks the capability for a privileged operation."""

    status_code = status.HTTP_403_FORBIDDEN


class UpstreamError(AppError):
    """Metadata provider unreachable or answering with an error."""

    status_code = status.HTTP_502_BAD_GATEWAY


class TransactionError(AppError):
    """A write was rolled back; the caller may retry."""

    status_code = status.HTTP_409_CONFLICT
