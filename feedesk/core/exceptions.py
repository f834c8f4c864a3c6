from typing import Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(ServiceError):
    """Rejected input. `reason` tells the caller what to re-prompt for."""

    SUM_MISMATCH = "sum_mismatch"
    UNKNOWN_YEAR = "unknown_year"
    NON_POSITIVE_AMOUNT = "non_positive_amount"
    DUPLICATE_YEAR = "duplicate_year"
    DUPLICATE_SESSION = "duplicate_session"
    EXCEEDS_OUTSTANDING = "exceeds_outstanding"

    def __init__(self, message: str, reason: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)
        self.reason = reason


class NotFoundError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ConflictError(ServiceError):
    """Concurrent or duplicate write. Caller re-fetches and retries; never retried here."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class TransientIOError(ServiceError):
    """Persistence unavailable or timed out. Safe for the caller to retry with backoff."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)
