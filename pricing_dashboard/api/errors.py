"""Translation of domain errors into HTTP errors."""

from fastapi import HTTPException, status

from pricing_dashboard.core.exceptions import (
    ApprovalNotFoundError,
    ApprovalStateError,
    AppError,
    DocumentNotFoundError,
    InvalidDocumentError,
    OCRTimeoutError,
    QuotaExceededError,
    UploadTooLargeError,
    ValidationError,
)
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Checked in order, subclasses first
STATUS_BY_ERROR = (
    (UploadTooLargeError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
    (InvalidDocumentError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (ApprovalStateError, status.HTTP_400_BAD_REQUEST),
    (DocumentNotFoundError, status.HTTP_404_NOT_FOUND),
    (ApprovalNotFoundError, status.HTTP_404_NOT_FOUND),
    (OCRTimeoutError, status.HTTP_408_REQUEST_TIMEOUT),
    (QuotaExceededError, status.HTTP_429_TOO_MANY_REQUESTS),
)


def status_for(error: AppError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def http_error(error: AppError) -> HTTPException:
    """Build the HTTPException for a domain error.

    The ``detail`` carries the error class, the user-facing message and the
    underlying cause.
    """
    status_code = status_for(error)
    if status_code >= 500:
        LOGGER.error(f"{type(error).__name__}: {error.message}", exc_info=error)
    else:
        LOGGER.warning(f"{type(error).__name__}: {error.message}")

    return HTTPException(
        status_code=status_code,
        detail={
            "error": type(error).__name__,
            "message": error.message,
            "detail": str(error.original_error or error),
        },
    )
