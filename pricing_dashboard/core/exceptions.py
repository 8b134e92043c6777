"""Custom exception hierarchy."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class APIClientError(AppError):
    """Raised when an external API call fails."""
    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, original_error)
        self.status_code = status_code


class APITimeoutError(APIClientError):
    """Raised when an external API call times out."""
    pass


class QuotaExceededError(APIClientError):
    """Raised when the LLM provider reports rate limiting or an exhausted quota."""
    pass


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class ValidationError(AppError):
    """Raised when input validation fails."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class PipelineError(AppError):
    """Base exception for document processing errors."""
    pass


class ExtractionError(PipelineError):
    """Archive or workbook extraction failed."""
    pass


class OCRExtractionError(PipelineError):
    """OCR extraction failed."""
    pass


class OCRTimeoutError(OCRExtractionError):
    """OCR processing exceeded the configured timeout."""
    pass


class InsightGenerationError(PipelineError):
    """LLM insight generation failed."""
    pass


class InvalidDocumentError(AppError):
    """Raised when an uploaded document is unsupported or unreadable."""
    pass


class DocumentNotFoundError(AppError):
    """Raised when a document is not found."""
    pass


class ApprovalNotFoundError(AppError):
    """Raised when an approval request does not exist."""
    pass


class ApprovalStateError(AppError):
    """Raised when an approval request cannot transition to the requested state."""
    pass


class UploadTooLargeError(InvalidDocumentError):
    """Raised when an upload exceeds the configured size limit."""
    pass
