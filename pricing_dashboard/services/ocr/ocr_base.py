"""Base OCR service interface for pluggable OCR implementations."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class OCRResult:
    """OCR extraction result container.

    Attributes:
        text: Extracted text content
        confidence: Confidence score (0.0 to 1.0)
        metadata: Additional metadata (page count, processing time, etc.)
    """

    def __init__(
        self,
        text: str,
        confidence: float = 0.95,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.text = text
        self.confidence = confidence
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "metadata": self.metadata,
        }


class BaseOCRService(ABC):
    """Abstract base class for OCR service implementations."""

    @abstractmethod
    async def extract_text_from_file(self, file_path: str, file_type: str) -> OCRResult:
        """Extract text from a local PDF or image.

        Args:
            file_path: Path of the file on disk
            file_type: ``pdf`` or ``image``

        Returns:
            OCRResult: Extracted text and metadata

        Raises:
            OCRExtractionError: If extraction fails
            OCRTimeoutError: If processing times out
            InvalidDocumentError: If the document cannot be read
        """

    @abstractmethod
    def get_service_name(self) -> str:
        """Get the name of the OCR service."""
