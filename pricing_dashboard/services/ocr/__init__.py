"""OCR services for document text extraction."""

from pricing_dashboard.services.ocr.mistral_ocr import MistralOCRService
from pricing_dashboard.services.ocr.ocr_base import BaseOCRService, OCRResult

__all__ = [
    "BaseOCRService",
    "MistralOCRService",
    "OCRResult",
]
