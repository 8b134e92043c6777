"""Mistral OCR service implementation."""

import asyncio
import base64
import mimetypes
import time
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from pricing_dashboard.core.config import settings
from pricing_dashboard.core.exceptions import (
    APIClientError,
    ConfigurationError,
    InvalidDocumentError,
    OCRExtractionError,
    OCRTimeoutError,
)
from pricing_dashboard.services.ocr.ocr_base import BaseOCRService, OCRResult
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)


class MistralOCRService(BaseOCRService):
    """Mistral OCR service.

    Local files are sent inline as base64 data URLs, PDFs as a
    ``document_url`` document and images as an ``image_url`` document.

    Attributes:
        api_key: Mistral API key
        api_url: Mistral OCR endpoint URL
        model: Model name to use (default: mistral-ocr-latest)
        timeout: Request timeout in seconds
        max_retries: Maximum number of retry attempts
        retry_delay: Base delay between retries in seconds
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.mistral.ai/v1/ocr",
        model: str = "mistral-ocr-latest",
        timeout: int = 120,
        max_retries: int = 3,
        retry_delay: float = 2,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        LOGGER.info(
            "Initialized Mistral OCR service",
            extra={
                "model": self.model,
                "timeout": self.timeout,
                "max_retries": self.max_retries,
            },
        )

    def get_service_name(self) -> str:
        return "mistral_ocr"

    async def extract_text_from_file(self, file_path: str, file_type: str) -> OCRResult:
        """Extract text from a local PDF or image using Mistral OCR.

        Args:
            file_path: Path of the file on disk
            file_type: ``pdf`` or ``image``

        Returns:
            OCRResult: Extracted text and metadata

        Raises:
            ConfigurationError: If MISTRAL_API_KEY is not set
            InvalidDocumentError: If the file cannot be read
            OCRTimeoutError: If processing times out
            APIClientError: If the API keeps failing
            OCRExtractionError: If extraction fails for any other reason
        """
        if not self.api_key:
            raise ConfigurationError("MISTRAL_API_KEY is not configured")

        LOGGER.info("Starting OCR extraction", extra={"file_path": file_path, "file_type": file_type})
        start_time = time.time()

        document = self._build_document(file_path, file_type)

        try:
            response = await self._call_mistral_api(document, file_path)
        except httpx.TimeoutException as e:
            LOGGER.error(
                "OCR extraction timed out",
                exc_info=True,
                extra={"file_path": file_path, "error": str(e)},
            )
            raise OCRTimeoutError(f"OCR processing timed out after {self.timeout}s", original_error=e) from e
        except APIClientError:
            raise
        except Exception as e:
            LOGGER.error(
                "OCR extraction failed",
                exc_info=True,
                extra={"file_path": file_path, "error": str(e)},
            )
            raise OCRExtractionError(f"Failed to extract text from document: {str(e)}", original_error=e) from e

        pages = response.get("pages") or []
        text = "\n\n".join(
            page_text for page_text in (page.get("markdown") or page.get("text") or "" for page in pages)
            if page_text
        ).strip()

        processing_time = time.time() - start_time
        result = OCRResult(
            text=text,
            confidence=0.95,
            metadata={
                "service": self.get_service_name(),
                "model": self.model,
                "processingMethod": "mistral_ocr_api",
                "pageCount": len(pages),
                "processingTimeSeconds": round(processing_time, 2),
            },
        )

        LOGGER.info(
            "OCR extraction completed successfully",
            extra={
                "file_path": file_path,
                "text_length": len(text),
                "page_count": len(pages),
                "processing_time": processing_time,
            },
        )
        return result

    def _build_document(self, file_path: str, file_type: str) -> Dict[str, Any]:
        path = Path(file_path)
        try:
            encoded = base64.b64encode(path.read_bytes()).decode("ascii")
        except OSError as e:
            raise InvalidDocumentError(f"Cannot read file {path.name}: {e}", original_error=e) from e

        if file_type == "pdf":
            return {
                "type": "document_url",
                "document_url": f"data:application/pdf;base64,{encoded}",
            }

        mime_type: Optional[str] = mimetypes.guess_type(path.name)[0]
        if not mime_type or not mime_type.startswith("image/"):
            mime_type = "image/png"
        return {
            "type": "image_url",
            "image_url": f"data:{mime_type};base64,{encoded}",
        }

    async def _call_mistral_api(self, document: Dict[str, Any], file_path: str) -> Dict[str, Any]:
        """POST the document to the OCR endpoint with retries.

        Returns:
            Parsed JSON response ``{"pages": [{"markdown": ...}], ...}``
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "document": document,
            "include_image_base64": False,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(self.max_retries):
                try:
                    response = await client.post(self.api_url, json=payload, headers=headers)
                    response.raise_for_status()
                    return response.json()

                except httpx.HTTPStatusError as e:
                    status_code = e.response.status_code
                    LOGGER.error(
                        f"Mistral OCR API error response: {e.response.text[:500]}",
                        extra={"file_path": file_path, "status_code": status_code},
                    )
                    retryable = status_code == 429 or status_code >= 500
                    if retryable and attempt < self.max_retries - 1:
                        await self._wait_before_retry(attempt)
                        continue
                    raise APIClientError(
                        f"Mistral OCR API returned error: {status_code}",
                        original_error=e,
                        status_code=status_code,
                    ) from e

                except httpx.TimeoutException:
                    if attempt < self.max_retries - 1:
                        LOGGER.warning(
                            f"Mistral OCR API timed out, retrying (attempt {attempt + 1}/{self.max_retries})",
                            extra={"file_path": file_path},
                        )
                        await self._wait_before_retry(attempt)
                        continue
                    raise

                except httpx.RequestError as e:
                    if attempt < self.max_retries - 1:
                        LOGGER.warning(
                            f"Mistral OCR API call failed, retrying (attempt {attempt + 1}/{self.max_retries})",
                            extra={"file_path": file_path, "error": str(e)},
                        )
                        await self._wait_before_retry(attempt)
                        continue
                    raise APIClientError(f"Failed to call Mistral OCR API: {str(e)}", original_error=e) from e

        raise APIClientError("Failed to extract text after all retry attempts")

    async def _wait_before_retry(self, attempt: int) -> None:
        wait_time = self.retry_delay * (2 ** attempt)
        await asyncio.sleep(wait_time)


def get_ocr_service() -> MistralOCRService:
    """Build the OCR service from application settings."""
    return MistralOCRService(
        api_key=settings.mistral_api_key,
        api_url=settings.mistral_api_url,
        model=settings.mistral_model,
        timeout=settings.ocr_timeout,
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay,
    )
