"""Document upload, parsing and OCR business logic."""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.core.exceptions import (
    DocumentNotFoundError,
    ExtractionError,
    InvalidDocumentError,
)
from pricing_dashboard.database.models import DocumentAnalysis, DocumentUpload
from pricing_dashboard.repositories.document_analysis_repository import DocumentAnalysisRepository
from pricing_dashboard.repositories.document_insight_repository import DocumentInsightRepository
from pricing_dashboard.repositories.document_upload_repository import DocumentUploadRepository
from pricing_dashboard.schemas.documents import (
    DocumentAnalysisResponse,
    DocumentInsightResponse,
    DocumentUploadResponse,
    OCRResultResponse,
    UploadResult,
)
from pricing_dashboard.schemas.insights import ProcessingFailure, dump_insights
from pricing_dashboard.services.cross_document import CrossDocumentAnalyzer
from pricing_dashboard.services.insight_generator import InsightGenerator
from pricing_dashboard.services.ocr import BaseOCRService
from pricing_dashboard.services.ocr.mistral_ocr import get_ocr_service
from pricing_dashboard.services.price_extraction import (
    extract_prices_from_text,
    extract_prices_from_worksheet,
)
from pricing_dashboard.services.storage_service import StorageService, detect_file_type
from pricing_dashboard.services.workbook_service import read_workbook, worksheet_summaries
from pricing_dashboard.utils.insight_parser import render_worksheets
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

OCR_FILE_TYPES = ("pdf", "image")


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class DocumentService:
    """Service for upload processing, OCR and per-user document queries."""

    def __init__(
        self,
        db_session: AsyncSession,
        storage: Optional[StorageService] = None,
        generator: Optional[InsightGenerator] = None,
        ocr_service: Optional[BaseOCRService] = None,
    ):
        """Initialize service with database session and collaborators.

        Args:
            db_session: SQLAlchemy async session
            storage: File storage, defaults to the configured upload dir
            generator: LLM insight generator
            ocr_service: OCR provider, defaults to Mistral OCR
        """
        self.uploads = DocumentUploadRepository(db_session)
        self.analyses = DocumentAnalysisRepository(db_session)
        self.insights = DocumentInsightRepository(db_session)
        self.storage = storage or StorageService()
        self.generator = generator or InsightGenerator()
        self._ocr_service = ocr_service

    @property
    def ocr_service(self) -> BaseOCRService:
        if self._ocr_service is None:
            self._ocr_service = get_ocr_service()
        return self._ocr_service

    async def upload_document(self, file: UploadFile, user_id: UUID) -> UploadResult:
        """Store an upload and parse whatever can be parsed without OCR.

        Archives are extracted and their workbooks parsed; PDFs and images
        are listed on the upload and wait for an explicit OCR request.

        Args:
            file: The multipart upload
            user_id: Owner of the upload

        Returns:
            UploadResult with the created analysis ids

        Raises:
            InvalidDocumentError: Unsupported type, too large, or unreadable archive
        """
        file_type = detect_file_type(file.filename or "")
        stored = await self.storage.save_upload(file)

        upload = await self.uploads.create(
            user_id=user_id,
            file_name=stored["fileName"],
            original_file_name=stored["originalFileName"],
            file_path=stored["filePath"],
            file_size=stored["fileSize"],
            file_type=file_type,
            upload_status="uploaded",
            extracted_files=[],
        )
        LOGGER.info(
            "Upload created",
            extra={"upload_id": str(upload.id), "file_type": file_type, "user_id": str(user_id)},
        )

        try:
            files = await self._list_files(upload)
            await self.uploads.update(upload.id, extracted_files=files, upload_status="processing")

            analysis_ids: List[UUID] = []
            created: List[DocumentAnalysis] = []
            processed = 0
            for file_info in files:
                file_info.setdefault("worksheets", [])
                if file_info["fileType"] != "excel":
                    processed += 1
                    continue
                try:
                    analysis = await self._analyze_workbook(upload, file_info)
                    processed += 1
                except Exception as e:
                    LOGGER.error(
                        f"Error processing file {file_info['fileName']}: {e}",
                        exc_info=True,
                        extra={"upload_id": str(upload.id)},
                    )
                    analysis = await self._record_failure(upload, file_info["fileName"], str(e))
                analysis_ids.append(analysis.id)
                created.append(analysis)

            if created:
                await self.store_cross_document_insight(user_id, created)

            await self.uploads.update(
                upload.id,
                extracted_files=files,
                upload_status="completed",
                processed_at=datetime.now(timezone.utc),
            )
        except ExtractionError as e:
            await self.uploads.update(upload.id, upload_status="error")
            raise InvalidDocumentError(f"Error processing ZIP file: {e.message}", original_error=e) from e
        except Exception:
            LOGGER.error("Upload processing failed", exc_info=True, extra={"upload_id": str(upload.id)})
            await self.uploads.update(upload.id, upload_status="error")
            raise

        return UploadResult(
            success=True,
            message=f"Successfully processed {processed} out of {len(files)} files",
            upload_id=upload.id,
            analysis_ids=analysis_ids,
            total_files=len(files),
            processed_files=processed,
        )

    async def _list_files(self, upload: DocumentUpload) -> List[Dict[str, Any]]:
        if upload.file_type == "zip":
            return await asyncio.to_thread(self.storage.extract_zip, upload.file_path, upload.id)
        return [{
            "fileName": upload.original_file_name,
            "filePath": upload.file_path,
            "fileType": upload.file_type,
            "folderPath": "Root",
            "originalPath": upload.original_file_name,
        }]

    async def _analyze_workbook(self, upload: DocumentUpload, file_info: Dict[str, Any]) -> DocumentAnalysis:
        """Parse one workbook into an ``excel_parse`` (or ``excel_error``) analysis."""
        start = time.monotonic()
        try:
            worksheets = await asyncio.to_thread(read_workbook, file_info["filePath"])
        except ExtractionError as e:
            LOGGER.warning(f"Workbook could not be parsed: {e.message}", extra={"file_name": file_info["fileName"]})
            return await self.analyses.create(
                upload_id=upload.id,
                user_id=upload.user_id,
                file_name=file_info["fileName"],
                analysis_type="excel_error",
                extracted_data={"error": e.message, "filePath": file_info["filePath"]},
                processed_data={"processingFailed": True},
                insights=dump_insights(ProcessingFailure(error="Excel processing failed", reason=e.message)),
                price_data=[],
                status="error",
                error_message=e.message,
                processing_time=_elapsed_ms(start),
            )

        prices: List[Dict[str, Any]] = []
        for ws in worksheets:
            prices.extend(extract_prices_from_worksheet(ws["data"], ws["headers"], ws["worksheetName"]))

        insights = await self.generator.generate_workbook_insights(worksheets, prices)
        file_info["worksheets"] = worksheet_summaries(worksheets)

        return await self.analyses.create(
            upload_id=upload.id,
            user_id=upload.user_id,
            file_name=file_info["fileName"],
            analysis_type="excel_parse",
            extracted_data={"worksheets": worksheets},
            processed_data={
                "totalWorksheets": len(worksheets),
                "totalRows": sum(ws["rowCount"] for ws in worksheets),
                "worksheetNames": [ws["worksheetName"] for ws in worksheets],
            },
            insights=dump_insights(insights),
            price_data=prices,
            status="completed",
            processing_time=_elapsed_ms(start),
            completed_at=datetime.now(timezone.utc),
        )

    async def _record_failure(self, upload: DocumentUpload, file_name: str, reason: str) -> DocumentAnalysis:
        return await self.analyses.create(
            upload_id=upload.id,
            user_id=upload.user_id,
            file_name=file_name,
            analysis_type="failed",
            extracted_data={"error": reason},
            processed_data={"processingFailed": True},
            insights=dump_insights(ProcessingFailure(reason=reason)),
            price_data=[],
            status="error",
            error_message=reason,
            processing_time=0,
        )

    async def store_cross_document_insight(self, user_id: UUID, analyses: List[DocumentAnalysis]):
        """Create a ``comprehensive_analysis`` insight when the analyses hold prices.

        Returns:
            The created DocumentInsight or None
        """
        result = await CrossDocumentAnalyzer(self.generator).analyze(analyses)
        if result is None:
            return None

        data, visualization, price_count = result
        insight = await self.insights.create(
            user_id=user_id,
            analysis_ids=[str(a.id) for a in analyses],
            insight_type="comprehensive_analysis",
            title=f"Cross-Document Analysis - {len(analyses)} Files",
            description=(
                f"Comprehensive analysis of {price_count} price points across {len(analyses)} documents"
            ),
            data=data,
            visualization_data=visualization,
        )
        LOGGER.info(
            "Cross-document insight stored",
            extra={"insight_id": str(insight.id), "analysis_count": len(analyses), "price_count": price_count},
        )
        return insight

    async def process_ocr(self, upload_id: UUID, file_name: str, user_id: UUID) -> OCRResultResponse:
        """Run OCR on one file of an upload and store a ``mistral_ocr`` analysis.

        Workbooks are not sent to the OCR provider; their worksheets are
        rendered as text instead.

        Raises:
            DocumentNotFoundError: Upload or file not found
            InvalidDocumentError: File type cannot be processed
            OCRExtractionError: OCR failed
            QuotaExceededError: LLM quota exhausted during insight generation
        """
        upload = await self.uploads.get_for_user(upload_id, user_id)
        if upload is None:
            raise DocumentNotFoundError(f"Upload {upload_id} not found")

        file_info = next(
            (f for f in upload.extracted_files or [] if f.get("fileName") == file_name),
            None,
        )
        if file_info is None:
            raise DocumentNotFoundError(f"File {file_name} not found in upload {upload_id}")

        start = time.monotonic()
        file_type = file_info.get("fileType")
        if file_type in OCR_FILE_TYPES:
            result = await self.ocr_service.extract_text_from_file(file_info["filePath"], file_type)
            text, metadata, confidence = result.text, result.metadata, result.confidence
        elif file_type == "excel":
            try:
                worksheets = await asyncio.to_thread(read_workbook, file_info["filePath"])
            except ExtractionError as e:
                raise InvalidDocumentError(e.message, original_error=e) from e
            text = render_worksheets(worksheets)
            metadata = {
                "service": "worksheet_render",
                "processingMethod": "worksheet_render",
                "worksheetCount": len(worksheets),
            }
            confidence = 1.0
        else:
            raise InvalidDocumentError(f"File type {file_type} cannot be processed with OCR")

        prices = extract_prices_from_text(text)
        insights = await self.generator.generate_document_summary(text, prices)

        analysis = await self.analyses.create(
            upload_id=upload.id,
            user_id=user_id,
            file_name=file_name,
            analysis_type="mistral_ocr",
            extracted_data={"text": text, "ocrMetadata": metadata, "confidence": confidence},
            processed_data={
                "textLength": len(text),
                "priceCount": len(prices),
                "processingMethod": metadata.get("processingMethod", "mistral_ocr_api"),
                "ocrMetadata": metadata,
            },
            insights=dump_insights(insights),
            price_data=prices,
            status="completed",
            processing_time=_elapsed_ms(start),
            completed_at=datetime.now(timezone.utc),
        )
        LOGGER.info(
            "OCR analysis stored",
            extra={"analysis_id": str(analysis.id), "file_name": file_name, "price_count": len(prices)},
        )

        return OCRResultResponse(
            success=True,
            analysis_id=analysis.id,
            file_name=file_name,
            text_length=len(text),
            price_count=len(prices),
        )

    async def list_uploads(self, user_id: UUID) -> List[DocumentUploadResponse]:
        uploads = await self.uploads.list_for_user(user_id)
        return [DocumentUploadResponse.model_validate(u) for u in uploads]

    async def delete_upload(self, upload_id: UUID, user_id: UUID) -> None:
        """Delete an upload, its analyses and its files on disk.

        Raises:
            DocumentNotFoundError: If the upload does not belong to the user
        """
        upload = await self.uploads.get_for_user(upload_id, user_id)
        if upload is None:
            raise DocumentNotFoundError(f"Upload {upload_id} not found")

        file_path = upload.file_path
        await self.uploads.delete(upload.id)
        self.storage.delete_upload_files(file_path, upload_id)
        LOGGER.info("Upload deleted", extra={"upload_id": str(upload_id)})

    async def list_analyses(
        self, user_id: UUID, upload_id: Optional[UUID] = None
    ) -> List[DocumentAnalysisResponse]:
        analyses = await self.analyses.list_for_user(user_id, upload_id=upload_id)
        return [DocumentAnalysisResponse.model_validate(a) for a in analyses]

    async def list_insights(self, user_id: UUID) -> List[DocumentInsightResponse]:
        insights = await self.insights.list_for_user(user_id)
        return [DocumentInsightResponse.model_validate(i) for i in insights]
