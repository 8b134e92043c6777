"""Upload, analysis, insight and OCR endpoints."""

from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.api.errors import http_error
from pricing_dashboard.core.auth import get_current_user
from pricing_dashboard.core.database import get_async_session
from pricing_dashboard.core.exceptions import AppError
from pricing_dashboard.schemas.auth import CurrentUser
from pricing_dashboard.schemas.documents import (
    DocumentAnalysisResponse,
    DocumentInsightResponse,
    DocumentUploadResponse,
    OCRResultResponse,
    ProcessOCRRequest,
    UploadResult,
)
from pricing_dashboard.services.document_service import DocumentService
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_document_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> DocumentService:
    return DocumentService(db_session)


@router.get(
    "/document-uploads",
    response_model=List[DocumentUploadResponse],
    summary="List uploads of the current user",
    operation_id="list_document_uploads",
)
async def list_uploads(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> List[DocumentUploadResponse]:
    return await document_service.list_uploads(current_user.id)


@router.post(
    "/document-uploads",
    response_model=UploadResult,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a ZIP archive, workbook, PDF or image",
    operation_id="upload_document",
)
async def upload_document(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
    file: Optional[UploadFile] = File(None, description="File to upload"),
) -> UploadResult:
    """Store the upload, extract archives and parse workbooks right away."""
    if file is None or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "ValidationError", "message": "No file uploaded", "detail": "file"},
        )

    try:
        return await document_service.upload_document(file, current_user.id)
    except AppError as e:
        raise http_error(e) from e


@router.delete(
    "/document-uploads/{upload_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an upload and its analyses",
    operation_id="delete_document_upload",
)
async def delete_upload(
    upload_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> None:
    try:
        await document_service.delete_upload(upload_id, current_user.id)
    except AppError as e:
        raise http_error(e) from e


@router.get(
    "/document-analyses",
    response_model=List[DocumentAnalysisResponse],
    summary="List analyses, optionally for one upload",
    operation_id="list_document_analyses",
)
async def list_analyses(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
    upload_id: Optional[UUID] = Query(None, alias="uploadId"),
) -> List[DocumentAnalysisResponse]:
    return await document_service.list_analyses(current_user.id, upload_id=upload_id)


@router.get(
    "/document-insights",
    response_model=List[DocumentInsightResponse],
    summary="List cross-document insights",
    operation_id="list_document_insights",
)
async def list_insights(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> List[DocumentInsightResponse]:
    return await document_service.list_insights(current_user.id)


@router.post(
    "/process-ocr",
    response_model=OCRResultResponse,
    summary="Run OCR on one file of an upload",
    operation_id="process_ocr",
)
async def process_ocr(
    payload: ProcessOCRRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> OCRResultResponse:
    """Extract text from a PDF, image or workbook and store a ``mistral_ocr`` analysis.

    Raises:
        HTTPException: 400 unsupported type, 404 unknown upload or file,
            408 OCR timeout, 429 provider quota, 500 otherwise
    """
    try:
        return await document_service.process_ocr(payload.upload_id, payload.file_name, current_user.id)
    except AppError as e:
        raise http_error(e) from e
