"""Schemas for uploads, analyses and cross-document insights."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pricing_dashboard.utils.insight_parser import parse_insights
from pricing_dashboard.schemas.insights import dump_insights


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class WorksheetSummary(CamelModel):
    name: str
    row_count: int = 0
    column_count: int = 0


class ExtractedFile(CamelModel):
    """One file inside an upload (the upload itself for single files)."""

    file_name: str
    file_path: str
    file_type: str
    folder_path: str = "Root"
    original_path: Optional[str] = None
    worksheets: List[WorksheetSummary] = Field(default_factory=list)


class PriceData(CamelModel):
    value: float
    currency: str = "EUR"
    context: str = ""
    row: int = 0
    column: int = 0
    confidence: float = 0.0


class DocumentUploadResponse(CamelModel):
    id: UUID
    user_id: UUID
    file_name: str
    original_file_name: str
    file_size: int
    file_type: str
    upload_status: str
    extracted_files: List[ExtractedFile] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None


class DocumentAnalysisResponse(CamelModel):
    """Analysis as served to the dashboard.

    ``insights`` is always returned in the tagged, versioned shape; stored
    legacy shapes are upgraded on the way out.
    """

    id: UUID
    upload_id: UUID
    user_id: UUID
    file_name: str
    worksheet_name: Optional[str] = None
    analysis_type: str
    extracted_data: Optional[Any] = None
    processed_data: Optional[Dict[str, Any]] = None
    insights: Optional[Dict[str, Any]] = None
    price_data: List[PriceData] = Field(default_factory=list)
    status: str
    error_message: Optional[str] = None
    processing_time: Optional[int] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator("insights", mode="before")
    @classmethod
    def _upgrade_insights(cls, value: Any) -> Optional[Dict[str, Any]]:
        return dump_insights(parse_insights(value))

    @field_validator("price_data", mode="before")
    @classmethod
    def _drop_malformed_prices(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [
            p for p in value
            if isinstance(p, dict)
            and isinstance(p.get("value"), (int, float))
            and not isinstance(p.get("value"), bool)
        ]


class DocumentInsightResponse(CamelModel):
    id: UUID
    user_id: UUID
    analysis_ids: List[str] = Field(default_factory=list)
    insight_type: str
    title: str
    description: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    visualization_data: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class ProcessOCRRequest(CamelModel):
    upload_id: UUID
    file_name: str = Field(..., min_length=1)


class UploadResult(CamelModel):
    success: bool
    message: str
    upload_id: Optional[UUID] = None
    analysis_ids: List[UUID] = Field(default_factory=list)
    total_files: int = 0
    processed_files: int = 0


class OCRResultResponse(CamelModel):
    success: bool = True
    analysis_id: UUID
    file_name: str
    text_length: int
    price_count: int
