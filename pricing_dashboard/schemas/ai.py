"""Schemas for the AI operation endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import Field

from pricing_dashboard.schemas.documents import CamelModel


class AnalyticsQueryRequest(CamelModel):
    query: Optional[str] = None


class AnalyticsQueryResponse(CamelModel):
    answer: str = ""
    insights: List[Any] = Field(default_factory=list)
    recommendations: List[Any] = Field(default_factory=list)


class DetailedStatus(CamelModel):
    total_analyses: int = 0
    with_insights: int = 0
    needing_insights: int = 0


class SummarizationResponse(CamelModel):
    """Result of mass summary and fresh analysis."""

    success: bool = True
    processed_documents: int = 0
    failed_documents: int = 0
    quota_warning: bool = False
    detailed_status: DetailedStatus = Field(default_factory=DetailedStatus)
    message: str = ""


class RestorationResponse(CamelModel):
    success: bool = True
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    quota_warning: bool = False
    message: str = ""


class DocumentFinding(CamelModel):
    file_name: str
    processing_status: str
    analysis: Optional[Dict[str, Any]] = None


class ComprehensiveAnalysisResponse(CamelModel):
    success: bool = True
    total_documents: int = 0
    total_numbers: int = 0
    document_findings: List[DocumentFinding] = Field(default_factory=list)
    insight: Optional[Dict[str, Any]] = None
