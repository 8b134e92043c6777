"""AI operations over all documents of the current user."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.api.errors import http_error
from pricing_dashboard.core.auth import get_current_user
from pricing_dashboard.core.database import get_async_session
from pricing_dashboard.core.exceptions import AppError
from pricing_dashboard.schemas.ai import (
    AnalyticsQueryRequest,
    AnalyticsQueryResponse,
    ComprehensiveAnalysisResponse,
    RestorationResponse,
    SummarizationResponse,
)
from pricing_dashboard.schemas.auth import CurrentUser
from pricing_dashboard.services.analysis_service import AnalysisService
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_analysis_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> AnalysisService:
    return AnalysisService(db_session)


@router.post(
    "/mass-summary",
    response_model=SummarizationResponse,
    summary="Summarize every document that has no insights yet",
    operation_id="mass_summary",
)
async def mass_summary(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    analysis_service: Annotated[AnalysisService, Depends(get_analysis_service)],
) -> SummarizationResponse:
    try:
        result = await analysis_service.mass_summary(current_user.id)
    except AppError as e:
        raise http_error(e) from e
    return SummarizationResponse.model_validate(result)


@router.post(
    "/fresh-analysis",
    response_model=SummarizationResponse,
    summary="Discard all insights and regenerate them",
    operation_id="fresh_analysis",
)
async def fresh_analysis(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    analysis_service: Annotated[AnalysisService, Depends(get_analysis_service)],
) -> SummarizationResponse:
    try:
        result = await analysis_service.fresh_analysis(current_user.id)
    except AppError as e:
        raise http_error(e) from e
    return SummarizationResponse.model_validate(result)


@router.post(
    "/intelligent-restoration",
    response_model=RestorationResponse,
    summary="Fill in missing insights with calculation breakdowns",
    operation_id="intelligent_restoration",
)
async def intelligent_restoration(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    analysis_service: Annotated[AnalysisService, Depends(get_analysis_service)],
) -> RestorationResponse:
    try:
        result = await analysis_service.intelligent_restoration(current_user.id)
    except AppError as e:
        raise http_error(e) from e
    return RestorationResponse.model_validate(result)


@router.post(
    "/comprehensive-analysis",
    response_model=ComprehensiveAnalysisResponse,
    summary="Analyze all documents together",
    operation_id="comprehensive_analysis",
)
async def comprehensive_analysis(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    analysis_service: Annotated[AnalysisService, Depends(get_analysis_service)],
) -> ComprehensiveAnalysisResponse:
    try:
        result = await analysis_service.comprehensive_analysis(current_user.id)
    except AppError as e:
        raise http_error(e) from e
    return ComprehensiveAnalysisResponse.model_validate(result)


@router.post(
    "/analytics-query",
    response_model=AnalyticsQueryResponse,
    summary="Ask a question about the uploaded documents",
    operation_id="analytics_query",
)
async def analytics_query(
    payload: AnalyticsQueryRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    analysis_service: Annotated[AnalysisService, Depends(get_analysis_service)],
) -> AnalyticsQueryResponse:
    try:
        result = await analysis_service.analytics_query(current_user.id, payload.query or "")
    except AppError as e:
        raise http_error(e) from e
    return AnalyticsQueryResponse.model_validate(result)
