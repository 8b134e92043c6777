"""Bulk AI operations over a user's analyses."""

from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.core.exceptions import AppError, QuotaExceededError, ValidationError
from pricing_dashboard.database.models import DocumentAnalysis
from pricing_dashboard.repositories.document_analysis_repository import DocumentAnalysisRepository
from pricing_dashboard.repositories.document_insight_repository import DocumentInsightRepository
from pricing_dashboard.schemas.documents import DocumentInsightResponse
from pricing_dashboard.schemas.insights import dump_insights
from pricing_dashboard.services.document_service import DocumentService
from pricing_dashboard.services.insight_generator import InsightGenerator
from pricing_dashboard.services.insight_restorer import InsightRestorer
from pricing_dashboard.services.price_extraction import extract_prices_from_text
from pricing_dashboard.utils.insight_parser import (
    document_text,
    has_extracted_data,
    has_good_insights,
    parse_insights,
)
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

QUOTA_MESSAGE = "OpenAI API limit reached, remaining documents were not analyzed"


class AnalysisService:
    """Mass summary, fresh analysis, restoration, comprehensive analysis and queries.

    The three re-analysis operations differ in what they touch:

    * mass summary fills in insights only where they are missing;
    * fresh analysis wipes all insights of the user and regenerates them;
    * intelligent restoration fills in missing insights with numeric
      calculation breakdowns, paced, and stops at the first quota error.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        generator: Optional[InsightGenerator] = None,
        restorer: Optional[InsightRestorer] = None,
    ):
        self.analyses = DocumentAnalysisRepository(db_session)
        self.insights = DocumentInsightRepository(db_session)
        self.generator = generator or InsightGenerator()
        self.restorer = restorer or InsightRestorer(db_session, generator=self.generator)
        self.documents = DocumentService(db_session, generator=self.generator)

    async def _summarize(self, targets: Sequence[DocumentAnalysis]) -> Dict[str, Any]:
        processed = failed = 0
        quota_warning = False

        for analysis in targets:
            text = document_text(analysis.extracted_data)
            prices = analysis.price_data or extract_prices_from_text(text)
            try:
                summary = await self.generator.generate_document_summary(text, prices, raise_on_error=True)
            except QuotaExceededError as e:
                LOGGER.warning(f"Provider quota reached during summarization: {e.message}")
                quota_warning = True
                break
            except AppError as e:
                LOGGER.error(f"Summary failed for {analysis.file_name}: {e.message}")
                failed += 1
                continue

            await self.analyses.update(analysis.id, insights=dump_insights(summary))
            processed += 1

        return {"processed": processed, "failed": failed, "quota_warning": quota_warning}

    @staticmethod
    def _response(
        outcome: Dict[str, Any],
        total: int,
        with_insights: int,
        needing: int,
        verb: str,
    ) -> Dict[str, Any]:
        message = f"{verb} {outcome['processed']} of {needing} documents"
        if outcome["failed"]:
            message += f", {outcome['failed']} failed"
        if outcome["quota_warning"]:
            message += f". {QUOTA_MESSAGE}"
        return {
            "success": True,
            "processedDocuments": outcome["processed"],
            "failedDocuments": outcome["failed"],
            "quotaWarning": outcome["quota_warning"],
            "detailedStatus": {
                "totalAnalyses": total,
                "withInsights": with_insights,
                "needingInsights": needing,
            },
            "message": message,
        }

    async def mass_summary(self, user_id: UUID) -> Dict[str, Any]:
        """Generate summaries for analyses that have data but no usable insights."""
        analyses = await self.analyses.list_for_user(user_id)
        with_insights = [a for a in analyses if has_good_insights(a.insights)]
        needing = [
            a for a in analyses
            if not has_good_insights(a.insights) and has_extracted_data(a.extracted_data)
        ]

        LOGGER.info(
            "Starting mass summary",
            extra={"user_id": str(user_id), "total": len(analyses), "needing": len(needing)},
        )
        outcome = await self._summarize(needing)
        return self._response(outcome, len(analyses), len(with_insights), len(needing), "Summarized")

    async def fresh_analysis(self, user_id: UUID) -> Dict[str, Any]:
        """Drop every insight of the user and regenerate all of them."""
        deleted = await self.insights.delete_for_user(user_id)
        cleared = await self.analyses.clear_insights_for_user(user_id)
        LOGGER.info(
            "Cleared insights for fresh analysis",
            extra={"user_id": str(user_id), "deleted_insights": deleted, "cleared_analyses": cleared},
        )

        analyses = await self.analyses.list_for_user(user_id)
        targets = [a for a in analyses if has_extracted_data(a.extracted_data)]
        outcome = await self._summarize(targets)
        return self._response(outcome, len(analyses), 0, len(targets), "Re-analyzed")

    async def intelligent_restoration(self, user_id: UUID) -> Dict[str, Any]:
        result = await self.restorer.restore(user_id)
        message = (
            f"Restored {result['processed']} documents, "
            f"{result['skipped']} already had insights, {result['failed']} failed"
        )
        if result["quotaWarning"]:
            message += f". {QUOTA_MESSAGE}"
        return {"success": True, **result, "message": message}

    async def comprehensive_analysis(self, user_id: UUID) -> Dict[str, Any]:
        """Analyze all documents of a user together and store the result.

        Returns:
            ``{success, totalDocuments, totalNumbers, documentFindings, insight}``;
            ``insight`` is None when no document holds prices.
        """
        analyses = await self.analyses.list_for_user(user_id)
        findings: List[Dict[str, Any]] = [
            {
                "fileName": a.file_name,
                "processingStatus": a.status,
                "analysis": dump_insights(parse_insights(a.insights)),
            }
            for a in analyses
        ]
        total_numbers = sum(len(a.price_data or []) for a in analyses)

        insight = None
        if analyses:
            stored = await self.documents.store_cross_document_insight(user_id, analyses)
            if stored is not None:
                insight = DocumentInsightResponse.model_validate(stored).model_dump(by_alias=True, mode="json")

        return {
            "success": True,
            "totalDocuments": len(analyses),
            "totalNumbers": total_numbers,
            "documentFindings": findings,
            "insight": insight,
        }

    async def analytics_query(self, user_id: UUID, query: str) -> Dict[str, Any]:
        """Answer a free-text question about the user's documents.

        Raises:
            ValidationError: If the query is blank
            QuotaExceededError: If the provider quota is exhausted
        """
        if not query or not query.strip():
            raise ValidationError("Query is required")

        analyses = await self.analyses.list_for_user(user_id)
        return await self.generator.answer_analytics_query(query, analyses)
