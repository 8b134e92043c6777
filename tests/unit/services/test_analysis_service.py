"""Tests for bulk AI operations over a user's analyses."""

import json
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from pricing_dashboard.core.exceptions import InsightGenerationError, QuotaExceededError, ValidationError
from pricing_dashboard.repositories.document_analysis_repository import DocumentAnalysisRepository
from pricing_dashboard.repositories.document_insight_repository import DocumentInsightRepository
from pricing_dashboard.schemas.insights import DocumentSummary
from pricing_dashboard.services.analysis_service import QUOTA_MESSAGE, AnalysisService
from pricing_dashboard.services.document_service import DocumentService
from pricing_dashboard.services.insight_generator import InsightGenerator


@pytest.fixture
def generator() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def restorer() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(generator: AsyncMock, restorer: AsyncMock) -> AnalysisService:
    analysis_service = AnalysisService(MagicMock(), generator=generator, restorer=restorer)
    analysis_service.analyses = AsyncMock(spec=DocumentAnalysisRepository)
    analysis_service.insights = AsyncMock(spec=DocumentInsightRepository)
    analysis_service.documents = AsyncMock(spec=DocumentService)
    return analysis_service


class TestMassSummary:
    @pytest.mark.asyncio
    async def test_summarizes_documents_without_insights(
        self, service: AnalysisService, generator: AsyncMock, analysis_factory
    ) -> None:
        good = analysis_factory(insights={"documentType": "invoice"}, extracted_data={"text": "x"})
        first = analysis_factory(file_name="a.pdf", extracted_data={"text": "Zimmer 89,00 €"})
        second = analysis_factory(file_name="b.pdf", extracted_data={"text": "Suite 249,00 €"})
        no_data = analysis_factory(extracted_data=None)
        service.analyses.list_for_user.return_value = [good, first, second, no_data]
        generator.generate_document_summary.side_effect = [
            DocumentSummary(summary="Zimmerpreise"),
            InsightGenerationError("model failed"),
        ]

        result = await service.mass_summary(uuid4())

        assert result == {
            "success": True,
            "processedDocuments": 1,
            "failedDocuments": 1,
            "quotaWarning": False,
            "detailedStatus": {"totalAnalyses": 4, "withInsights": 1, "needingInsights": 2},
            "message": "Summarized 1 of 2 documents, 1 failed",
        }
        text, prices = generator.generate_document_summary.call_args_list[0].args
        assert text == "Zimmer 89,00 €"
        assert [p["value"] for p in prices] == [89.0]
        service.analyses.update.assert_awaited_once()
        assert service.analyses.update.call_args.args[0] == first.id

    @pytest.mark.asyncio
    async def test_malformed_model_reply_does_not_stop_the_batch(self, analysis_factory) -> None:
        chat_client = AsyncMock()
        chat_client.generate_content.side_effect = [
            json.dumps({"summary": "Zimmerpreise", "textQuality": "good"}),
            json.dumps({"summary": "Suitenpreise", "documentType": "price list"}),
        ]
        service = AnalysisService(
            MagicMock(), generator=InsightGenerator(chat_client=chat_client), restorer=AsyncMock()
        )
        service.analyses = AsyncMock(spec=DocumentAnalysisRepository)
        first = analysis_factory(file_name="a.pdf", extracted_data={"text": "Zimmer 89,00 €"})
        second = analysis_factory(file_name="b.pdf", extracted_data={"text": "Suite 249,00 €"})
        service.analyses.list_for_user.return_value = [first, second]

        result = await service.mass_summary(uuid4())

        assert result["processedDocuments"] == 2
        assert result["failedDocuments"] == 0
        assert service.analyses.update.await_count == 2
        stored = service.analyses.update.call_args_list[1].kwargs["insights"]
        assert stored["documentType"] == "price list"


class TestFreshAnalysis:
    @pytest.mark.asyncio
    async def test_clears_then_regenerates_until_quota(
        self, service: AnalysisService, generator: AsyncMock, analysis_factory
    ) -> None:
        service.insights.delete_for_user.return_value = 2
        service.analyses.clear_insights_for_user.return_value = 3
        service.analyses.list_for_user.return_value = [
            analysis_factory(extracted_data={"text": "a"}),
            analysis_factory(extracted_data={"text": "b"}),
        ]
        generator.generate_document_summary.side_effect = QuotaExceededError("quota", status_code=429)
        user_id = uuid4()

        result = await service.fresh_analysis(user_id)

        service.insights.delete_for_user.assert_awaited_once_with(user_id)
        service.analyses.clear_insights_for_user.assert_awaited_once_with(user_id)
        assert result["processedDocuments"] == 0
        assert result["quotaWarning"] is True
        assert result["detailedStatus"] == {"totalAnalyses": 2, "withInsights": 0, "needingInsights": 2}
        assert result["message"] == f"Re-analyzed 0 of 2 documents. {QUOTA_MESSAGE}"
        assert generator.generate_document_summary.await_count == 1


class TestIntelligentRestoration:
    @pytest.mark.asyncio
    async def test_wraps_restorer_result(self, service: AnalysisService, restorer: AsyncMock) -> None:
        restorer.restore.return_value = {"processed": 2, "skipped": 3, "failed": 0, "quotaWarning": False}

        result = await service.intelligent_restoration(uuid4())

        assert result == {
            "success": True,
            "processed": 2,
            "skipped": 3,
            "failed": 0,
            "quotaWarning": False,
            "message": "Restored 2 documents, 3 already had insights, 0 failed",
        }


class TestComprehensiveAnalysis:
    @pytest.mark.asyncio
    async def test_no_documents(self, service: AnalysisService) -> None:
        service.analyses.list_for_user.return_value = []

        result = await service.comprehensive_analysis(uuid4())

        assert result == {
            "success": True,
            "totalDocuments": 0,
            "totalNumbers": 0,
            "documentFindings": [],
            "insight": None,
        }
        service.documents.store_cross_document_insight.assert_not_called()

    @pytest.mark.asyncio
    async def test_findings_without_prices(self, service: AnalysisService, analysis_factory) -> None:
        analysis = analysis_factory(file_name="a.pdf", insights={"summary": "Angebot Sonnenhof"})
        service.analyses.list_for_user.return_value = [analysis]
        service.documents.store_cross_document_insight.return_value = None

        result = await service.comprehensive_analysis(uuid4())

        assert result["totalDocuments"] == 1
        assert result["insight"] is None
        finding = result["documentFindings"][0]
        assert finding["fileName"] == "a.pdf"
        assert finding["processingStatus"] == "completed"
        assert finding["analysis"]["summary"] == "Angebot Sonnenhof"
        assert finding["analysis"]["kind"] == "document_summary"


class TestAnalyticsQuery:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query(self, service: AnalysisService, query: str) -> None:
        with pytest.raises(ValidationError, match="Query is required"):
            await service.analytics_query(uuid4(), query)

    @pytest.mark.asyncio
    async def test_delegates_to_generator(
        self, service: AnalysisService, generator: AsyncMock, analysis_factory
    ) -> None:
        analyses = [analysis_factory()]
        service.analyses.list_for_user.return_value = analyses
        generator.answer_analytics_query.return_value = {"answer": "42", "insights": [], "recommendations": []}

        result = await service.analytics_query(uuid4(), "Durchschnittspreis?")

        assert result["answer"] == "42"
        generator.answer_analytics_query.assert_awaited_once_with("Durchschnittspreis?", analyses)
