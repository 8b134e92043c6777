"""Tests for paced restoration of missing insights."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from pricing_dashboard.core.exceptions import APIClientError, QuotaExceededError
from pricing_dashboard.repositories.document_analysis_repository import DocumentAnalysisRepository
from pricing_dashboard.schemas.insights import CalculationBreakdown
from pricing_dashboard.services.insight_restorer import InsightRestorer


@pytest.fixture
def generator() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def restorer(generator: AsyncMock) -> InsightRestorer:
    service = InsightRestorer(MagicMock(), generator=generator, pacing_seconds=0)
    service.analyses = AsyncMock(spec=DocumentAnalysisRepository)
    return service


class TestRestore:
    @pytest.mark.asyncio
    async def test_only_documents_missing_insights_are_restored(
        self, restorer: InsightRestorer, generator: AsyncMock, analysis_factory
    ) -> None:
        good = analysis_factory(insights={"keyFindings": ["Suite 249 €"]}, extracted_data={"text": "a"})
        empty = analysis_factory(extracted_data=None)
        restorable = analysis_factory(file_name="kalk.xlsx", extracted_data={"text": "Marge 27%"})
        unusable = analysis_factory(file_name="scan.png", extracted_data={"text": "???"})
        restorer.analyses.list_for_user.return_value = [good, empty, restorable, unusable]
        generator.generate_calculation_breakdown.side_effect = [
            CalculationBreakdown(summary="Marge 27 %"),
            None,
        ]

        result = await restorer.restore(uuid4())

        assert result == {"processed": 1, "skipped": 2, "failed": 1, "quotaWarning": False}
        restorer.analyses.update.assert_awaited_once()
        args, kwargs = restorer.analyses.update.call_args
        assert args[0] == restorable.id
        assert kwargs["insights"]["kind"] == "calculation_breakdown"
        assert kwargs["insights"]["summary"] == "Marge 27 %"

    @pytest.mark.asyncio
    async def test_stops_at_first_quota_error(
        self, restorer: InsightRestorer, generator: AsyncMock, analysis_factory
    ) -> None:
        restorer.analyses.list_for_user.return_value = [
            analysis_factory(extracted_data={"text": "a"}),
            analysis_factory(extracted_data={"text": "b"}),
        ]
        generator.generate_calculation_breakdown.side_effect = QuotaExceededError("quota", status_code=429)

        result = await restorer.restore(uuid4())

        assert result == {"processed": 0, "skipped": 0, "failed": 1, "quotaWarning": True}
        assert generator.generate_calculation_breakdown.await_count == 1

    @pytest.mark.asyncio
    async def test_other_errors_continue(
        self, restorer: InsightRestorer, generator: AsyncMock, analysis_factory
    ) -> None:
        restorer.analyses.list_for_user.return_value = [
            analysis_factory(extracted_data={"text": "a"}),
            analysis_factory(extracted_data={"text": "b"}),
        ]
        generator.generate_calculation_breakdown.side_effect = [
            APIClientError("bad gateway", status_code=502),
            CalculationBreakdown(summary="ok"),
        ]

        result = await restorer.restore(uuid4())

        assert result == {"processed": 1, "skipped": 0, "failed": 1, "quotaWarning": False}
