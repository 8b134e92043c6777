"""Tests for the AI operation endpoints."""

from unittest.mock import AsyncMock

import pytest

from pricing_dashboard.api.endpoints.ai import get_analysis_service
from pricing_dashboard.core.exceptions import InsightGenerationError, QuotaExceededError
from pricing_dashboard.main import app
from pricing_dashboard.services.analysis_service import AnalysisService


@pytest.fixture
def analysis_service() -> AsyncMock:
    service = AsyncMock(spec=AnalysisService)
    app.dependency_overrides[get_analysis_service] = lambda: service
    return service


class TestSummaries:
    def test_mass_summary(self, test_client, analysis_service, user_id, user_headers) -> None:
        analysis_service.mass_summary.return_value = {
            "success": True,
            "processed_documents": 2,
            "failed_documents": 1,
            "quota_warning": True,
            "detailed_status": {"total_analyses": 3, "with_insights": 2, "needing_insights": 1},
            "message": "Processed 2 documents",
        }

        response = test_client.post("/api/ai/mass-summary", json={}, headers=user_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["processedDocuments"] == 2
        assert body["quotaWarning"] is True
        assert body["detailedStatus"] == {"totalAnalyses": 3, "withInsights": 2, "needingInsights": 1}
        analysis_service.mass_summary.assert_awaited_once_with(user_id)

    def test_fresh_analysis(self, test_client, analysis_service, user_id, user_headers) -> None:
        analysis_service.fresh_analysis.return_value = {"processed_documents": 4}

        response = test_client.post("/api/ai/fresh-analysis", json={}, headers=user_headers)

        assert response.status_code == 200
        assert response.json()["processedDocuments"] == 4
        analysis_service.fresh_analysis.assert_awaited_once_with(user_id)

    def test_restoration(self, test_client, analysis_service, user_headers) -> None:
        analysis_service.intelligent_restoration.return_value = {
            "processed": 1, "skipped": 2, "failed": 0, "message": "Restored 1 of 3 documents",
        }

        response = test_client.post("/api/ai/intelligent-restoration", json={}, headers=user_headers)

        assert response.status_code == 200
        assert response.json()["skipped"] == 2

    def test_requires_authentication(self, test_client, analysis_service) -> None:
        assert test_client.post("/api/ai/mass-summary", json={}).status_code == 401
        analysis_service.mass_summary.assert_not_called()


class TestComprehensiveAnalysis:
    def test_returns_findings(self, test_client, analysis_service, user_headers) -> None:
        analysis_service.comprehensive_analysis.return_value = {
            "total_documents": 1,
            "total_numbers": 3,
            "document_findings": [
                {"file_name": "angebot.pdf", "processing_status": "completed", "analysis": {"summary": "ok"}}
            ],
            "insight": None,
        }

        response = test_client.post("/api/ai/comprehensive-analysis", json={}, headers=user_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["totalNumbers"] == 3
        assert body["documentFindings"][0]["fileName"] == "angebot.pdf"

    def test_quota_exhausted(self, test_client, analysis_service, user_headers) -> None:
        analysis_service.comprehensive_analysis.side_effect = QuotaExceededError("OpenAI quota exceeded")

        response = test_client.post("/api/ai/comprehensive-analysis", json={}, headers=user_headers)

        assert response.status_code == 429
        assert response.json()["detail"]["message"] == "OpenAI quota exceeded"

    def test_generation_failure(self, test_client, analysis_service, user_headers) -> None:
        analysis_service.comprehensive_analysis.side_effect = InsightGenerationError("Model returned nothing")

        response = test_client.post("/api/ai/comprehensive-analysis", json={}, headers=user_headers)

        assert response.status_code == 500


class TestAnalyticsQuery:
    def test_answers_question(self, test_client, analysis_service, user_id, user_headers) -> None:
        analysis_service.analytics_query.return_value = {
            "answer": "Der Durchschnittspreis liegt bei 89 €.",
            "insights": ["Preise stabil"],
            "recommendations": [],
        }

        response = test_client.post(
            "/api/ai/analytics-query", json={"query": "Durchschnittspreis?"}, headers=user_headers
        )

        assert response.status_code == 200
        assert response.json()["answer"].startswith("Der Durchschnittspreis")
        analysis_service.analytics_query.assert_awaited_once_with(user_id, "Durchschnittspreis?")

    def test_empty_query_is_passed_as_empty_string(self, test_client, analysis_service, user_id, user_headers) -> None:
        analysis_service.analytics_query.return_value = {"answer": ""}

        response = test_client.post("/api/ai/analytics-query", json={}, headers=user_headers)

        assert response.status_code == 200
        analysis_service.analytics_query.assert_awaited_once_with(user_id, "")
