"""Tests for upload follow-up and approval stats polling."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from pricing_dashboard.client.api import DashboardClient
from pricing_dashboard.client.cache import (
    ANALYSES_KEY,
    APPROVAL_STATS_KEY,
    INSIGHTS_KEY,
    UPLOADS_KEY,
    QueryCache,
)
from pricing_dashboard.client.workflows import ApprovalStatsPoller, UploadWorkflow, register_dashboard_queries
from pricing_dashboard.core.exceptions import APIClientError


@pytest.fixture
def client() -> AsyncMock:
    mock = AsyncMock(spec=DashboardClient)
    mock.upload_document.return_value = {"success": True, "uploadId": "up-1"}
    mock.list_uploads.return_value = [
        {"id": "up-1", "extractedFiles": [{"fileName": "angebot.pdf", "fileType": "pdf"}]}
    ]
    mock.list_analyses.return_value = []
    mock.list_insights.return_value = []
    mock.process_ocr.return_value = {"success": True}
    return mock


@pytest.fixture
def cache(client: AsyncMock) -> QueryCache:
    query_cache = QueryCache()
    register_dashboard_queries(query_cache, client)
    return query_cache


class TestUploadWorkflow:
    @pytest.mark.asyncio
    async def test_upload_refreshes_and_runs_auto_ocr(self, client: AsyncMock, cache: QueryCache) -> None:
        workflow = UploadWorkflow(client, cache, poll_interval=0.01, poll_duration=0.05, auto_ocr_delay=0)

        result = await workflow.upload("tarife.csv")
        assert cache.history == [UPLOADS_KEY]
        await workflow.wait()

        assert result["uploadId"] == "up-1"
        client.process_ocr.assert_awaited_once_with("up-1", "angebot.pdf")
        assert workflow.ocr_result.successful == 1
        assert ANALYSES_KEY in cache.history
        assert INSIGHTS_KEY in cache.history

    @pytest.mark.asyncio
    async def test_nothing_to_ocr(self, client: AsyncMock, cache: QueryCache) -> None:
        client.list_analyses.return_value = [{"fileName": "angebot.pdf", "analysisType": "mistral_ocr"}]
        workflow = UploadWorkflow(client, cache, poll_interval=0.01, poll_duration=0.02, auto_ocr_delay=0)

        await workflow.upload("angebot.pdf")
        await workflow.wait()

        client.process_ocr.assert_not_called()
        assert workflow.ocr_result is None

    @pytest.mark.asyncio
    async def test_failed_upload_starts_nothing(self, client: AsyncMock, cache: QueryCache) -> None:
        client.upload_document.side_effect = APIClientError("File too large", status_code=413)
        workflow = UploadWorkflow(client, cache, poll_interval=0.01, poll_duration=0.02, auto_ocr_delay=0)

        with pytest.raises(APIClientError):
            await workflow.upload("big.zip")

        assert workflow.tasks == []
        assert cache.history == []


class TestApprovalStatsPoller:
    @pytest.mark.asyncio
    async def test_regular_users_do_not_poll(self, client: AsyncMock) -> None:
        poller = ApprovalStatsPoller(client, QueryCache(), is_admin=False, interval=0.01)

        assert poller.start() is False
        client.approval_stats.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_polling(self, client: AsyncMock) -> None:
        client.approval_stats.return_value = {"success": True, "data": {"pending": 3, "total": 3}}
        cache = QueryCache()
        poller = ApprovalStatsPoller(client, cache, is_admin=True, interval=0.01)

        assert poller.start() is True
        await asyncio.sleep(0.05)
        await poller.stop()

        assert cache.peek(APPROVAL_STATS_KEY) == {"pending": 3, "total": 3}
        assert client.approval_stats.await_count >= 2
