"""Background behaviour around uploads and approval statistics."""

import asyncio
import os
from typing import Any, Dict, List, Optional, Union

from pricing_dashboard.client.api import DashboardClient
from pricing_dashboard.client.cache import (
    ANALYSES_KEY,
    APPROVAL_STATS_KEY,
    INSIGHTS_KEY,
    UPLOADS_KEY,
    QueryCache,
)
from pricing_dashboard.client.ocr_queue import MassOCRResult, run_mass_ocr, select_files_for_ocr
from pricing_dashboard.core.config import settings
from pricing_dashboard.core.exceptions import AppError
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)


def register_dashboard_queries(cache: QueryCache, client: DashboardClient) -> None:
    """Bind the document list keys to their endpoints."""
    cache.register(UPLOADS_KEY, client.list_uploads)
    cache.register(ANALYSES_KEY, client.list_analyses)
    cache.register(INSIGHTS_KEY, client.list_insights)


class UploadWorkflow:
    """Upload a file, then keep the dashboard fresh while the backend works.

    After a successful upload the uploads cache is invalidated at once. A
    poller invalidates uploads, analyses and insights every poll interval
    until a fixed deadline, and mass OCR starts after a short delay.
    """

    def __init__(
        self,
        client: DashboardClient,
        cache: QueryCache,
        poll_interval: Optional[float] = None,
        poll_duration: Optional[float] = None,
        auto_ocr_delay: Optional[float] = None,
    ):
        self.client = client
        self.cache = cache
        self.poll_interval = poll_interval if poll_interval is not None else settings.dashboard.upload_poll_interval
        self.poll_duration = poll_duration if poll_duration is not None else settings.dashboard.upload_poll_duration
        self.auto_ocr_delay = (
            auto_ocr_delay if auto_ocr_delay is not None else settings.dashboard.auto_ocr_delay
        )
        self.tasks: List[asyncio.Task] = []
        self.ocr_result: Optional[MassOCRResult] = None

    async def upload(self, path: Union[str, os.PathLike]) -> Dict[str, Any]:
        result = await self.client.upload_document(path)
        await self.cache.invalidate(UPLOADS_KEY)

        self.tasks.append(asyncio.create_task(self._poll()))
        self.tasks.append(asyncio.create_task(self._auto_ocr()))
        return result

    async def _refresh(self) -> None:
        try:
            await self.cache.invalidate_many(UPLOADS_KEY, ANALYSES_KEY, INSIGHTS_KEY)
        except AppError as e:
            LOGGER.warning(f"Refresh after upload failed: {e.message}")

    async def _poll(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.poll_duration
        while True:
            await asyncio.sleep(self.poll_interval)
            if loop.time() > deadline:
                break
            await self._refresh()

    async def _auto_ocr(self) -> None:
        await asyncio.sleep(self.auto_ocr_delay)
        try:
            uploads = await self.client.list_uploads()
            analyses = await self.client.list_analyses()
        except AppError as e:
            LOGGER.warning(f"Could not load documents for automatic OCR: {e.message}")
            return

        files = select_files_for_ocr(uploads or [], analyses or [])
        if not files:
            LOGGER.info("No files waiting for OCR")
            return

        LOGGER.info(f"Starting automatic OCR for {len(files)} files")
        self.ocr_result = await run_mass_ocr(self.client, files)
        await self._refresh()

    async def wait(self) -> None:
        """Wait for the poller and the automatic OCR to finish."""
        await asyncio.gather(*self.tasks)

    def cancel(self) -> None:
        for task in self.tasks:
            task.cancel()


class ApprovalStatsPoller:
    """Refresh approval statistics periodically for administrators."""

    def __init__(
        self,
        client: DashboardClient,
        cache: QueryCache,
        is_admin: bool,
        interval: Optional[float] = None,
    ):
        self.client = client
        self.cache = cache
        self.is_admin = is_admin
        self.interval = interval if interval is not None else settings.dashboard.approval_stats_interval
        self._task: Optional[asyncio.Task] = None
        self.cache.register(APPROVAL_STATS_KEY, self._fetch)

    async def _fetch(self) -> Dict[str, Any]:
        response = await self.client.approval_stats()
        return (response or {}).get("data", {})

    async def _run(self) -> None:
        while True:
            try:
                await self.cache.invalidate(APPROVAL_STATS_KEY)
            except AppError as e:
                LOGGER.warning(f"Approval stats refresh failed: {e.message}")
            await asyncio.sleep(self.interval)

    def start(self) -> bool:
        """Start polling; returns False for non-admin users."""
        if not self.is_admin:
            return False
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
        return True

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
