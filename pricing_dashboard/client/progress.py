"""Per-document progress display for the comprehensive analysis.

The backend analyzes all documents in one request, so per-document progress
is simulated while that request runs.
"""

import asyncio
import random
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from pricing_dashboard.core.config import settings
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T")


async def simulate_comprehensive_progress(
    documents: List[str],
    run: Callable[[], Awaitable[T]],
    on_update: Optional[Callable[[str, str], None]] = None,
    statuses: Optional[Dict[str, str]] = None,
    rng: Optional[random.Random] = None,
) -> T:
    """Tick documents through ``processing`` and ``completed`` around one real request.

    The request starts right away. Each document is marked ``processing``,
    held for a random 0.8 to 1.8 s and marked ``completed``; then the request
    result is awaited. If the request fails, every document not yet completed
    is marked ``failed`` and the error is re-raised.

    Args:
        documents: Document names in display order
        run: Coroutine factory for the real request
        on_update: Called with (document, status) on every change
        statuses: Mapping updated in place, created when omitted
        rng: Random source for the delays

    Returns:
        Whatever ``run`` returns
    """
    statuses = {} if statuses is None else statuses
    rng = rng or random.Random()
    min_delay = settings.dashboard.progress_min_delay
    max_delay = settings.dashboard.progress_max_delay

    def update(document: str, status: str) -> None:
        statuses[document] = status
        if on_update is not None:
            on_update(document, status)

    for document in documents:
        update(document, "pending")

    task = asyncio.ensure_future(run())
    try:
        for document in documents:
            if task.done() and task.exception() is not None:
                break
            update(document, "processing")
            await asyncio.sleep(rng.uniform(min_delay, max_delay))
            update(document, "completed")
        return await task
    except Exception:
        for document in documents:
            if statuses.get(document) != "completed":
                update(document, "failed")
        LOGGER.warning("Comprehensive analysis failed, remaining documents marked as failed")
        raise
    finally:
        if not task.done():
            task.cancel()
