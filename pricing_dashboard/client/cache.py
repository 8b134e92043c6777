"""Keyed query cache with refetch-on-invalidate."""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

QueryKey = Tuple[str, ...]
Fetcher = Callable[[], Awaitable[Any]]

UPLOADS_KEY: QueryKey = ("uploads",)
ANALYSES_KEY: QueryKey = ("analyses",)
INSIGHTS_KEY: QueryKey = ("insights",)
APPROVAL_STATS_KEY: QueryKey = ("approval-stats",)


class QueryCache:
    """Holds the last fetched value per key.

    ``invalidate`` drops an entry and, when a fetcher is registered for the
    key, fetches it again. Every invalidation is appended to ``history``.
    """

    def __init__(self):
        self._values: Dict[QueryKey, Any] = {}
        self._fetchers: Dict[QueryKey, Fetcher] = {}
        self.history: List[QueryKey] = []

    def register(self, key: QueryKey, fetcher: Fetcher) -> None:
        self._fetchers[key] = fetcher

    def peek(self, key: QueryKey) -> Optional[Any]:
        return self._values.get(key)

    def set(self, key: QueryKey, value: Any) -> None:
        self._values[key] = value

    async def get(self, key: QueryKey) -> Optional[Any]:
        """Return the cached value, fetching it first when missing."""
        if key not in self._values and key in self._fetchers:
            self._values[key] = await self._fetchers[key]()
        return self._values.get(key)

    async def invalidate(self, key: QueryKey) -> None:
        self.history.append(key)
        self._values.pop(key, None)

        fetcher = self._fetchers.get(key)
        if fetcher is None:
            return
        self._values[key] = await fetcher()
        LOGGER.debug(f"Refetched {'/'.join(key)}")

    async def invalidate_many(self, *keys: QueryKey) -> None:
        for key in keys:
            await self.invalidate(key)

    def clear(self) -> None:
        self._values.clear()
