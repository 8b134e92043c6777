"""Async client and dashboard-side logic for the pricing dashboard API."""

from pricing_dashboard.client.api import DashboardAPIError, DashboardClient
from pricing_dashboard.client.cache import QueryCache

__all__ = ["DashboardAPIError", "DashboardClient", "QueryCache"]
