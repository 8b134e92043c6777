"""Tests for user-facing error texts."""

from pricing_dashboard.client.api import DashboardAPIError
from pricing_dashboard.client.errors import AI_LIMIT_MESSAGE, DEFAULT_MESSAGE, toast_message


def test_server_message_is_shown() -> None:
    assert toast_message(DashboardAPIError(400, "Missing required fields")) == "Missing required fields"


def test_empty_message_falls_back() -> None:
    assert toast_message(DashboardAPIError(500, "")) == DEFAULT_MESSAGE
    assert toast_message(None) == DEFAULT_MESSAGE


def test_ai_operations_mention_the_limit() -> None:
    assert toast_message(DashboardAPIError(None, "  "), ai_operation=True) == AI_LIMIT_MESSAGE


def test_plain_exception() -> None:
    assert toast_message(RuntimeError("kaputt")) == "kaputt"
