"""User-facing error texts."""

from typing import Optional

from pricing_dashboard.core.exceptions import AppError

DEFAULT_MESSAGE = "Ein Fehler ist aufgetreten"
AI_LIMIT_MESSAGE = (
    "Möglicherweise ist das OpenAI API-Limit erreicht. Bitte versuchen Sie es später erneut."
)


def toast_message(error: Optional[BaseException], ai_operation: bool = False) -> str:
    """Return the server's message when there is one, else the fallback text."""
    message = ""
    if isinstance(error, AppError):
        message = error.message
    elif error is not None:
        message = str(error)

    if message and message.strip():
        return message.strip()
    return AI_LIMIT_MESSAGE if ai_operation else DEFAULT_MESSAGE
