import json
import re
from typing import Any, Dict, List, Optional, Union

from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around a JSON payload.

    Handles a payload that is entirely fenced as well as prose with a single
    fenced block inside it.

    Args:
        text: Raw model output

    Returns:
        The text inside the first fence, or the stripped input
    """
    cleaned = text.strip()
    match = _FENCE_PATTERN.search(cleaned)
    if match:
        return match.group(1).strip()

    # Unterminated fence
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    return cleaned.strip()


def parse_json_safely(text: Optional[str]) -> Union[Dict[str, Any], List[Any], None]:
    """Parse JSON from text, handling common LLM formatting issues.

    Handles:
    - Markdown code blocks (```json ... ```)
    - Leading/trailing prose around a single object
    - Trailing garbage after a complete object

    Args:
        text: The text containing JSON

    Returns:
        Parsed JSON object or None if parsing fails
    """
    if not text or not text.strip():
        return None

    cleaned_text = strip_code_fences(text)

    try:
        return json.loads(cleaned_text)
    except json.JSONDecodeError as e:
        LOGGER.debug(f"Initial JSON parse failed: {e}, attempting repairs...")

        # A complete value followed by extra data
        if "Extra data" in str(e) and e.pos > 0:
            try:
                return json.loads(cleaned_text[:e.pos].strip())
            except json.JSONDecodeError:
                pass

        # Decode from the first brace or bracket onwards
        decoder = json.JSONDecoder()
        for opener in ("{", "["):
            start = cleaned_text.find(opener)
            if start == -1:
                continue
            try:
                value, _ = decoder.raw_decode(cleaned_text, start)
                return value
            except json.JSONDecodeError:
                continue

        LOGGER.warning(f"Failed to parse JSON: {e}")
        return None


def looks_like_json(text: str) -> bool:
    """Cheap check whether a string is probably a (possibly fenced) JSON document."""
    stripped = text.strip()
    return stripped.startswith(("{", "[", "```"))
