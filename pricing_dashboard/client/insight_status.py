"""Badge shown next to a document in the analysis list."""

import json
from typing import Any, Mapping, Optional

from pricing_dashboard.utils.insight_parser import insight_has_content, parse_insights

PENDING = "AI analysis pending"
COMPLETE = "AI analysis complete"
PROCESSING = "processing"
NO_INSIGHTS = "no insights"

CONTENT_KEYS = ("documentType", "keyFindings", "businessInsights")


def _truthy(value: Any) -> bool:
    # Empty lists and dicts still count as present
    if isinstance(value, (list, dict)):
        return True
    return bool(value)


def _badge_for(insights: Any) -> str:
    if isinstance(insights, str):
        if insights.strip() in ("", "{}"):
            return PENDING
        insights = json.loads(insights)

    if not isinstance(insights, dict) or not insights:
        return PENDING

    # Typed payloads as served by the API
    if "kind" in insights:
        return COMPLETE if insight_has_content(parse_insights(insights)) else PENDING

    if any(_truthy(insights.get(key)) for key in CONTENT_KEYS):
        return COMPLETE

    summary = insights.get("summary")
    if not isinstance(summary, str):
        return COMPLETE if _truthy(summary) else PENDING

    # Legacy rows wrap the whole insight object as a JSON string in ``summary``
    try:
        nested = json.loads(summary)
    except ValueError:
        return COMPLETE if len(summary.strip()) > 10 else PENDING
    if isinstance(nested, dict):
        return COMPLETE if any(_truthy(nested.get(key)) for key in CONTENT_KEYS) else PENDING
    return COMPLETE if len(summary.strip()) > 10 else PENDING


def derive_insight_badge(analysis: Optional[Mapping[str, Any]], processing: bool = False) -> str:
    """Derive the badge for a document's analysis.

    Args:
        analysis: The analysis record as served by the API, or None
        processing: True while an AI operation runs for this document

    Returns:
        One of ``AI analysis pending``, ``AI analysis complete``,
        ``processing`` or ``no insights``. Unparseable insights yield
        ``AI analysis pending``.
    """
    if processing:
        return PROCESSING
    if not isinstance(analysis, Mapping):
        return NO_INSIGHTS

    insights = analysis.get("insights")
    if insights is None:
        return NO_INSIGHTS

    try:
        return _badge_for(insights)
    except (ValueError, TypeError, AttributeError):
        return PENDING
