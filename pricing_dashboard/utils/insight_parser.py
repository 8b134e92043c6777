"""Helpers for reading insight payloads and extracted document content.

Analyses created before the typed insight schema existed hold one of several
shapes: a plain insight object, an object whose ``summary`` is itself a JSON
string, a markdown-fenced JSON string, or free text. ``parse_insights`` turns
all of them into an ``AnalysisInsights`` variant.
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from pricing_dashboard.schemas.insights import (
    BusinessInsights,
    CalculationBreakdown,
    DocumentSummary,
    InsightModel,
    ProcessingFailure,
    analysis_insights_adapter,
)
from pricing_dashboard.utils.json_parser import looks_like_json, parse_json_safely
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

_CALCULATION_KEYS = ("statisticalData", "calculationBreakdown", "financialSummary")
_WORKBOOK_KEYS = ("keyMetrics", "dataQuality")
_SUMMARY_KEYS = ("documentType", "keyFindings", "businessInsights", "summary")


def _is_empty(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return raw.strip() in ("", "{}")
    if isinstance(raw, dict):
        return len(raw) == 0
    return False


def _unwrap_nested_summary(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Replace ``{"summary": "<json>"}`` wrappers with the inner object."""
    summary = payload.get("summary")
    if isinstance(summary, str) and looks_like_json(summary):
        nested = parse_json_safely(summary)
        if isinstance(nested, dict) and nested:
            merged = {k: v for k, v in payload.items() if k != "summary"}
            merged.update(nested)
            return merged
    return payload


def _classify_legacy(payload: Dict[str, Any]) -> InsightModel:
    if any(key in payload for key in _CALCULATION_KEYS):
        return CalculationBreakdown.model_validate(payload)
    if any(key in payload for key in _WORKBOOK_KEYS):
        return BusinessInsights.model_validate(payload)
    if "error" in payload and not any(payload.get(key) for key in _SUMMARY_KEYS):
        return ProcessingFailure.model_validate(payload)
    return DocumentSummary.model_validate(payload)


def parse_insights(raw: Any, allow_plain_text: bool = True) -> Optional[InsightModel]:
    """Parse any stored insight payload into a typed variant.

    Args:
        raw: Value of ``DocumentAnalysis.insights`` (dict, str or None)
        allow_plain_text: Treat non-JSON strings as a free-text summary

    Returns:
        Insight variant, or None when there is nothing usable. Never raises.
    """
    if _is_empty(raw):
        return None

    payload: Any = raw
    if isinstance(raw, str):
        payload = parse_json_safely(raw) if looks_like_json(raw) else None
        if payload is None:
            if allow_plain_text:
                return DocumentSummary(summary=raw.strip())
            return None

    if not isinstance(payload, dict) or not payload:
        return None

    if "kind" in payload:
        try:
            return analysis_insights_adapter.validate_python(payload)
        except ValidationError as e:
            LOGGER.debug(f"Tagged insight payload failed validation, reading as legacy: {e}")

    try:
        return _classify_legacy(_unwrap_nested_summary(payload))
    except ValidationError as e:
        LOGGER.warning(f"Could not interpret insight payload: {e}")
        return None


def insight_has_content(insights: Optional[InsightModel]) -> bool:
    """Whether a typed insight carries anything worth showing.

    Processing failures never count. Other variants count when their summary
    is longer than 10 chars or any of their findings, metrics or breakdowns
    is filled in.
    """
    if insights is None or isinstance(insights, ProcessingFailure):
        return False
    if len(insights.summary.strip()) > 10:
        return True
    if isinstance(insights, DocumentSummary):
        return bool(
            insights.document_type
            or insights.key_findings
            or insights.business_insights
            or insights.recommendations
        )
    if isinstance(insights, BusinessInsights):
        return bool(insights.key_metrics or insights.recommendations)
    return bool(
        insights.document_type
        or insights.statistical_data
        or insights.calculation_breakdown
        or insights.key_metrics
        or insights.financial_summary
        or insights.recommendations
    )


def _insight_object_has_content(obj: Dict[str, Any]) -> bool:
    if not obj:
        return False
    if "kind" in obj:
        return insight_has_content(parse_insights(obj))
    summary = obj.get("summary")
    return bool(
        (isinstance(summary, str) and len(summary) > 10)
        or obj.get("keyFindings")
        or obj.get("documentType")
        or obj.get("businessInsights")
        or obj.get("recommendations")
    )


def has_good_insights(raw: Any) -> bool:
    """Whether stored insights are meaningful enough to keep.

    Raw strings that are not JSON count when they are longer than 50 chars.
    """
    if _is_empty(raw):
        return False

    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return len(raw) > 50
        return isinstance(parsed, dict) and _insight_object_has_content(parsed)

    if isinstance(raw, dict):
        return _insight_object_has_content(raw)

    return False


def has_extracted_data(extracted_data: Any) -> bool:
    if not extracted_data:
        return False
    if isinstance(extracted_data, str):
        return bool(extracted_data.strip())
    if isinstance(extracted_data, dict):
        if "error" in extracted_data and not (extracted_data.get("text") or extracted_data.get("worksheets")):
            return False
        return len(extracted_data) > 0
    return False


def render_worksheets(worksheets: List[Dict[str, Any]]) -> str:
    """Render worksheets as ``=== name ===`` blocks of tab-separated rows."""
    blocks = []
    for worksheet in worksheets:
        name = worksheet.get("worksheetName") or worksheet.get("name") or "Sheet"
        rows = worksheet.get("data") or []
        headers = worksheet.get("headers") or []
        lines = []
        if headers:
            lines.append("\t".join("" if cell is None else str(cell) for cell in headers))
        for row in rows:
            lines.append("\t".join("" if cell is None else str(cell) for cell in row))
        blocks.append(f"=== {name} ===\n" + ("\n".join(lines) if lines else "No data"))
    return "\n\n".join(blocks)


def document_text(extracted_data: Any) -> str:
    """Best textual representation of an analysis' extracted data."""
    if not extracted_data:
        return ""
    if isinstance(extracted_data, str):
        return extracted_data
    if isinstance(extracted_data, dict):
        if extracted_data.get("text"):
            return str(extracted_data["text"])
        if extracted_data.get("worksheets"):
            return render_worksheets(extracted_data["worksheets"])
        return json.dumps(extracted_data, ensure_ascii=False, default=str)
    return str(extracted_data)


def truncate_text(text: str, limit: int = 4000) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "... [truncated]"
