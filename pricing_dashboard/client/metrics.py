"""Figures and views derived from API records for the dashboard."""

import json
from typing import Any, Dict, Iterable, List, Mapping

from pricing_dashboard.utils.insight_parser import render_worksheets

NO_CONTENT = "Kein Inhalt verfügbar"


def _prices(analysis: Mapping[str, Any]) -> List[float]:
    price_data = analysis.get("priceData")
    if not isinstance(price_data, list):
        return []
    return [
        float(p["value"])
        for p in price_data
        if isinstance(p, Mapping) and isinstance(p.get("value"), (int, float)) and not isinstance(p.get("value"), bool)
    ]


def average_price(analyses: Iterable[Mapping[str, Any]]) -> float:
    """Mean of the per-analysis mean prices; 0 when no analysis has prices."""
    means = []
    for analysis in analyses:
        prices = _prices(analysis)
        if prices:
            means.append(sum(prices) / len(prices))
    if not means:
        return 0.0
    return sum(means) / len(means)


def processing_progress(uploads: List[Mapping[str, Any]]) -> float:
    """Percentage of uploads whose status is ``completed``."""
    if not uploads:
        return 0.0
    completed = sum(1 for u in uploads if u.get("uploadStatus") == "completed")
    return completed / len(uploads) * 100


def document_view_content(analysis: Mapping[str, Any]) -> str:
    """Text shown in the document viewer."""
    data = analysis.get("extractedData")
    if isinstance(data, Mapping):
        text = data.get("text")
        if isinstance(text, str) and text:
            return text
        worksheets = data.get("worksheets")
        if isinstance(worksheets, list) and worksheets:
            return render_worksheets(worksheets)
        if data:
            return json.dumps(data, indent=2, ensure_ascii=False, default=str)
    if isinstance(data, str) and data:
        return data
    if isinstance(data, list) and data:
        return json.dumps(data, indent=2, ensure_ascii=False, default=str)
    return NO_CONTENT


def group_files_by_folder(files: Iterable[Mapping[str, Any]]) -> Dict[str, List[Mapping[str, Any]]]:
    """Group extracted files by folderPath, keeping first-seen folder order."""
    groups: Dict[str, List[Mapping[str, Any]]] = {}
    for file_info in files:
        folder = file_info.get("folderPath") or "Root"
        groups.setdefault(folder, []).append(file_info)
    return groups
