"""Price statistics and chart data across several document analyses."""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pricing_dashboard.services.insight_generator import InsightGenerator
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

PRICE_BUCKETS = (
    ("0-50", 0.0, 50.0),
    ("50-100", 50.0, 100.0),
    ("100-200", 100.0, 200.0),
    ("200-500", 200.0, 500.0),
    ("500+", 500.0, math.inf),
)


def collect_prices(analyses: Sequence[Any]) -> List[Dict[str, Any]]:
    prices: List[Dict[str, Any]] = []
    for analysis in analyses:
        for point in analysis.price_data or []:
            value = point.get("value") if isinstance(point, dict) else None
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                prices.append(point)
    return prices


def category_of(point: Dict[str, Any]) -> str:
    """Category of a price point: the context up to the first ``" - "``."""
    context = str(point.get("context") or "")
    return context.split(" - ")[0] or "unknown"


def price_statistics(prices: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """Overall, per-category and spread statistics of the price values.

    The median is the upper middle element for even counts and the standard
    deviation is the population one.
    """
    values = [float(p["value"]) for p in prices]
    average = sum(values) / len(values)
    ordered = sorted(values)
    median = ordered[len(ordered) // 2]
    variance = sum((v - average) ** 2 for v in values) / len(values)

    by_category: Dict[str, List[float]] = {}
    for point in prices:
        by_category.setdefault(category_of(point), []).append(float(point["value"]))
    averages_by_category = {name: sum(vals) / len(vals) for name, vals in by_category.items()}

    return {
        "averagePrices": {
            "overall": average,
            "byCategory": averages_by_category,
            "bySource": dict(averages_by_category),
        },
        "priceRanges": {
            "min": ordered[0],
            "max": ordered[-1],
            "median": median,
            "standardDeviation": math.sqrt(variance),
        },
    }


def visualization_data(prices: Sequence[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    distribution = []
    for label, lower, upper in PRICE_BUCKETS:
        count = sum(1 for p in prices if lower <= float(p["value"]) < upper)
        distribution.append({
            "range": label,
            "min": lower,
            "max": None if math.isinf(upper) else upper,
            "count": count,
        })

    ranges = data["priceRanges"]
    return {
        "priceDistribution": distribution,
        "averagesByCategory": [
            {"name": name, "value": value}
            for name, value in data["averagePrices"]["byCategory"].items()
        ],
        "timeline": [],
        "summary": {
            "totalDataPoints": len(prices),
            "averagePrice": data["averagePrices"]["overall"],
            "priceRange": f"{ranges['min']:.2f} - {ranges['max']:.2f} EUR",
        },
    }


class CrossDocumentAnalyzer:
    """Builds the ``comprehensive_analysis`` insight for a set of analyses."""

    def __init__(self, generator: Optional[InsightGenerator] = None):
        self.generator = generator or InsightGenerator()

    async def analyze(self, analyses: Sequence[Any]) -> Optional[Tuple[Dict[str, Any], Dict[str, Any], int]]:
        """Compute insight data and chart data.

        Args:
            analyses: DocumentAnalysis rows

        Returns:
            ``(data, visualization_data, price_count)`` or None when the
            analyses hold no prices
        """
        prices = collect_prices(analyses)
        if not prices:
            LOGGER.info("No price data available for cross-document analysis")
            return None

        data = price_statistics(prices)
        ai_insights = await self.generator.generate_cross_document_trends(prices, analyses)

        overall = data["averagePrices"]["overall"]
        ranges = data["priceRanges"]
        categories = list(data["averagePrices"]["byCategory"].keys())

        data["trends"] = ai_insights.get("trends") or []
        data["recommendations"] = ai_insights.get("recommendations") or [
            f"Average price across all documents: {overall:.2f} EUR",
            f"Price range: {ranges['min']:.2f} - {ranges['max']:.2f} EUR",
            f"Most data points from: {categories[0] if categories else 'unknown'}",
        ]
        data["summary"] = ai_insights.get("summary") or (
            f"Analyzed {len(prices)} price points from {len(analyses)} documents "
            f"with an average of {overall:.2f} EUR."
        )
        if ai_insights.get("competitiveAnalysis"):
            data["competitiveAnalysis"] = ai_insights["competitiveAnalysis"]

        return data, visualization_data(prices, data), len(prices)
