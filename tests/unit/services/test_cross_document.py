"""Tests for cross-document price statistics."""

from unittest.mock import AsyncMock

import pytest

from pricing_dashboard.services.cross_document import (
    CrossDocumentAnalyzer,
    category_of,
    collect_prices,
    price_statistics,
    visualization_data,
)


def _point(value: float, context: str = "Tarife - Row 2, Preis") -> dict:
    return {"value": value, "currency": "EUR", "context": context}


PRICES = [_point(40), _point(80), _point(120, "Angebot - Row 3, Preis"), _point(600)]


class TestStatistics:
    def test_collect_prices_skips_malformed_points(self, analysis_factory) -> None:
        analyses = [
            analysis_factory(price_data=[_point(10), {"value": "n/a"}, "junk"]),
            analysis_factory(price_data=[{"value": True, "context": "Inklusive"}, {"value": False}]),
            analysis_factory(price_data=None),
        ]

        assert collect_prices(analyses) == [_point(10)]

    def test_category_is_context_prefix(self) -> None:
        assert category_of(_point(1, "Sheet1 - Row 4, Preis")) == "Sheet1"
        assert category_of({"value": 1}) == "unknown"

    def test_price_statistics(self) -> None:
        stats = price_statistics(PRICES)

        assert stats["averagePrices"]["overall"] == 210.0
        assert stats["averagePrices"]["byCategory"] == {"Tarife": 240.0, "Angebot": 120.0}
        assert stats["priceRanges"]["min"] == 40.0
        assert stats["priceRanges"]["max"] == 600.0
        assert stats["priceRanges"]["median"] == 120.0
        assert stats["priceRanges"]["standardDeviation"] == pytest.approx(226.94, abs=0.01)

    def test_visualization_buckets(self) -> None:
        chart = visualization_data(PRICES, price_statistics(PRICES))

        assert [bucket["count"] for bucket in chart["priceDistribution"]] == [1, 1, 1, 0, 1]
        assert chart["priceDistribution"][-1]["max"] is None
        assert chart["summary"] == {
            "totalDataPoints": 4,
            "averagePrice": 210.0,
            "priceRange": "40.00 - 600.00 EUR",
        }
        assert {"name": "Angebot", "value": 120.0} in chart["averagesByCategory"]


class TestCrossDocumentAnalyzer:
    @pytest.mark.asyncio
    async def test_no_prices(self, analysis_factory) -> None:
        generator = AsyncMock()
        analyzer = CrossDocumentAnalyzer(generator=generator)

        assert await analyzer.analyze([analysis_factory()]) is None
        generator.generate_cross_document_trends.assert_not_called()

    @pytest.mark.asyncio
    async def test_local_fallbacks_when_model_returns_nothing(self, analysis_factory) -> None:
        generator = AsyncMock()
        generator.generate_cross_document_trends.return_value = {}
        analyzer = CrossDocumentAnalyzer(generator=generator)

        data, chart, count = await analyzer.analyze([analysis_factory(price_data=PRICES)])

        assert count == 4
        assert data["trends"] == []
        assert data["recommendations"][0] == "Average price across all documents: 210.00 EUR"
        assert data["summary"] == "Analyzed 4 price points from 1 documents with an average of 210.00 EUR."
        assert chart["summary"]["totalDataPoints"] == 4

    @pytest.mark.asyncio
    async def test_model_insights_are_merged(self, analysis_factory) -> None:
        generator = AsyncMock()
        generator.generate_cross_document_trends.return_value = {
            "summary": "Stabile Preise",
            "trends": [{"category": "market_position", "trend": "stable"}],
            "recommendations": ["Suiten bewerben"],
            "competitiveAnalysis": {"positioning": "mid-range"},
        }

        data, _, _ = await CrossDocumentAnalyzer(generator=generator).analyze(
            [analysis_factory(price_data=PRICES)]
        )

        assert data["summary"] == "Stabile Preise"
        assert data["recommendations"] == ["Suiten bewerben"]
        assert data["competitiveAnalysis"] == {"positioning": "mid-range"}
