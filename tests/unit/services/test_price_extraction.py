"""Tests for worksheet and OCR text price detection."""

import pytest

from pricing_dashboard.services.price_extraction import (
    extract_prices_from_text,
    extract_prices_from_worksheet,
    price_column_indices,
    summarize_prices,
)


class TestPriceColumns:
    def test_detects_english_and_german_headers(self) -> None:
        headers = ["Zimmer", "Preis pro Nacht", "Total Cost", None, "Betrag €", 7]

        assert price_column_indices(headers) == [1, 2, 4]


class TestWorksheetExtraction:
    def test_numeric_cells_in_price_columns(self) -> None:
        headers = ["Zimmer", "Preis"]
        rows = [["Einzelzimmer", 79], ["Doppelzimmer", 119.5], ["Suite", 0]]

        prices = extract_prices_from_worksheet(rows, headers, "Tarife")

        assert [p["value"] for p in prices] == [79.0, 119.5]
        assert prices[0] == {
            "value": 79.0,
            "currency": "EUR",
            "context": "Tarife - Row 2, Preis",
            "row": 2,
            "column": 2,
            "confidence": 0.95,
        }

    def test_numeric_cells_outside_price_columns_are_ignored(self) -> None:
        prices = extract_prices_from_worksheet([[12, 3]], ["Nächte", "Personen"], "Sheet1")

        assert prices == []

    def test_currency_strings_get_column_dependent_confidence(self) -> None:
        headers = ["Beschreibung", "Preis"]
        rows = [["Frühstück 15.50 €", "89.00 €"]]

        prices = extract_prices_from_worksheet(rows, headers, "Sheet1")

        by_column = {p["column"]: p for p in prices}
        assert by_column[1]["value"] == 15.5
        assert by_column[1]["confidence"] == 0.7
        assert by_column[2]["value"] == 89.0
        assert by_column[2]["confidence"] == 0.9

    def test_dollar_amounts_are_usd(self) -> None:
        prices = extract_prices_from_worksheet([["$ 25.00"]], ["Notiz"], "Sheet1")

        assert prices[0]["currency"] == "USD"

    def test_missing_header_falls_back_to_column_number(self) -> None:
        prices = extract_prices_from_worksheet([["a", "b", "10.00 €"]], ["A"], "Daten")

        assert prices[0]["context"] == "Daten - Row 2, Column 3"

    def test_booleans_are_not_prices(self) -> None:
        assert extract_prices_from_worksheet([[True]], ["Preis"], "Sheet1") == []


class TestTextExtraction:
    def test_finds_prices_line_by_line(self, sample_ocr_text: str) -> None:
        prices = extract_prices_from_text(sample_ocr_text)

        assert [p["value"] for p in prices] == [89.0, 15.5, 104.5]
        assert prices[0]["context"] == "Line 2: Doppelzimmer pro Nacht: 89,00 €"
        assert prices[0]["row"] == 2
        assert prices[0]["column"] == 24
        assert all(p["confidence"] == 0.8 for p in prices)

    def test_text_without_currency_has_no_prices(self) -> None:
        assert extract_prices_from_text("Zimmer 12\nEtage 3") == []


class TestSummarizePrices:
    def test_empty(self) -> None:
        assert summarize_prices([]) == {"total": 0, "average": 0.0, "min": 0.0, "max": 0.0}

    def test_statistics(self) -> None:
        summary = summarize_prices([{"value": 10}, {"value": 30.0}, {"value": "n/a"}])

        assert summary["total"] == 2
        assert summary["average"] == pytest.approx(20.0)
        assert summary["min"] == 10.0
        assert summary["max"] == 30.0
