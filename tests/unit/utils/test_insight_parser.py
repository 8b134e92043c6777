"""Tests for reading stored insight payloads and extracted content."""

import json

import pytest

from pricing_dashboard.schemas.insights import (
    BusinessInsights,
    CalculationBreakdown,
    DocumentSummary,
    ProcessingFailure,
    dump_insights,
)
from pricing_dashboard.utils.insight_parser import (
    document_text,
    has_extracted_data,
    has_good_insights,
    parse_insights,
    render_worksheets,
    truncate_text,
)


class TestParseInsights:
    @pytest.mark.parametrize("raw", [None, "", "{}", {}])
    def test_empty_payloads(self, raw) -> None:
        assert parse_insights(raw) is None

    def test_tagged_payload_round_trips(self) -> None:
        stored = dump_insights(BusinessInsights(summary="Tarife 2025", recommendations=["Preise anheben"]))

        parsed = parse_insights(stored)

        assert isinstance(parsed, BusinessInsights)
        assert parsed.summary == "Tarife 2025"
        assert stored["kind"] == "business_insights"
        assert stored["schemaVersion"] == 1

    def test_legacy_document_summary(self) -> None:
        parsed = parse_insights({"summary": "Preisliste", "documentType": "price list", "keyFindings": "Suite"})

        assert isinstance(parsed, DocumentSummary)
        assert parsed.document_type == "price list"
        assert parsed.key_findings == ["Suite"]

    def test_nested_json_summary_is_unwrapped(self) -> None:
        inner = {"summary": "Angebot Hotel Sonnenhof", "documentType": "offer"}

        parsed = parse_insights({"summary": json.dumps(inner)})

        assert isinstance(parsed, DocumentSummary)
        assert parsed.summary == "Angebot Hotel Sonnenhof"
        assert parsed.document_type == "offer"

    def test_fenced_string_payload(self) -> None:
        raw = '```json\n{"statisticalData": [{"category": "Pricing"}], "summary": "Zahlen"}\n```'

        parsed = parse_insights(raw)

        assert isinstance(parsed, CalculationBreakdown)
        assert parsed.statistical_data == [{"category": "Pricing"}]

    def test_legacy_workbook_insights(self) -> None:
        parsed = parse_insights({"summary": "x", "keyMetrics": ["ADR"], "dataQuality": {"score": "7"}})

        assert isinstance(parsed, BusinessInsights)
        assert parsed.key_metrics[0].metric == "ADR"
        assert parsed.data_quality.score == 7.0

    def test_error_placeholder(self) -> None:
        parsed = parse_insights({"error": "OCR failed", "reason": "timeout"})

        assert isinstance(parsed, ProcessingFailure)
        assert parsed.reason == "timeout"

    def test_plain_text(self) -> None:
        assert parse_insights("  Kurze Zusammenfassung ").summary == "Kurze Zusammenfassung"
        assert parse_insights("Kurze Zusammenfassung", allow_plain_text=False) is None


class TestHasGoodInsights:
    def test_object_with_findings(self) -> None:
        assert has_good_insights({"keyFindings": ["a"]}) is True

    def test_short_summary_only(self) -> None:
        assert has_good_insights({"summary": "kurz"}) is False

    def test_long_plain_string(self) -> None:
        assert has_good_insights("x" * 51) is True
        assert has_good_insights("x" * 50) is False

    def test_json_string(self) -> None:
        assert has_good_insights('{"documentType": "invoice"}') is True

    def test_typed_payloads(self) -> None:
        breakdown = CalculationBreakdown(key_metrics=[{"metric": "ADR", "value": 89}])

        assert has_good_insights(dump_insights(breakdown)) is True
        assert has_good_insights(dump_insights(CalculationBreakdown())) is False
        assert has_good_insights(dump_insights(ProcessingFailure(error="OCR failed"))) is False


class TestExtractedContent:
    def test_has_extracted_data(self) -> None:
        assert has_extracted_data({"text": "Preis 10 €"}) is True
        assert has_extracted_data({"error": "failed"}) is False
        assert has_extracted_data("   ") is False
        assert has_extracted_data(None) is False

    def test_render_worksheets(self) -> None:
        rendered = render_worksheets([
            {"worksheetName": "Tarife", "headers": ["Zimmer", "Preis"], "data": [["Suite", 249], ["Std", None]]},
            {"worksheetName": "Leer", "headers": [], "data": []},
        ])

        assert rendered == "=== Tarife ===\nZimmer\tPreis\nSuite\t249\nStd\t\n\n=== Leer ===\nNo data"

    def test_document_text_prefers_text(self) -> None:
        assert document_text({"text": "OCR", "worksheets": [{"worksheetName": "A"}]}) == "OCR"
        assert document_text({"other": 1}) == '{"other": 1}'
        assert document_text(None) == ""

    def test_truncate_text(self) -> None:
        assert truncate_text("abcdef", 3) == "abc... [truncated]"
        assert truncate_text("abc", 3) == "abc"
