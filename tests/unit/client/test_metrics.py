"""Tests for dashboard figures and document views."""

import pytest

from pricing_dashboard.client.metrics import (
    NO_CONTENT,
    average_price,
    document_view_content,
    group_files_by_folder,
    processing_progress,
)


class TestAveragePrice:
    def test_mean_of_per_analysis_means(self) -> None:
        analyses = [
            {"priceData": [{"value": 10}, {"value": 30}]},
            {"priceData": [{"value": 100}]},
            {"priceData": []},
            {"priceData": None},
        ]

        assert average_price(analyses) == pytest.approx(60.0)

    def test_no_prices(self) -> None:
        assert average_price([{"priceData": []}]) == 0.0


def test_processing_progress() -> None:
    uploads = [{"uploadStatus": "completed"}, {"uploadStatus": "processing"}, {"uploadStatus": "completed"},
               {"uploadStatus": "error"}]

    assert processing_progress(uploads) == 50.0
    assert processing_progress([]) == 0.0


class TestDocumentViewContent:
    def test_text(self) -> None:
        assert document_view_content({"extractedData": {"text": "OCR Text"}}) == "OCR Text"

    def test_worksheets(self) -> None:
        content = document_view_content({
            "extractedData": {"worksheets": [{"worksheetName": "Tarife", "headers": ["Preis"], "data": [[89]]}]}
        })

        assert content == "=== Tarife ===\nPreis\n89"

    def test_other_object_is_dumped(self) -> None:
        assert document_view_content({"extractedData": {"error": "failed"}}) == '{\n  "error": "failed"\n}'

    def test_nothing(self) -> None:
        assert document_view_content({"extractedData": None}) == NO_CONTENT
        assert document_view_content({}) == NO_CONTENT


def test_group_files_by_folder() -> None:
    files = [
        {"fileName": "a.pdf", "folderPath": "Hotels"},
        {"fileName": "b.pdf"},
        {"fileName": "c.pdf", "folderPath": "Hotels"},
    ]

    groups = group_files_by_folder(files)

    assert list(groups) == ["Hotels", "Root"]
    assert [f["fileName"] for f in groups["Hotels"]] == ["a.pdf", "c.pdf"]
