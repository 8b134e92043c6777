"""Pattern based price detection in worksheets and OCR text."""

import re
from typing import Any, Dict, List, Sequence

WORKSHEET_PRICE_PATTERNS = [
    re.compile(r"€\s*(\d+(?:\.\d{2})?)"),
    re.compile(r"(\d+(?:\.\d{2})?)\s*€"),
    re.compile(r"\$\s*(\d+(?:\.\d{2})?)"),
    re.compile(r"(\d+(?:\.\d{2})?)\s*\$"),
    re.compile(r"price[:\s]*(\d+(?:\.\d{2})?)", re.IGNORECASE),
    re.compile(r"preis[:\s]*(\d+(?:\.\d{2})?)", re.IGNORECASE),
    re.compile(r"kosten[:\s]*(\d+(?:\.\d{2})?)", re.IGNORECASE),
    re.compile(r"betrag[:\s]*(\d+(?:\.\d{2})?)", re.IGNORECASE),
]

TEXT_PRICE_PATTERNS = [
    re.compile(r"€\s*(\d+(?:[.,]\d{2})?)"),
    re.compile(r"(\d+(?:[.,]\d{2})?)\s*€"),
    re.compile(r"\$\s*(\d+(?:[.,]\d{2})?)"),
    re.compile(r"(\d+(?:[.,]\d{2})?)\s*\$"),
]

PRICE_HEADER_KEYWORDS = ("price", "preis", "cost", "kosten", "betrag", "amount", "€", "$")


def _currency_of(text: str) -> str:
    if "€" in text:
        return "EUR"
    if "$" in text:
        return "USD"
    return "EUR"


def price_column_indices(headers: Sequence[Any]) -> List[int]:
    """Indices of header cells that name a price-like column."""
    indices = []
    for index, header in enumerate(headers):
        if isinstance(header, str) and header:
            lowered = header.lower()
            if any(keyword in lowered for keyword in PRICE_HEADER_KEYWORDS):
                indices.append(index)
    return indices


def extract_prices_from_worksheet(
    rows: Sequence[Sequence[Any]],
    headers: Sequence[Any],
    sheet_name: str,
) -> List[Dict[str, Any]]:
    """Find prices in the data rows of one worksheet.

    Args:
        rows: Data rows (header row excluded)
        headers: Header row
        sheet_name: Worksheet name used in the context string

    Returns:
        List of price points ``{value, currency, context, row, column, confidence}``
        where ``row`` is the 1-based spreadsheet row (header is row 1).
    """
    price_columns = set(price_column_indices(headers))
    prices: List[Dict[str, Any]] = []

    for row_index, row in enumerate(rows):
        for col_index, cell in enumerate(row):
            header = headers[col_index] if col_index < len(headers) else None
            context = f"{sheet_name} - Row {row_index + 2}, {header or f'Column {col_index + 1}'}"

            if isinstance(cell, str) and cell:
                for pattern in WORKSHEET_PRICE_PATTERNS:
                    for match in pattern.finditer(cell):
                        value = float(match.group(1))
                        if value > 0:
                            prices.append({
                                "value": value,
                                "currency": _currency_of(cell),
                                "context": context,
                                "row": row_index + 2,
                                "column": col_index + 1,
                                "confidence": 0.9 if col_index in price_columns else 0.7,
                            })

            elif (
                isinstance(cell, (int, float))
                and not isinstance(cell, bool)
                and col_index in price_columns
                and cell > 0
            ):
                prices.append({
                    "value": float(cell),
                    "currency": "EUR",
                    "context": context,
                    "row": row_index + 2,
                    "column": col_index + 1,
                    "confidence": 0.95,
                })

    return prices


def extract_prices_from_text(text: str) -> List[Dict[str, Any]]:
    """Find currency amounts line by line in OCR text."""
    prices: List[Dict[str, Any]] = []
    for line_index, line in enumerate(text.split("\n")):
        for pattern in TEXT_PRICE_PATTERNS:
            for match in pattern.finditer(line):
                value = float(match.group(1).replace(",", "."))
                if value > 0:
                    prices.append({
                        "value": value,
                        "currency": _currency_of(line),
                        "context": f"Line {line_index + 1}: {line.strip()}",
                        "row": line_index + 1,
                        "column": match.start(),
                        "confidence": 0.8,
                    })
    return prices


def summarize_prices(prices: Sequence[Dict[str, Any]]) -> Dict[str, float]:
    """Count, average, min and max of the price values (all 0 when empty)."""
    values = [float(p["value"]) for p in prices if isinstance(p.get("value"), (int, float))]
    if not values:
        return {"total": 0, "average": 0.0, "min": 0.0, "max": 0.0}
    return {
        "total": len(values),
        "average": sum(values) / len(values),
        "min": min(values),
        "max": max(values),
    }
