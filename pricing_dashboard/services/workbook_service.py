"""Spreadsheet parsing for uploaded workbooks."""

import csv
import zipfile
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from pricing_dashboard.core.exceptions import ExtractionError
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)


def _json_cell(value: Any) -> Any:
    """Convert a cell value into something JSONB can store."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def _trim_row(row: Iterable[Any]) -> List[Any]:
    cells = [_json_cell(cell) for cell in row]
    while cells and (cells[-1] is None or cells[-1] == ""):
        cells.pop()
    return cells


def _build_worksheet(name: str, rows: Iterable[Iterable[Any]]) -> Dict[str, Any] | None:
    trimmed = [cells for cells in (_trim_row(row) for row in rows) if cells]
    if not trimmed:
        return None

    headers = ["" if cell is None else str(cell) for cell in trimmed[0]]
    data = trimmed[1:]
    return {
        "worksheetName": name,
        "headers": headers,
        "data": data,
        "rowCount": len(data),
        "columnCount": len(headers),
    }


def _read_csv(path: Path) -> List[Dict[str, Any]]:
    with open(path, newline="", encoding="utf-8-sig", errors="replace") as handle:
        sample = handle.read(4096)
        handle.seek(0)
        try:
            dialect = csv.Sniffer().sniff(sample, delimiters=",;\t")
        except csv.Error:
            dialect = csv.excel
        rows = [[_numeric_or_text(cell) for cell in row] for row in csv.reader(handle, dialect)]

    worksheet = _build_worksheet(path.stem, rows)
    return [worksheet] if worksheet else []


def _numeric_or_text(cell: str) -> Any:
    stripped = cell.strip()
    if not stripped:
        return None
    try:
        number = float(stripped)
    except ValueError:
        return stripped
    return int(number) if number.is_integer() and "." not in stripped else number


def read_workbook(file_path: str) -> List[Dict[str, Any]]:
    """Read every non-empty worksheet of a workbook.

    The first row of each sheet is treated as the header row.

    Args:
        file_path: Path to an .xlsx, .xlsm or .csv file

    Returns:
        List of worksheets: worksheetName, headers, data, rowCount, columnCount

    Raises:
        ExtractionError: If the file is a legacy .xls or cannot be read
    """
    path = Path(file_path)
    ext = path.suffix.lower()

    if ext == ".csv":
        try:
            return _read_csv(path)
        except OSError as e:
            raise ExtractionError(f"Could not read CSV file {path.name}: {e}", original_error=e) from e

    if ext == ".xls":
        raise ExtractionError(
            f"Legacy .xls workbooks are not supported ({path.name}); save the file as .xlsx"
        )

    try:
        workbook = load_workbook(filename=str(path), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as e:
        raise ExtractionError(f"Could not open workbook {path.name}: {e}", original_error=e) from e

    worksheets: List[Dict[str, Any]] = []
    try:
        LOGGER.info(
            f"Found {len(workbook.sheetnames)} worksheets: {', '.join(workbook.sheetnames)}",
            extra={"file_name": path.name},
        )
        for sheet in workbook.worksheets:
            worksheet = _build_worksheet(sheet.title, sheet.iter_rows(values_only=True))
            if worksheet:
                worksheets.append(worksheet)
    finally:
        workbook.close()

    return worksheets


def worksheet_summaries(worksheets: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Short worksheet descriptors stored on the upload's extracted files."""
    return [
        {
            "name": ws["worksheetName"],
            "rowCount": ws["rowCount"],
            "columnCount": ws["columnCount"],
        }
        for ws in worksheets
    ]
