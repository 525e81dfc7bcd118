"""
Spreadsheet file reader.

Decodes one uploaded source file into a matrix of rows per sheet. Row 0 of
every sheet is whatever the source put in its first row (normally the
header); no header detection happens here.

Supported formats:
  .xlsx — openpyxl, cached formula values (data_only=True)
  .xls  — pandas with the xlrd engine
  .csv  — pandas, every cell read as text; one sheet named "Sheet1"

Public API:
    read_file(file_path, original_name) → FileReadResult

Raises UnsupportedFormatError for any other extension and ReadFailureError
(chained to the underlying exception) when the file cannot be decoded.
"""

import csv
import io
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path

import openpyxl
import pandas as pd

from config.content_types import CSV_EXTENSIONS, CSV_SHEET_NAME, SUPPORTED_EXTENSIONS
from processing.errors import ReadFailureError, UnsupportedFormatError

logger = logging.getLogger(__name__)

# Encodings tried in order when decoding CSV bytes.
_CSV_ENCODINGS: list[str] = ["utf-8-sig", "utf-8", "cp1252", "latin-1"]


# ═══════════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class FileReadResult:
    """Every sheet of one file as a list of rows (lists of scalars)."""

    sheets: dict[str, list[list]] = field(default_factory=dict)
    file_format: str = ""
    source_name: str = ""

    @property
    def sheet_names(self) -> list[str]:
        return list(self.sheets)

    @property
    def total_rows(self) -> int:
        return sum(len(rows) for rows in self.sheets.values())


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def read_file(file_path: Path, original_name: str | None = None) -> FileReadResult:
    """
    Read a spreadsheet or CSV file into {sheet name: rows}.

    Args:
        file_path: Where the file lives on disk.
        original_name: The name the user uploaded it under. Used for error
            messages, and for the extension when *file_path* has none
            (upload temp files often don't).

    Returns:
        FileReadResult with one entry per sheet, in workbook order.

    Raises:
        UnsupportedFormatError: Extension is not .xlsx/.xls/.csv.
        ReadFailureError: The file is missing, corrupt or undecodable.
    """
    file_path = Path(file_path)
    display_name = original_name or file_path.name
    extension = detect_extension(file_path, original_name)

    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(
            f"Unsupported file format: '{extension or '(none)'}' for '{display_name}'",
            filename=display_name,
        )

    try:
        if extension in CSV_EXTENSIONS:
            sheets = _read_csv(file_path)
        elif extension == ".xlsx":
            sheets = _read_xlsx(file_path)
        else:
            sheets = _read_xls(file_path)
    except Exception as exc:
        error_message = f"Failed to read file '{display_name}': {exc}"
        logger.error(error_message)
        raise ReadFailureError(error_message, filename=display_name) from exc

    result = FileReadResult(
        sheets=sheets,
        file_format=extension.lstrip("."),
        source_name=display_name,
    )
    logger.info(
        f"Read '{display_name}': {len(result.sheets)} sheet(s), "
        f"{result.total_rows} rows"
    )
    return result


def detect_extension(file_path: Path, original_name: str | None = None) -> str:
    """Lowercase extension of *file_path*, falling back to *original_name*."""
    extension = Path(file_path).suffix.lower()
    if not extension and original_name:
        extension = Path(original_name).suffix.lower()
    return extension


# ═══════════════════════════════════════════════════════════════════════════
# Format readers
# ═══════════════════════════════════════════════════════════════════════════

def _read_xlsx(file_path: Path) -> dict[str, list[list]]:
    workbook = openpyxl.load_workbook(file_path, data_only=True, read_only=True)
    try:
        sheets: dict[str, list[list]] = {}
        for worksheet in workbook.worksheets:
            rows = [
                [_clean_cell(value) for value in row]
                for row in worksheet.iter_rows(values_only=True)
            ]
            sheets[worksheet.title] = _trim_trailing_empty_rows(rows)
        return sheets
    finally:
        workbook.close()


def _read_xls(file_path: Path) -> dict[str, list[list]]:
    frames = pd.read_excel(
        file_path, sheet_name=None, header=None, dtype=object, engine="xlrd"
    )
    return {
        str(sheet_name): _dataframe_to_rows(frame)
        for sheet_name, frame in frames.items()
    }


def _read_csv(file_path: Path) -> dict[str, list[list]]:
    text = _decode_csv_bytes(file_path.read_bytes())
    if not text.strip():
        return {CSV_SHEET_NAME: []}

    # Rows may be wider than the first one (banner rows above the header),
    # so size the frame to the widest row up front.
    width = max((len(row) for row in csv.reader(io.StringIO(text))), default=0)
    frame = pd.read_csv(
        io.StringIO(text),
        header=None,
        names=range(max(width, 1)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        engine="python",
    )
    return {CSV_SHEET_NAME: _dataframe_to_rows(frame)}


def _decode_csv_bytes(data: bytes) -> str:
    for encoding in _CSV_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    # latin-1 never fails, so this is unreachable in practice
    return data.decode("utf-8", errors="replace")


# ═══════════════════════════════════════════════════════════════════════════
# Cell helpers
# ═══════════════════════════════════════════════════════════════════════════

def _dataframe_to_rows(frame: pd.DataFrame) -> list[list]:
    rows = [
        [_clean_cell(value) for value in record]
        for record in frame.itertuples(index=False, name=None)
    ]
    return _trim_trailing_empty_rows(rows)


def _clean_cell(value: object) -> str | int | float | None:
    """
    Reduce a raw cell to str, int, float or None.

    Blank strings and NaN become None; dates become ISO strings; numpy
    scalars become plain Python numbers. Strings are not stripped.
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if hasattr(value, "item"):
        # numpy scalar
        return _clean_cell(value.item())
    text = str(value)
    if text.strip() == "":
        return None
    return text


def _trim_trailing_empty_rows(rows: list[list]) -> list[list]:
    while rows and all(value is None for value in rows[-1]):
        rows.pop()
    return rows
