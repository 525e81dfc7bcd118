"""
Header normalizer — finds the department key column and the metric headers.

Filters out noise columns from a sheet's header row:
  - empty / whitespace-only headers
  - purely numeric headers ("1", "2", ... from malformed exports)
  - headers that repeat the department key ("Department", "Dept", "Program")
  - the detected department column itself
  - any other header containing a department alias ("Course Code",
    "Category Name"), since those describe the key, not a metric

Surviving headers keep their original column order, duplicates included.
Qualifying them with a content type happens later, in merger.py.

Public API:
    find_department_column(headers) → int
    normalize_sheet(sheet_rows, file_label, sheet_name) → NormalizedSheet
"""

import logging
import re
from dataclasses import dataclass, field

from config.content_types import DEPARTMENT_ALIASES, DUPLICATE_DEPARTMENT_HEADERS
from processing.errors import MalformedSheetError

logger = logging.getLogger(__name__)

_DIGITS_ONLY = re.compile(r"^[0-9]+$")


# ═══════════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class MetricColumn:
    """A retained header and the column it was read from."""

    header: str
    column_index: int


@dataclass
class NormalizedSheet:
    """Header analysis of one sheet."""

    department_column: int = 0
    metric_columns: list[MetricColumn] = field(default_factory=list)
    excluded_headers: list[dict] = field(default_factory=list)

    @property
    def headers(self) -> list[str]:
        return [column.header for column in self.metric_columns]


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def find_department_column(headers: list) -> int:
    """
    Index of the department key column.

    Tries each alias in DEPARTMENT_ALIASES order against every header
    (case-insensitive substring), so a "Program" column loses to a later
    "Department Name" column. Defaults to 0.
    """
    for alias in DEPARTMENT_ALIASES:
        alias_lower = alias.lower()
        for index, header in enumerate(headers):
            if header is None:
                continue
            if alias_lower in str(header).lower():
                return index
    return 0


def normalize_sheet(
    sheet_rows: list,
    file_label: str = "",
    sheet_name: str = "",
) -> NormalizedSheet:
    """
    Detect the department column and the metric headers of a sheet.

    Args:
        sheet_rows: Raw rows; row 0 must be the header row.
        file_label: Source filename, for log and error messages.
        sheet_name: Sheet name, for log and error messages.

    Returns:
        NormalizedSheet with the department column index and the retained
        metric columns in original order.

    Raises:
        MalformedSheetError: The sheet has no header row, or it isn't a list.
    """
    if not sheet_rows:
        raise MalformedSheetError(
            f"Sheet '{sheet_name}' in '{file_label}' has no header row",
            filename=file_label,
            sheet_name=sheet_name,
        )

    headers = sheet_rows[0]
    if not isinstance(headers, (list, tuple)):
        raise MalformedSheetError(
            f"Header row of sheet '{sheet_name}' in '{file_label}' is not a "
            f"row of cells: {headers!r}",
            filename=file_label,
            sheet_name=sheet_name,
        )

    department_column = find_department_column(headers)
    result = NormalizedSheet(department_column=department_column)

    for index, header in enumerate(headers):
        reason = _exclusion_reason(header, index, department_column)
        if reason:
            logger.debug(
                f"{file_label}: filtering out header {header!r} at index {index} ({reason})"
            )
            result.excluded_headers.append(
                {"index": index, "header": header, "reason": reason}
            )
            continue
        result.metric_columns.append(MetricColumn(header=str(header), column_index=index))

    logger.info(
        f"{file_label} [{sheet_name}]: department column {department_column}, "
        f"{len(result.metric_columns)} metric header(s) kept, "
        f"{len(result.excluded_headers)} filtered"
    )
    return result


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _exclusion_reason(header: object, index: int, department_column: int) -> str | None:
    """Why *header* is dropped, or None when it is a metric header."""
    if header is None:
        return "empty"

    header_text = str(header).strip().lower()
    if header_text == "":
        return "empty"
    if _DIGITS_ONLY.match(header_text):
        return "numbered column"
    if header_text in DUPLICATE_DEPARTMENT_HEADERS:
        return "duplicate department indicator"
    if index == department_column:
        return "department column"
    if any(alias.lower() in header_text for alias in DEPARTMENT_ALIASES):
        return "department alias"
    return None
