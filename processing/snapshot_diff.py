"""
Snapshot diff — numeric change of every cell since the previous snapshot.

Cells are matched by header text (exact) and department (case-insensitive,
trimmed), never by position, so reordered or added columns and departments
still line up.

The result distinguishes two "no comparison" cases:
  - no previous snapshot at all        → delta 0 for every numeric cell
  - previous exists, no counterpart    → delta None (no indicator shown)

Only numeric columns get deltas: a column is numeric when its header names a
percentage or any of its first NUMERIC_SAMPLE_ROWS values parses as a number.
The Department column never does.

Public API:
    compute_diff(current, previous) → SnapshotDiff
    parse_number_like(value) → float | None
    is_percentage_header(header) → bool
    is_numeric_column(snapshot, col_index) → bool
"""

import logging
import math
from dataclasses import dataclass, field

from config.sections import NUMERIC_SAMPLE_ROWS
from processing.merger import NUMBER_PATTERN, THOUSANDS_SEP_PATTERN
from processing.snapshot import DEPARTMENT_HEADER, ReportSnapshot

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class SnapshotDiff:
    """Per-cell deltas of *current* against *previous*."""

    has_previous: bool = False
    delta_columns: list[int] = field(default_factory=list)
    deltas: dict[tuple[int, int], float | None] = field(default_factory=dict)

    def delta(self, row_index: int, col_index: int) -> float | None:
        """Delta for a current-snapshot cell; None when not computable."""
        return self.deltas.get((row_index, col_index))

    def has_delta_column(self, col_index: int) -> bool:
        return col_index in self.delta_columns


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def compute_diff(current: ReportSnapshot, previous: ReportSnapshot | None) -> SnapshotDiff:
    """
    Compute deltas for every numeric cell of *current*.

    Args:
        current: The snapshot being exported.
        previous: The stored snapshot for the same organization + template,
            or None when there is none yet.

    Returns:
        SnapshotDiff keyed by (row index, column index) of *current*.
    """
    diff = SnapshotDiff(has_previous=previous is not None)
    diff.delta_columns = [
        col_index
        for col_index, header in enumerate(current.headers)
        if header != DEPARTMENT_HEADER and is_numeric_column(current, col_index)
    ]

    previous_header_index: dict[str, int] = {}
    previous_rows_by_department: dict[str, list] = {}
    if previous is not None:
        for col_index, header in enumerate(previous.headers):
            previous_header_index.setdefault(str(header), col_index)
        for row in previous.rows:
            key = _department_key(row)
            if key:
                previous_rows_by_department[key] = row

    for row_index, row in enumerate(current.rows):
        previous_row = previous_rows_by_department.get(_department_key(row))

        for col_index in diff.delta_columns:
            if previous is None:
                diff.deltas[(row_index, col_index)] = 0
                continue

            current_value = parse_number_like(_cell(row, col_index))
            previous_col = previous_header_index.get(current.headers[col_index])
            previous_value = None
            if previous_row is not None and previous_col is not None:
                previous_value = parse_number_like(_cell(previous_row, previous_col))

            if current_value is None or previous_value is None:
                diff.deltas[(row_index, col_index)] = None
            else:
                diff.deltas[(row_index, col_index)] = current_value - previous_value

    computed = sum(1 for value in diff.deltas.values() if value is not None)
    logger.info(
        f"Diff: {len(diff.delta_columns)} numeric columns, {computed}/"
        f"{len(diff.deltas)} cells with a delta"
        + ("" if diff.has_previous else " (no previous snapshot)")
    )
    return diff


def parse_number_like(value: object) -> float | None:
    """
    Read a cell as a number for comparison.

    Numbers pass through (if finite). "45%" → 0.45. "1,250" → 1250.
    Blank, non-numeric, or partly numeric text → None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None

    text = str(value).strip()
    if not text:
        return None

    divisor = 1
    if text.endswith("%"):
        text = text[:-1].strip()
        divisor = 100

    text = THOUSANDS_SEP_PATTERN.sub("", text)
    if not NUMBER_PATTERN.match(text):
        return None
    return float(text) / divisor


def is_percentage_header(header: object) -> bool:
    header_lower = str(header or "").lower()
    return "percent" in header_lower or "%" in header_lower


def is_numeric_column(snapshot: ReportSnapshot, col_index: int) -> bool:
    """Percentage header, or a number among the column's first sampled values."""
    if is_percentage_header(snapshot.headers[col_index]):
        return True
    for row in snapshot.rows[:NUMERIC_SAMPLE_ROWS]:
        if parse_number_like(_cell(row, col_index)) is not None:
            return True
    return False


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _cell(row: list, col_index: int) -> object:
    return row[col_index] if col_index < len(row) else None


def _department_key(row: list) -> str:
    if not row or row[0] is None:
        return ""
    return str(row[0]).strip().lower()
