"""
Excel formatter — renders a report snapshot as a styled, change-annotated workbook.

Single sheet "Report Data":
  - Metadata block: report name, generation time, optional summary.
  - Header row coloured by column section (processing/column_sections.py).
    Every numeric column H is immediately followed by an "H +/-" column
    holding the change since the previous snapshot.
  - Data rows: percentages as 0.0%, other numbers as #,##0.00, text
    left-aligned. Delta cells are signed and coloured green / red / amber,
    or grey and empty when no comparison is possible.
  - Thin borders on every table cell, data bars on percentage columns,
    and a TOTAL row when there is more than one department.

Public API:
    export_report(current, previous, report_name, ...) → ExportArtifact
    export_filename(report_name, generated_at) → str
"""

import io
import logging
import re
from dataclasses import dataclass
from datetime import datetime

import openpyxl
from openpyxl.formatting.rule import DataBarRule
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from config.sections import (
    DATA_BAR_COLOR,
    DELTA_COLUMN_SUFFIX,
    DELTA_FORMAT,
    DELTA_MISSING_STYLE,
    DELTA_NEGATIVE_STYLE,
    DELTA_PERCENT_FORMAT,
    DELTA_POSITIVE_STYLE,
    DELTA_ZERO_STYLE,
    EXPORT_MIME_TYPE,
    MIN_COLUMN_WIDTH,
    MUTED_TEXT_COLOR,
    NUMBER_FORMAT,
    PERCENT_COLUMN_WIDTH,
    PERCENT_FORMAT,
    TITLE_FILL_COLOR,
    TOTAL_PERCENT_FORMAT,
    TOTALS_FILL_COLOR,
)
from processing.column_sections import classify
from processing.snapshot import DEPARTMENT_HEADER, ReportSnapshot
from processing.snapshot_diff import (
    SnapshotDiff,
    compute_diff,
    is_numeric_column,
    is_percentage_header,
    parse_number_like,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Constants
# ═══════════════════════════════════════════════════════════════════════════

SHEET_TITLE = "Report Data"

_THIN_SIDE = Side(style="thin")
_THIN_BORDER = Border(left=_THIN_SIDE, right=_THIN_SIDE, top=_THIN_SIDE, bottom=_THIN_SIDE)
_TITLE_FONT = Font(bold=True, size=14)
_MUTED_FONT = Font(size=10, color=MUTED_TEXT_COLOR)
_TOTALS_FONT = Font(bold=True, color=MUTED_TEXT_COLOR)

_NO_SUMMARY = "No summary provided"


@dataclass
class ExportArtifact:
    """The finished workbook plus what to call it when downloading."""

    content: bytes
    filename: str
    mime_type: str = EXPORT_MIME_TYPE


@dataclass
class _OutputColumn:
    """One column of the written table: a snapshot column or its delta."""

    header: str
    source_index: int
    is_delta: bool = False


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def export_report(
    current: ReportSnapshot,
    previous: ReportSnapshot | None = None,
    report_name: str = "Report",
    generated_at: datetime | None = None,
    summary: str | None = None,
    diff: SnapshotDiff | None = None,
) -> ExportArtifact:
    """
    Render *current* (annotated against *previous*) as an .xlsx workbook.

    Args:
        current: Snapshot to export.
        previous: Stored snapshot for the same organization + template, or
            None when this is the first one (all deltas are then 0).
        report_name: Shown in the title row and used for the filename.
        generated_at: Generation time (defaults to now).
        summary: Optional summary line under the title.
        diff: Precomputed diff; computed from current/previous when omitted.

    Returns:
        ExportArtifact with the workbook bytes, filename and MIME type.
    """
    generated_at = generated_at or datetime.now()
    diff = diff or compute_diff(current, previous)

    workbook = openpyxl.Workbook()
    worksheet = workbook.active
    worksheet.title = SHEET_TITLE

    header_row = _write_metadata_block(worksheet, report_name, generated_at, summary)
    columns = _build_output_columns(current, diff)

    _write_header_row(worksheet, header_row, columns)
    _write_data_rows(worksheet, header_row + 1, current, columns, diff)

    last_data_row = header_row + len(current.rows)
    if len(current.rows) > 1:
        _write_totals_row(worksheet, last_data_row + 1, current, columns)

    _apply_borders(worksheet, header_row, last_data_row, len(columns))
    _add_percentage_data_bars(worksheet, header_row + 1, last_data_row, columns, current)
    _set_column_widths(worksheet, columns, current)
    worksheet.freeze_panes = f"A{header_row + 1}"

    buffer = io.BytesIO()
    workbook.save(buffer)
    workbook.close()

    filename = export_filename(report_name, generated_at)
    logger.info(
        f"Exported '{filename}': {len(current.rows)} rows, {len(columns)} columns "
        f"({len(diff.delta_columns)} with change indicators)"
    )
    return ExportArtifact(content=buffer.getvalue(), filename=filename)


def export_filename(report_name: str, generated_at: datetime) -> str:
    """'Autumn Review', 2025-11-03 → 'Autumn_Review_2025-11-03.xlsx'."""
    safe_name = re.sub(r"[^A-Za-z0-9 _-]", "", report_name or "").strip()
    safe_name = re.sub(r"\s+", "_", safe_name) or "Report"
    return f"{safe_name}_{generated_at.date().isoformat()}.xlsx"


# ═══════════════════════════════════════════════════════════════════════════
# Layout helpers
# ═══════════════════════════════════════════════════════════════════════════

def _write_metadata_block(
    worksheet: openpyxl.worksheet.worksheet.Worksheet,
    report_name: str,
    generated_at: datetime,
    summary: str | None,
) -> int:
    """Write title/generated/summary rows; return the header row number."""
    title_cell = worksheet.cell(row=1, column=1, value=f"Report: {report_name}")
    title_cell.font = _TITLE_FONT
    title_cell.fill = _solid_fill(TITLE_FILL_COLOR)

    generated_cell = worksheet.cell(
        row=2, column=1, value=f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M')}"
    )
    generated_cell.font = _MUTED_FONT

    current_row = 3
    if summary and summary.strip() and summary.strip() != _NO_SUMMARY:
        summary_cell = worksheet.cell(row=current_row, column=1, value=f"Summary: {summary.strip()}")
        summary_cell.font = _MUTED_FONT
        current_row += 1

    # one blank spacer row before the table
    return current_row + 1


def _build_output_columns(current: ReportSnapshot, diff: SnapshotDiff) -> list[_OutputColumn]:
    columns: list[_OutputColumn] = []
    for col_index, header in enumerate(current.headers):
        columns.append(_OutputColumn(header=header, source_index=col_index))
        if diff.has_delta_column(col_index):
            columns.append(_OutputColumn(
                header=f"{header}{DELTA_COLUMN_SUFFIX}",
                source_index=col_index,
                is_delta=True,
            ))
    return columns


def _write_header_row(
    worksheet: openpyxl.worksheet.worksheet.Worksheet,
    header_row: int,
    columns: list[_OutputColumn],
) -> None:
    for offset, column in enumerate(columns, start=1):
        source_header = column.header[: -len(DELTA_COLUMN_SUFFIX)] if column.is_delta else column.header
        section = classify(source_header)

        cell = worksheet.cell(row=header_row, column=offset, value=column.header)
        cell.font = Font(bold=True, color="FF000000", italic=column.is_delta)
        cell.fill = _solid_fill(section.color)
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)


def _write_data_rows(
    worksheet: openpyxl.worksheet.worksheet.Worksheet,
    first_row: int,
    current: ReportSnapshot,
    columns: list[_OutputColumn],
    diff: SnapshotDiff,
) -> None:
    for row_index, row in enumerate(current.rows):
        excel_row = first_row + row_index
        for offset, column in enumerate(columns, start=1):
            cell = worksheet.cell(row=excel_row, column=offset)
            header = current.headers[column.source_index]

            if column.is_delta:
                _write_delta_cell(cell, diff.delta(row_index, column.source_index), header)
                continue

            raw_value = row[column.source_index] if column.source_index < len(row) else None
            _write_value_cell(cell, raw_value, header)


def _write_value_cell(cell, raw_value: object, header: str) -> None:
    number = None if header == DEPARTMENT_HEADER else parse_number_like(raw_value)

    if number is not None and is_percentage_header(header):
        # Values above 1 are whole percentages (45 → 45%).
        cell.value = number / 100 if number > 1 else number
        cell.number_format = PERCENT_FORMAT
    elif number is not None:
        cell.value = float(number)
        cell.number_format = NUMBER_FORMAT
    else:
        cell.value = None if raw_value in (None, "") else raw_value
        cell.alignment = Alignment(horizontal="left")


def _write_delta_cell(cell, delta: float | None, header: str) -> None:
    if delta is None:
        fill_color, font_color = DELTA_MISSING_STYLE
        cell.value = ""
    else:
        if delta > 0:
            fill_color, font_color = DELTA_POSITIVE_STYLE
        elif delta < 0:
            fill_color, font_color = DELTA_NEGATIVE_STYLE
        else:
            fill_color, font_color = DELTA_ZERO_STYLE
        cell.value = delta
        cell.number_format = DELTA_PERCENT_FORMAT if is_percentage_header(header) else DELTA_FORMAT

    cell.fill = _solid_fill(fill_color)
    cell.font = Font(color=font_color)


def _write_totals_row(
    worksheet: openpyxl.worksheet.worksheet.Worksheet,
    totals_row: int,
    current: ReportSnapshot,
    columns: list[_OutputColumn],
) -> None:
    """Sum numeric columns, average percentage columns, label the row TOTAL."""
    for offset, column in enumerate(columns, start=1):
        cell = worksheet.cell(row=totals_row, column=offset)
        cell.fill = _solid_fill(TOTALS_FILL_COLOR)
        cell.font = _TOTALS_FONT
        cell.border = _THIN_BORDER

        if column.is_delta:
            continue
        if column.source_index == 0:
            cell.value = "TOTAL"
            continue

        header = current.headers[column.source_index]
        if "department" in header.lower() or not is_numeric_column(current, column.source_index):
            continue

        values = [
            parse_number_like(row[column.source_index])
            for row in current.rows
            if column.source_index < len(row)
        ]
        values = [value for value in values if value is not None]
        if not values:
            continue

        if is_percentage_header(header):
            fractions = [value / 100 if value > 1 else value for value in values]
            cell.value = sum(fractions) / len(fractions)
            cell.number_format = TOTAL_PERCENT_FORMAT
        else:
            cell.value = float(sum(values))
            cell.number_format = NUMBER_FORMAT


def _apply_borders(
    worksheet: openpyxl.worksheet.worksheet.Worksheet,
    header_row: int,
    last_data_row: int,
    column_count: int,
) -> None:
    for row_number in range(header_row, last_data_row + 1):
        for col_number in range(1, column_count + 1):
            worksheet.cell(row=row_number, column=col_number).border = _THIN_BORDER


def _add_percentage_data_bars(
    worksheet: openpyxl.worksheet.worksheet.Worksheet,
    first_row: int,
    last_row: int,
    columns: list[_OutputColumn],
    current: ReportSnapshot,
) -> None:
    """Blue bars scaled between each percentage column's min and max."""
    if last_row < first_row:
        return

    for offset, column in enumerate(columns, start=1):
        if column.is_delta or not is_percentage_header(current.headers[column.source_index]):
            continue
        letter = get_column_letter(offset)
        worksheet.conditional_formatting.add(
            f"{letter}{first_row}:{letter}{last_row}",
            DataBarRule(
                start_type="min",
                end_type="max",
                color=DATA_BAR_COLOR,
                showValue=True,
                minLength=0,
                maxLength=100,
            ),
        )


def _set_column_widths(
    worksheet: openpyxl.worksheet.worksheet.Worksheet,
    columns: list[_OutputColumn],
    current: ReportSnapshot,
) -> None:
    for offset, column in enumerate(columns, start=1):
        width = max(len(column.header) + 5, MIN_COLUMN_WIDTH)
        if not column.is_delta and is_percentage_header(current.headers[column.source_index]):
            width = max(width, PERCENT_COLUMN_WIDTH)
        worksheet.column_dimensions[get_column_letter(offset)].width = width


def _solid_fill(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type="solid")
