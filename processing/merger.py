"""
Merger — folds every uploaded file into one department-keyed metrics table.

For each file, in the order given:
  1. Read all sheets (file_reader.read_file).
  2. Decide the content type: manual override, else sheet content
     (enrichment vs employer only), else filename keywords.
  3. Per sheet, find the department column and metric headers
     (header_normalizer.normalize_sheet) and collect department → metric
     values from the data rows.
  4. Rename every metric to "<header> (<content type>)" and merge it into
     the cumulative table.

Files of different content types never collide because of step 4. Two files
of the SAME content type with the same header do collide, and the later file
wins. That is long-standing observed behaviour and is kept as-is.

Public API:
    merge_files(files, overrides) → MergedReport
    parse_value(value) → number | str | None
    qualify_metric_name(header, content_type) → str

Any UnsupportedFormatError / ReadFailureError aborts the whole batch; a
MalformedSheetError only skips that sheet.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from config.content_types import ACTIVITY_BANNER_MARKERS
from processing.content_classifier import classify_file, join_row_text
from processing.errors import MalformedSheetError, MetricsImportError
from processing.file_reader import read_file
from processing.header_normalizer import normalize_sheet

logger = logging.getLogger(__name__)

THOUSANDS_SEP_PATTERN = re.compile(r"(?<=\d),(?=\d{3})")
NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_NUMERIC_DEPARTMENT_PATTERN = re.compile(r"^[0-9]+(\.[0-9]+)?$")


# ═══════════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class UploadedFile:
    """One uploaded file: where it is on disk and what the user called it."""

    path: Path
    original_name: str
    filename: str | None = None

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        if self.filename is None:
            self.filename = self.path.name


@dataclass
class FileInfo:
    """Audit entry for one processed file."""

    original_name: str
    filename: str
    content_type: str
    color: str | None = None

    def to_dict(self) -> dict:
        """The persisted fileInfo entry; the display colour is not part of it."""
        return {
            "originalName": self.original_name,
            "filename": self.filename,
            "contentType": self.content_type,
        }


@dataclass
class ExtractedData:
    """Unqualified metrics pulled out of one file."""

    departments: list[str] = field(default_factory=list)
    metrics: dict[str, dict[str, object]] = field(default_factory=dict)
    header_list: list[str] = field(default_factory=list)
    skipped_rows: list[dict] = field(default_factory=list)
    skipped_sheets: list[dict] = field(default_factory=list)


@dataclass
class MergedReport:
    """The consolidated table across all uploaded files."""

    departments: list[str] = field(default_factory=list)
    metrics: dict[str, dict[str, object]] = field(default_factory=dict)
    timestamp: str = ""
    header_file_map: dict[str, int] = field(default_factory=dict)
    file_info: list[FileInfo] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "departments": list(self.departments),
            "metrics": {dept: dict(values) for dept, values in self.metrics.items()},
            "timestamp": self.timestamp,
            "headerFileMap": dict(self.header_file_map),
            "fileInfo": [info.to_dict() for info in self.file_info],
        }


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def merge_files(
    files: list[UploadedFile],
    overrides: dict | None = None,
    generated_at: datetime | None = None,
) -> MergedReport:
    """
    Read, classify and merge every uploaded file into one MergedReport.

    Args:
        files: Uploaded files, in the order their values should be merged.
            Order matters: for same-type same-header collisions the later
            file wins.
        overrides: Optional {file index: {"type": str, "color": str}}.
            A "type" here is used verbatim and skips classification.
            Keys may be ints or their string form.
        generated_at: Timestamp for the report (defaults to now, UTC).

    Returns:
        MergedReport with ordered departments, qualified metrics per
        department, header → file index map, and per-file info.

    Raises:
        UnsupportedFormatError, ReadFailureError: for the first file that
            fails; nothing is returned for the batch.
    """
    overrides = overrides or {}
    timestamp = (generated_at or datetime.now(timezone.utc)).isoformat()
    report = MergedReport(timestamp=timestamp)

    for file_index, uploaded in enumerate(files):
        try:
            read_result = read_file(uploaded.path, uploaded.original_name)
        except MetricsImportError as exc:
            logger.error(f"Failed to process '{uploaded.original_name}': {exc}")
            raise

        override = _lookup_override(overrides, file_index)
        if override and override.get("type"):
            content_type = str(override["type"])
            logger.info(
                f"File {file_index} '{uploaded.original_name}': using manual "
                f"content type '{content_type}'"
            )
        else:
            content_type = classify_file(
                uploaded.original_name, read_result.sheets
            ).content_type

        report.file_info.append(FileInfo(
            original_name=uploaded.original_name,
            filename=uploaded.filename,
            content_type=content_type,
            color=override.get("color") if override else None,
        ))
        logger.info(
            f"Processing file {file_index}: '{uploaded.original_name}' → "
            f"content type '{content_type}'"
        )

        extracted = extract_file_metrics(read_result.sheets, uploaded.original_name)
        for skipped in extracted.skipped_sheets:
            report.warnings.append(
                f"{uploaded.original_name} [{skipped['sheet']}]: {skipped['reason']}"
            )
        report.warnings.extend(_skipped_row_warnings(uploaded.original_name, extracted.skipped_rows))

        for header in extracted.header_list:
            report.header_file_map[qualify_metric_name(header, content_type)] = file_index

        merge_extracted(report, extracted, content_type)

    logger.info(
        f"Merge complete: {len(report.departments)} departments, "
        f"{len(report.header_file_map)} metrics from {len(files)} files"
    )
    return report


def extract_file_metrics(sheets: dict[str, list[list]], file_label: str) -> ExtractedData:
    """Collect unqualified department metrics from every sheet of a file."""
    extracted = ExtractedData()
    for sheet_name, rows in sheets.items():
        if rows is None or len(rows) == 0:
            continue
        try:
            extract_sheet_metrics(rows, extracted, file_label, sheet_name)
        except MalformedSheetError as exc:
            logger.warning(f"Skipping sheet: {exc}")
            extracted.skipped_sheets.append({"sheet": sheet_name, "reason": str(exc)})
    return extracted


def extract_sheet_metrics(
    sheet_rows: list,
    extracted: ExtractedData,
    file_label: str = "",
    sheet_name: str = "",
) -> None:
    """
    Add one sheet's department rows to *extracted* (mutated in place).

    A data row is skipped when:
      - it is empty or its first cell is blank
      - its department value is blank or purely numeric ("1", "2" are
        numbering artefacts of some exports)
      - its text contains an activity banner ("Enrichment Activity")

    When the sheet repeats a header, only the first such column is read.

    Raises:
        MalformedSheetError: from normalize_sheet, when the header row is
            missing or not a row.
    """
    normalized = normalize_sheet(sheet_rows, file_label, sheet_name)
    if len(sheet_rows) < 2:
        return

    extracted.header_list.extend(normalized.headers)
    department_column = normalized.department_column

    first_columns: dict[str, int] = {}
    for column in normalized.metric_columns:
        first_columns.setdefault(column.header, column.column_index)

    for row_offset, row in enumerate(sheet_rows[1:], start=1):
        if not isinstance(row, (list, tuple)) or not row or _is_blank(row[0]):
            continue

        department_value = row[department_column] if department_column < len(row) else None
        department = "" if department_value is None else str(department_value).strip()

        if department == "" or _NUMERIC_DEPARTMENT_PATTERN.match(department):
            extracted.skipped_rows.append(
                {"sheet": sheet_name, "row": row_offset, "reason": "placeholder department"}
            )
            continue

        row_text = join_row_text(row)
        if any(marker in row_text for marker in ACTIVITY_BANNER_MARKERS):
            logger.info(f"{file_label}: skipping activity banner row '{row_text.strip()}'")
            extracted.skipped_rows.append(
                {"sheet": sheet_name, "row": row_offset, "reason": "activity banner"}
            )
            continue

        if department not in extracted.metrics:
            extracted.departments.append(department)
            extracted.metrics[department] = {}

        # A repeated header is always read from its first column.
        for header, column_index in first_columns.items():
            raw_value = row[column_index] if column_index < len(row) else None
            value = parse_value(raw_value)
            if value is not None:
                extracted.metrics[department][header] = value


def merge_extracted(
    target: MergedReport,
    extracted: ExtractedData,
    content_type: str,
) -> None:
    """Qualify one file's metrics with *content_type* and merge into *target*."""
    for department in extracted.departments:
        if department not in target.metrics:
            target.departments.append(department)
            target.metrics[department] = {}

        department_metrics = target.metrics[department]
        for metric, value in extracted.metrics[department].items():
            qualified = qualify_metric_name(metric, content_type)
            if qualified in department_metrics:
                logger.debug(
                    f"'{qualified}' for '{department}' overwritten by a later file"
                )
            department_metrics[qualified] = value


def qualify_metric_name(header: str, content_type: str) -> str:
    """Append the content type: 'Total Students (placements)'."""
    return f"{header} ({content_type})"


def parse_value(value: object) -> int | float | str | None:
    """
    Parse a cell for storage.

    None and blank strings → None (no value). Numbers pass through.
    Strings that are entirely a number (thousands separators allowed) →
    float. Anything else, including "45%" or "12 students", is returned
    unchanged as a string.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        return None if value != value else value

    text = str(value)
    stripped = text.strip()
    if not stripped:
        return None

    candidate = THOUSANDS_SEP_PATTERN.sub("", stripped)
    if NUMBER_PATTERN.match(candidate):
        return float(candidate)
    return text


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _lookup_override(overrides: dict, file_index: int) -> dict | None:
    override = overrides.get(file_index)
    if override is None:
        override = overrides.get(str(file_index))
    return override


def _skipped_row_warnings(file_label: str, skipped_rows: list[dict]) -> list[str]:
    """One warning per (sheet, reason): 'x.csv [Sheet1]: skipped 2 row(s) (activity banner)'."""
    counts: dict[tuple[str, str], int] = {}
    for skipped in skipped_rows:
        key = (skipped["sheet"], skipped["reason"])
        counts[key] = counts.get(key, 0) + 1
    return [
        f"{file_label} [{sheet}]: skipped {count} row(s) ({reason})"
        for (sheet, reason), count in counts.items()
    ]


def _is_blank(value: object) -> bool:
    return value is None or str(value).strip() == ""
