"""
Content classifier — labels each uploaded file with a content domain.

The filename is the primary signal. Sheet content can override it, but only
to tell enrichment data from employer data, since those exports usually
arrive with generic filenames.

Public API:
    classify_by_name(filename) → str
    classify_by_content(sheet_rows) → str | None
    classify_file(filename, sheets) → ContentClassification
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from config.content_types import (
    CONTENT_MARKER_RULES,
    DEFAULT_CONTENT_TYPE,
    FILENAME_KEYWORD_RULES,
)

logger = logging.getLogger(__name__)


@dataclass
class ContentClassification:
    """How a file's content type was decided."""

    content_type: str
    name_content_type: str
    detected_content_type: str | None = None

    @property
    def overridden_by_content(self) -> bool:
        return (
            self.detected_content_type is not None
            and self.detected_content_type != self.name_content_type
        )


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def classify_by_name(filename: str) -> str:
    """
    Pick a content type from keywords in the filename.

    Keyword groups are checked in FILENAME_KEYWORD_RULES order and the first
    group with any keyword in the lowercased name wins, so
    "placement_enrichment.xlsx" is "placements".
    """
    filename_lower = Path(str(filename)).name.lower()

    for keywords, content_type in FILENAME_KEYWORD_RULES:
        if any(keyword in filename_lower for keyword in keywords):
            return content_type

    return DEFAULT_CONTENT_TYPE


def classify_by_content(sheet_rows: list[list]) -> str | None:
    """
    Look for enrichment / employer activity markers anywhere in a sheet.

    Each row's cells are joined with spaces and lowercased; the first row
    containing any marker decides. Returns None when no row does.
    """
    for row in sheet_rows or []:
        if not isinstance(row, (list, tuple)):
            continue
        row_text = join_row_text(row)
        for markers, content_type in CONTENT_MARKER_RULES:
            if any(marker in row_text for marker in markers):
                return content_type
    return None


def classify_file(filename: str, sheets: dict[str, list[list]]) -> ContentClassification:
    """
    Classify a whole file: filename first, then every sheet's content.

    When several sheets carry markers, the last sheet with a marker wins.
    """
    name_type = classify_by_name(filename)

    detected: str | None = None
    for sheet_name, rows in sheets.items():
        sheet_type = classify_by_content(rows)
        if sheet_type is not None:
            logger.info(
                f"Detected content type '{sheet_type}' in sheet "
                f"'{sheet_name}' of '{filename}'"
            )
            detected = sheet_type

    classification = ContentClassification(
        content_type=detected or name_type,
        name_content_type=name_type,
        detected_content_type=detected,
    )
    if classification.overridden_by_content:
        logger.info(
            f"Content of '{filename}' overrides filename type "
            f"'{name_type}' → '{classification.content_type}'"
        )
    return classification


def join_row_text(row: list) -> str:
    """Row cells joined with single spaces, lowercased; blanks become ''."""
    return " ".join("" if value is None else str(value) for value in row).lower()
