"""
Column section classifier — decides which coloured section a header belongs to.

Used for display only (header fill colours in the export); it has no effect
on merging or diffing.

Rules are evaluated strictly in order and the first match wins:
  1. "Department" (exact, case-insensitive)
  2. A content-type suffix added by the merger, e.g. "(employer activity)"
  3. Keywords in the header text, for unqualified headers
  4. Otherwise "default"

Order is part of the contract: "Students (Enrichment Activity)" also
contains "enrichment", and must still land in "enrichment-activity".

Public API:
    classify(header) → ColumnSection
    section_color(section) → str
"""

from dataclasses import dataclass
from typing import Callable

from config.sections import (
    DEFAULT_SECTION,
    DEPARTMENT_SECTION,
    SECTION_COLORS,
    SUFFIX_SECTION_RULES,
)


@dataclass(frozen=True)
class ColumnSection:
    """A header's section and its ARGB header colour."""

    section: str
    color: str


def _contains_any(*phrases: str) -> Callable[[str], bool]:
    return lambda text: any(phrase in text for phrase in phrases)


def _is_employer_activity(text: str) -> bool:
    return "employer" in text and ("engagement" in text or "activity" in text)


def _is_activity(text: str) -> bool:
    return "activity" in text or ("hours" in text and "scheduled" not in text)


# (predicate over the lowercased header, section). ORDER MATTERS.
_KEYWORD_RULES: list[tuple[Callable[[str], bool], str]] = [
    (_contains_any("placement", "placed", "hours scheduled", "scheduled to date"), "placements"),
    (_contains_any("enrichment"), "enrichment"),
    (_is_employer_activity, "employment"),
    (_contains_any("career", "job profile", "quiz"), "careers"),
    (_contains_any("assessment", "average score", "students without"), "assessments"),
    (_is_activity, "activities"),
    (_contains_any("login", "access"), "login"),
]

_SECTION_RULES: list[tuple[Callable[[str], bool], str]] = (
    [(lambda text: text == "department", DEPARTMENT_SECTION)]
    + [(_contains_any(*suffixes), section) for suffixes, section in SUFFIX_SECTION_RULES]
    + _KEYWORD_RULES
)


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def classify(header: object) -> ColumnSection:
    """Section and colour for *header*; never raises, unknown → default."""
    header_lower = "" if header is None else str(header).strip().lower()

    for predicate, section in _SECTION_RULES:
        if predicate(header_lower):
            return ColumnSection(section=section, color=section_color(section))

    return ColumnSection(section=DEFAULT_SECTION, color=section_color(DEFAULT_SECTION))


def section_color(section: str) -> str:
    """ARGB fill colour for *section*; unknown sections get the default grey."""
    return SECTION_COLORS.get(section, SECTION_COLORS[DEFAULT_SECTION])
