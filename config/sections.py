"""
Column section and export styling configuration.

Section palette, header suffix rules, delta colours and number formats used
by processing/column_sections.py and utils/excel_formatter.py.

Colours are ARGB hex strings as openpyxl expects them.
"""

DEPARTMENT_SECTION: str = "Department"
DEFAULT_SECTION: str = "default"

# ---------------------------------------------------------------------------
# Section → header fill colour. Static: never configurable per call.
# ---------------------------------------------------------------------------
SECTION_COLORS: dict[str, str] = {
    DEPARTMENT_SECTION: "FFFEF3C7",
    "placements": "FFDBEAFE",
    "assessments": "FFCCFBF1",
    "careers": "FFFED7AA",
    "activities": "FFFEF3C7",
    "enrichment": "FFDCFCE7",
    "employment": "FFF3E8FF",
    "employer-activity": "FFFEE2E2",
    "enrichment-activity": "FFE0F7FA",
    "targets": "FFFCE7F3",
    "login": "FFE0E7FF",
    DEFAULT_SECTION: "FFF3F4F6",
}

# ---------------------------------------------------------------------------
# Qualified-name suffixes: (suffixes, section), checked in this order.
# "(employer activity)" must come before "(employer)"-style checks and
# "(enrichment activity)" before "(enrichment)".
# ---------------------------------------------------------------------------
SUFFIX_SECTION_RULES: list[tuple[tuple[str, ...], str]] = [
    (("(employer activity)",), "employer-activity"),
    (("(enrichment activity)",), "enrichment-activity"),
    (("(enrichment)",), "enrichment"),
    (("(employer)", "(employment)"), "employment"),
    (("(placements)",), "placements"),
    (("(careers)",), "careers"),
    (("(assessments)",), "assessments"),
    (("(targets)",), "targets"),
    (("(login)",), "login"),
]

# ---------------------------------------------------------------------------
# Delta (+/-) column styling: (fill colour, font colour).
# ---------------------------------------------------------------------------
DELTA_COLUMN_SUFFIX: str = " +/-"

DELTA_POSITIVE_STYLE: tuple[str, str] = ("FFE8F5E8", "FF2E7D32")
DELTA_NEGATIVE_STYLE: tuple[str, str] = ("FFFFEBEE", "FFC62828")
DELTA_ZERO_STYLE: tuple[str, str] = ("FFFFF3E0", "FFE65100")
DELTA_MISSING_STYLE: tuple[str, str] = ("FFF5F5F5", "FF666666")

# ---------------------------------------------------------------------------
# Number formats
# ---------------------------------------------------------------------------
PERCENT_FORMAT: str = "0.0%"
NUMBER_FORMAT: str = "#,##0.00"
DELTA_FORMAT: str = "+0.00;-0.00;0.00"
DELTA_PERCENT_FORMAT: str = "+0.00%;-0.00%;0.00%"
TOTAL_PERCENT_FORMAT: str = "0.00%"

# ---------------------------------------------------------------------------
# Misc styling
# ---------------------------------------------------------------------------
TITLE_FILL_COLOR: str = "FFE6F3FF"
MUTED_TEXT_COLOR: str = "FF666666"
TOTALS_FILL_COLOR: str = "FFF5F5F5"
DATA_BAR_COLOR: str = "FF4472C4"

# A column is numeric if any of its first N values parses as a number.
NUMERIC_SAMPLE_ROWS: int = 25

MIN_COLUMN_WIDTH: int = 15
PERCENT_COLUMN_WIDTH: int = 25

EXPORT_MIME_TYPE: str = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)
