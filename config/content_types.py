"""
Content-type configuration.

Keyword groups, content markers, and department-key aliases used by
processing/content_classifier.py, processing/header_normalizer.py and
processing/merger.py to label uploaded files and find the department column.

Every list here is ORDERED: the classifiers walk them top to bottom and the
first match wins.
"""

# ---------------------------------------------------------------------------
# Supported upload formats (lowercase extensions, leading dot).
# ---------------------------------------------------------------------------
EXCEL_EXTENSIONS: set[str] = {".xlsx", ".xls"}
CSV_EXTENSIONS: set[str] = {".csv"}
SUPPORTED_EXTENSIONS: set[str] = EXCEL_EXTENSIONS | CSV_EXTENSIONS

# A CSV has no sheets; spreadsheet applications call the single one "Sheet1".
CSV_SHEET_NAME: str = "Sheet1"

# ---------------------------------------------------------------------------
# Content domains a file can be labelled with.
# ---------------------------------------------------------------------------
DEFAULT_CONTENT_TYPE: str = "default"

CONTENT_TYPES: list[str] = [
    "placements",
    "enrichment",
    "employer",
    "careers",
    "assessments",
    "targets",
    "login",
    DEFAULT_CONTENT_TYPE,
]

# ---------------------------------------------------------------------------
# Filename keyword groups: (keywords, content type).
# Matched as substrings of the lowercased filename.
# ---------------------------------------------------------------------------
FILENAME_KEYWORD_RULES: list[tuple[tuple[str, ...], str]] = [
    (("placement", "placed"), "placements"),
    (("enrichment", "enrich"), "enrichment"),
    (("employer", "engagement"), "employer"),
    (("career", "careers"), "careers"),
    (("assessment", "assess"), "assessments"),
    (("target", "targets"), "targets"),
    (("login", "access"), "login"),
]

# ---------------------------------------------------------------------------
# Sheet-content markers: (phrases, content type).
# Only enrichment vs employer can be told apart from sheet text; generic
# filenames like "activity_export.xlsx" are common for both.
# ---------------------------------------------------------------------------
CONTENT_MARKER_RULES: list[tuple[tuple[str, ...], str]] = [
    (("enrichment activity", "enrichment"), "enrichment"),
    (("employer activity", "employer engagement"), "employer"),
]

# Banner rows ("Enrichment Activity" section titles) that are not data.
ACTIVITY_BANNER_MARKERS: tuple[str, ...] = (
    "enrichment activity",
    "employer activity",
)

# ---------------------------------------------------------------------------
# Department key column.
# Aliases are tried in order, each as a case-insensitive substring of the
# header cells. No match → column 0.
# ---------------------------------------------------------------------------
DEPARTMENT_ALIASES: list[str] = ["Department", "Program", "Course", "Category"]

# Headers that repeat the department key and never become metrics.
DUPLICATE_DEPARTMENT_HEADERS: set[str] = {"department", "dept", "program"}
