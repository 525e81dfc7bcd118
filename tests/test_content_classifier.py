"""
Tests for processing/content_classifier.py

Covers: filename keyword precedence, enrichment/employer content markers,
and content overriding the filename across multiple sheets.
"""

import pytest

from processing.content_classifier import (
    classify_by_content,
    classify_by_name,
    classify_file,
    join_row_text,
)


# ═══════════════════════════════════════════════════════════════════════════
# Filename keywords
# ═══════════════════════════════════════════════════════════════════════════

class TestClassifyByName:
    @pytest.mark.parametrize("filename, expected", [
        ("Placements_Autumn.xlsx", "placements"),
        ("students_placed.csv", "placements"),
        ("Enrichment 2025.xlsx", "enrichment"),
        ("employer_engagement.xlsx", "employer"),
        ("Careers.csv", "careers"),
        ("assessment-results.xls", "assessments"),
        ("targets.xlsx", "targets"),
        ("student_login.csv", "login"),
        ("report.xlsx", "default"),
    ])
    def test_keywords(self, filename, expected):
        assert classify_by_name(filename) == expected

    def test_first_keyword_group_wins(self):
        assert classify_by_name("placement_enrichment.xlsx") == "placements"

    def test_directory_part_ignored(self):
        assert classify_by_name("/tmp/careers/report.xlsx") == "default"


# ═══════════════════════════════════════════════════════════════════════════
# Sheet content markers
# ═══════════════════════════════════════════════════════════════════════════

class TestClassifyByContent:
    def test_enrichment_banner(self):
        rows = [["Enrichment Activity"], ["Department", "Hours"], ["Maths", 3]]
        assert classify_by_content(rows) == "enrichment"

    def test_employer_marker(self):
        rows = [["Department", "Employer Engagement events"], ["Maths", 2]]
        assert classify_by_content(rows) == "employer"

    def test_first_marked_row_decides(self):
        rows = [["Employer Activity"], ["Enrichment Activity"]]
        assert classify_by_content(rows) == "employer"

    def test_no_marker(self):
        assert classify_by_content([["Department", "Total Students"], ["Maths", 1]]) is None

    def test_non_row_entries_ignored(self):
        assert classify_by_content([None, "Enrichment Activity", ["Department"]]) is None

    def test_join_row_text(self):
        assert join_row_text(["Enrichment", None, 3]) == "enrichment  3"


# ═══════════════════════════════════════════════════════════════════════════
# Whole-file classification
# ═══════════════════════════════════════════════════════════════════════════

class TestClassifyFile:
    def test_content_overrides_generic_filename(self):
        sheets = {"Sheet1": [["Employer Activity"], ["Department", "Events"]]}
        result = classify_file("activity_export.xlsx", sheets)

        assert result.content_type == "employer"
        assert result.name_content_type == "default"
        assert result.overridden_by_content

    def test_content_overrides_filename_keyword(self):
        sheets = {"Sheet1": [["Enrichment Activity"]]}
        result = classify_file("employer.xlsx", sheets)
        assert result.content_type == "enrichment"

    def test_last_marked_sheet_wins(self):
        sheets = {
            "First": [["Enrichment Activity"]],
            "Second": [["Employer Activity"]],
            "Third": [["Department", "Hours"]],
        }
        assert classify_file("export.xlsx", sheets).content_type == "employer"

    def test_filename_used_without_markers(self):
        sheets = {"Sheet1": [["Department", "Total Students"]]}
        result = classify_file("placements.xlsx", sheets)

        assert result.content_type == "placements"
        assert result.detected_content_type is None
        assert not result.overridden_by_content
