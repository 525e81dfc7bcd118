"""
Tests for processing/merger.py

Covers: end-to-end merge of files from different content types, placeholder
and banner row handling, same-type collisions (later file wins), manual
overrides, batch-fatal read errors, skipped malformed sheets, and value
parsing.
"""

from datetime import datetime, timezone
from pathlib import Path

import openpyxl
import pytest

from processing.content_classifier import classify_file
from processing.errors import UnsupportedFormatError
from processing.file_reader import read_file
from processing.merger import (
    MergedReport,
    UploadedFile,
    extract_file_metrics,
    merge_files,
    parse_value,
    qualify_metric_name,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _xlsx_upload(tmp_path: Path, name: str, rows: list[list]) -> UploadedFile:
    """Write *rows* to a one-sheet workbook and wrap it as an upload."""
    path = tmp_path / name
    workbook = openpyxl.Workbook()
    for row in rows:
        workbook.active.append(row)
    workbook.save(path)
    return UploadedFile(path=path, original_name=name)


def _csv_upload(tmp_path: Path, name: str, text: str) -> UploadedFile:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return UploadedFile(path=path, original_name=name)


# ═══════════════════════════════════════════════════════════════════════════
# End-to-end merge
# ═══════════════════════════════════════════════════════════════════════════

class TestMergeFiles:
    def test_two_domains_merged_per_department(self, tmp_path):
        placements = _xlsx_upload(tmp_path, "placements.xlsx", [
            ["Department", "Total Students"],
            ["Maths", 120],
            ["Science", 80],
        ])
        enrichment = _csv_upload(
            tmp_path, "enrichment.csv", "Department,Total Students\nMaths,15\nArt,4\n"
        )

        report = merge_files([placements, enrichment])

        assert isinstance(report, MergedReport)
        assert report.departments == ["Maths", "Science", "Art"]
        assert report.metrics["Maths"] == {
            "Total Students (placements)": 120,
            "Total Students (enrichment)": 15.0,
        }
        assert report.metrics["Science"] == {"Total Students (placements)": 80}
        assert report.metrics["Art"] == {"Total Students (enrichment)": 4.0}
        assert report.header_file_map == {
            "Total Students (placements)": 0,
            "Total Students (enrichment)": 1,
        }
        assert [info.content_type for info in report.file_info] == ["placements", "enrichment"]

    def test_department_and_program_keyed_files(self, tmp_path):
        placements = _xlsx_upload(tmp_path, "placements.xlsx", [
            ["Department", "Total Students"],
            ["Engineering", 100],
        ])
        enrichment = _csv_upload(
            tmp_path, "enrichment.csv", "Program,Total Students\nEngineering,80\n"
        )

        report = merge_files([placements, enrichment])

        assert report.metrics["Engineering"] == {
            "Total Students (placements)": 100,
            "Total Students (enrichment)": 80,
        }

    def test_alias_headers_never_become_metrics(self, tmp_path):
        upload = _csv_upload(
            tmp_path, "placements.csv",
            "Department,Course Code,Category Name,Total\nMaths,MA101,Core,3\n",
        )
        report = merge_files([upload])

        assert report.metrics["Maths"] == {"Total (placements)": 3.0}
        assert list(report.header_file_map) == ["Total (placements)"]

    def test_file_info_matches_classification(self, tmp_path):
        upload = _csv_upload(
            tmp_path, "activity_export.csv", "Employer Activity\nDepartment,Events\nMaths,2\n"
        )
        sheets = read_file(upload.path).sheets

        report = merge_files([upload])

        assert report.file_info[0].content_type == classify_file(upload.original_name, sheets).content_type
        assert report.file_info[0].content_type == "employer"

    def test_placeholder_departments_skipped(self, tmp_path):
        upload = _xlsx_upload(tmp_path, "placements.xlsx", [
            ["Department", "Score"],
            ["1", "x"],
            [2, 5],
            ["   ", 9],
            ["Maths", 7],
        ])
        report = merge_files([upload])

        assert report.departments == ["Maths"]
        assert report.metrics["Maths"] == {"Score (placements)": 7}

    def test_skipped_rows_reported_as_warnings(self, tmp_path):
        upload = _csv_upload(
            tmp_path, "activity_export.csv",
            "Department,Hours\nEnrichment Activity,\n1,4\n2,5\nMaths,3\n",
        )
        report = merge_files([upload])

        assert report.warnings == [
            "activity_export.csv [Sheet1]: skipped 1 row(s) (activity banner)",
            "activity_export.csv [Sheet1]: skipped 2 row(s) (placeholder department)",
        ]

    def test_activity_banner_rows_skipped(self, tmp_path):
        upload = _csv_upload(
            tmp_path, "activity_export.csv",
            "Department,Hours\nEnrichment Activity,\nMaths,3\n",
        )
        report = merge_files([upload])

        assert report.file_info[0].content_type == "enrichment"
        assert report.departments == ["Maths"]
        assert report.metrics["Maths"] == {"Hours (enrichment)": 3.0}

    def test_same_type_later_file_wins(self, tmp_path):
        # Known surprising behaviour: same content type + same header
        # silently keeps only the later file's value.
        first = _csv_upload(tmp_path, "a_placements.csv", "Department,Total\nMaths,10\n")
        second = _csv_upload(tmp_path, "b_placements.csv", "Department,Total\nMaths,12\n")

        report = merge_files([first, second])

        assert report.metrics["Maths"] == {"Total (placements)": 12.0}
        assert report.header_file_map == {"Total (placements)": 1}

    def test_blank_values_not_stored(self, tmp_path):
        upload = _csv_upload(tmp_path, "report.csv", "Department,A,B\nMaths,,5\n")
        report = merge_files([upload])
        assert report.metrics["Maths"] == {"B (default)": 5.0}

    def test_text_values_kept(self, tmp_path):
        upload = _csv_upload(tmp_path, "login.csv", "Department,Rate\nMaths,45%\n")
        report = merge_files([upload])
        assert report.metrics["Maths"] == {"Rate (login)": "45%"}

    def test_no_files(self):
        stamp = datetime(2025, 1, 2, tzinfo=timezone.utc)
        report = merge_files([], generated_at=stamp)

        assert report.departments == []
        assert report.metrics == {}
        assert report.timestamp == "2025-01-02T00:00:00+00:00"


# ═══════════════════════════════════════════════════════════════════════════
# Manual overrides and file info
# ═══════════════════════════════════════════════════════════════════════════

class TestOverrides:
    def test_override_type_used_verbatim(self, tmp_path):
        upload = _csv_upload(tmp_path, "placements.csv", "Department,Total\nMaths,3\n")
        report = merge_files([upload], overrides={0: {"type": "careers", "color": "FFFED7AA"}})

        assert report.metrics["Maths"] == {"Total (careers)": 3.0}
        assert report.file_info[0].content_type == "careers"
        assert report.file_info[0].color == "FFFED7AA"

    def test_string_keys_accepted(self, tmp_path):
        upload = _csv_upload(tmp_path, "placements.csv", "Department,Total\nMaths,3\n")
        report = merge_files([upload], overrides={"0": {"type": "targets"}})
        assert report.file_info[0].content_type == "targets"

    def test_override_without_type_falls_back(self, tmp_path):
        upload = _csv_upload(tmp_path, "placements.csv", "Department,Total\nMaths,3\n")
        report = merge_files([upload], overrides={0: {"color": "FF000000"}})

        assert report.file_info[0].content_type == "placements"
        assert report.file_info[0].color == "FF000000"

    def test_to_dict_shape(self, tmp_path):
        path = tmp_path / "upload_0.csv"
        path.write_text("Department,Total\nMaths,3\n", encoding="utf-8")
        upload = UploadedFile(path=path, original_name="Placements.csv")

        data = merge_files([upload]).to_dict()

        assert set(data) == {"departments", "metrics", "timestamp", "headerFileMap", "fileInfo"}
        assert data["fileInfo"] == [{
            "originalName": "Placements.csv",
            "filename": "upload_0.csv",
            "contentType": "placements",
        }]
        assert data["headerFileMap"] == {"Total (placements)": 0}

    def test_override_color_not_in_file_info_dict(self, tmp_path):
        upload = _csv_upload(tmp_path, "placements.csv", "Department,Total\nMaths,3\n")
        report = merge_files([upload], overrides={0: {"type": "careers", "color": "FFFED7AA"}})

        assert report.file_info[0].to_dict() == {
            "originalName": "placements.csv",
            "filename": "placements.csv",
            "contentType": "careers",
        }


# ═══════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════

class TestErrors:
    def test_unsupported_file_aborts_batch(self, tmp_path):
        good = _csv_upload(tmp_path, "placements.csv", "Department,Total\nMaths,3\n")
        bad = tmp_path / "notes.pdf"
        bad.write_bytes(b"%PDF")

        with pytest.raises(UnsupportedFormatError) as excinfo:
            merge_files([good, UploadedFile(path=bad, original_name="notes.pdf")])
        assert excinfo.value.filename == "notes.pdf"

    def test_malformed_sheet_skipped(self):
        sheets = {
            "Broken": ["not a row of cells", ["Maths", 1]],
            "Good": [["Department", "Total"], ["Maths", 4]],
        }
        extracted = extract_file_metrics(sheets, "export.xlsx")

        assert extracted.departments == ["Maths"]
        assert extracted.metrics["Maths"] == {"Total": 4}
        assert [entry["sheet"] for entry in extracted.skipped_sheets] == ["Broken"]

    def test_repeated_header_read_from_first_column(self):
        sheets = {"Sheet1": [["Department", "Total", "Total"], ["Maths", 10, 99]]}
        extracted = extract_file_metrics(sheets, "export.xlsx")
        assert extracted.metrics["Maths"] == {"Total": 10}

    def test_repeated_header_blank_first_column_stays_blank(self):
        sheets = {"Sheet1": [["Department", "Total", "Total"], ["Maths", None, 99]]}
        extracted = extract_file_metrics(sheets, "export.xlsx")
        assert extracted.metrics["Maths"] == {}

    def test_header_only_sheet_contributes_nothing(self):
        extracted = extract_file_metrics({"Sheet1": [["Department", "Total"]]}, "x.csv")
        assert extracted.departments == []
        assert extracted.header_list == []


# ═══════════════════════════════════════════════════════════════════════════
# Value parsing
# ═══════════════════════════════════════════════════════════════════════════

class TestParseValue:
    @pytest.mark.parametrize("raw, expected", [
        ("1,250", 1250.0),
        (" 3.5 ", 3.5),
        ("-2", -2.0),
        ("1e3", 1000.0),
        (7, 7),
        (2.25, 2.25),
    ])
    def test_numbers(self, raw, expected):
        assert parse_value(raw) == expected

    @pytest.mark.parametrize("raw", ["45%", "12 students", "abc", "N/A"])
    def test_text_returned_unchanged(self, raw):
        assert parse_value(raw) == raw

    def test_empty_values(self):
        assert parse_value(None) is None
        assert parse_value("   ") is None
        assert parse_value(float("nan")) is None

    def test_qualify_metric_name(self):
        assert qualify_metric_name("Total Students", "placements") == "Total Students (placements)"
