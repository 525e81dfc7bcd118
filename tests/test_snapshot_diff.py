"""
Tests for processing/snapshot_diff.py

Covers: eligible (numeric) columns, the no-previous vs no-counterpart
distinction, matching by header and case-insensitive department, and
number-like parsing of percentages.
"""

import pytest

from processing.merger import parse_value
from processing.snapshot import ReportSnapshot
from processing.snapshot_diff import (
    compute_diff,
    is_numeric_column,
    is_percentage_header,
    parse_number_like,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

HEADERS = ["Department", "Score (placements)", "Attendance % (login)", "Notes (default)"]


def _make_snapshot(rows: list[list], headers: list[str] | None = None) -> ReportSnapshot:
    return ReportSnapshot(headers=headers or list(HEADERS), rows=rows, timestamp="t")


def _current() -> ReportSnapshot:
    return _make_snapshot([
        ["Maths", 12, "50%", "good"],
        ["Art", 4, "", "ok"],
    ])


# ═══════════════════════════════════════════════════════════════════════════
# Eligible columns
# ═══════════════════════════════════════════════════════════════════════════

class TestDeltaColumns:
    def test_numeric_and_percentage_columns_only(self):
        diff = compute_diff(_current(), None)
        assert diff.delta_columns == [1, 2]
        assert not diff.has_delta_column(0)
        assert not diff.has_delta_column(3)

    def test_numeric_department_values_still_excluded(self):
        snapshot = _make_snapshot([["101", 1]], headers=["Department", "Total"])
        assert compute_diff(snapshot, None).delta_columns == [1]

    def test_percentage_header_with_no_values(self):
        snapshot = _make_snapshot([["Maths", ""]], headers=["Department", "Pass Percent"])
        assert is_numeric_column(snapshot, 1)

    def test_only_first_rows_sampled(self):
        rows = [[f"Dept {i}", ""] for i in range(25)] + [["Dept 25", 5]]
        snapshot = _make_snapshot(rows, headers=["Department", "Late Total"])
        assert not is_numeric_column(snapshot, 1)


# ═══════════════════════════════════════════════════════════════════════════
# Deltas
# ═══════════════════════════════════════════════════════════════════════════

class TestComputeDiff:
    def test_no_previous_means_zero_everywhere(self):
        diff = compute_diff(_current(), None)

        assert not diff.has_previous
        assert diff.delta(0, 1) == 0
        assert diff.delta(0, 2) == 0
        # blank current value still reports 0 when there is nothing to compare with
        assert diff.delta(1, 2) == 0

    def test_self_diff_is_zero(self):
        current = _current()
        diff = compute_diff(current, _current())

        assert diff.has_previous
        assert diff.delta(0, 1) == 0
        assert diff.delta(0, 2) == 0
        assert diff.delta(1, 1) == 0

    def test_differences(self):
        previous = _make_snapshot([["Maths", 10, "45%", "fine"], ["Art", 6, "10%", ""]])
        diff = compute_diff(_current(), previous)

        assert diff.delta(0, 1) == 2
        assert diff.delta(0, 2) == pytest.approx(0.05)
        assert diff.delta(1, 1) == -2

    def test_blank_current_value_has_no_delta(self):
        previous = _make_snapshot([["Art", 6, "10%", ""]])
        diff = compute_diff(_current(), previous)
        assert diff.delta(1, 2) is None

    def test_new_department_has_no_delta(self):
        previous = _make_snapshot([["Maths", 10, "45%", ""]])
        diff = compute_diff(_current(), previous)

        assert diff.delta(1, 1) is None
        assert diff.delta(1, 2) is None

    def test_new_column_has_no_delta(self):
        previous = _make_snapshot([["Maths", 10]], headers=["Department", "Score (placements)"])
        diff = compute_diff(_current(), previous)

        assert diff.delta(0, 1) == 2
        assert diff.delta(0, 2) is None

    def test_matched_by_header_and_department_not_position(self):
        previous = _make_snapshot(
            [["Art", "x", 1], ["  MATHS ", "y", 7]],
            headers=["Department", "Other", "Score (placements)"],
        )
        diff = compute_diff(_current(), previous)

        assert diff.delta(0, 1) == 5
        assert diff.delta(1, 1) == 3

    def test_text_in_previous_has_no_delta(self):
        previous = _make_snapshot([["Maths", "n/a", "45%", ""]])
        diff = compute_diff(_current(), previous)
        assert diff.delta(0, 1) is None


# ═══════════════════════════════════════════════════════════════════════════
# Number-like parsing
# ═══════════════════════════════════════════════════════════════════════════

class TestParseNumberLike:
    @pytest.mark.parametrize("raw, expected", [
        ("45%", 0.45),
        (" 12.5 % ", 0.125),
        ("1,250", 1250.0),
        ("-3", -3.0),
        (3, 3),
        (0.5, 0.5),
    ])
    def test_numbers(self, raw, expected):
        assert parse_number_like(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "", "  ", "12abc", "n/a", "%", True, float("inf"), float("nan")])
    def test_not_numbers(self, raw):
        assert parse_number_like(raw) is None

    @pytest.mark.parametrize("raw", ["1,250", " 3.5 ", "-2", "1e3", "12abc", "1,25", "abc"])
    def test_agrees_with_merge_parsing(self, raw):
        merged = parse_value(raw)
        expected = merged if isinstance(merged, float) else None
        assert parse_number_like(raw) == expected

    @pytest.mark.parametrize("header, expected", [
        ("Attendance %", True),
        ("Pass Percentage (assessments)", True),
        ("Total Students", False),
        (None, False),
    ])
    def test_is_percentage_header(self, header, expected):
        assert is_percentage_header(header) is expected
