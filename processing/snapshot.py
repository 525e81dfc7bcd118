"""
Report snapshots — the persisted, point-in-time form of a merged report.

A snapshot is a plain table: headers (Department first, then qualified
metric names) and rows aligned to them, with rows[i][0] the department.
It is what gets stored per organization + template and diffed next time.

Public API:
    build_snapshot(report, timestamp) → ReportSnapshot
    ReportSnapshot.to_dict() / ReportSnapshot.from_dict(data)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from processing.merger import MergedReport

logger = logging.getLogger(__name__)

DEPARTMENT_HEADER: str = "Department"


@dataclass
class ReportSnapshot:
    """Headers + aligned rows + when the snapshot was taken."""

    headers: list[str] = field(default_factory=lambda: [DEPARTMENT_HEADER])
    rows: list[list] = field(default_factory=list)
    timestamp: str = ""

    def to_dict(self) -> dict:
        return {
            "headers": list(self.headers),
            "rows": [list(row) for row in self.rows],
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReportSnapshot":
        """
        Rebuild a snapshot from its stored dict.

        Accepts both the bare {"headers", "rows"} shape and the stored
        envelope {"data": {...}, "timestamp": ...}.
        """
        if "data" in data and isinstance(data["data"], dict):
            timestamp = data.get("timestamp") or data["data"].get("timestamp", "")
            data = data["data"]
        else:
            timestamp = data.get("timestamp", "")

        headers = data.get("headers")
        rows = data.get("rows")
        if not isinstance(headers, list) or not isinstance(rows, list):
            raise ValueError("Snapshot data must contain 'headers' and 'rows' lists")

        return cls(
            headers=[str(header) for header in headers],
            rows=[list(row) if isinstance(row, (list, tuple)) else [] for row in rows],
            timestamp=timestamp or "",
        )

    @property
    def departments(self) -> list[str]:
        return [str(row[0]) if row else "" for row in self.rows]


def build_snapshot(report: MergedReport | dict, timestamp: str | None = None) -> ReportSnapshot:
    """
    Flatten a merged report into a snapshot table.

    Metric columns appear in first-seen order walking departments in their
    merged order. A department without a value for a column gets "".

    Args:
        report: MergedReport, or its to_dict() form.
        timestamp: Snapshot timestamp; defaults to the report's, then now.
    """
    if isinstance(report, MergedReport):
        departments = report.departments
        metrics = report.metrics
        report_timestamp = report.timestamp
    else:
        departments = report.get("departments", [])
        metrics = report.get("metrics", {})
        report_timestamp = report.get("timestamp", "")

    metric_names: list[str] = []
    seen: set[str] = set()
    for department in departments:
        for metric in metrics.get(department, {}):
            if metric not in seen:
                seen.add(metric)
                metric_names.append(metric)

    rows = []
    for department in departments:
        values = metrics.get(department, {})
        rows.append([department] + [values.get(metric, "") for metric in metric_names])

    snapshot = ReportSnapshot(
        headers=[DEPARTMENT_HEADER] + metric_names,
        rows=rows,
        timestamp=timestamp or report_timestamp or datetime.now(timezone.utc).isoformat(),
    )
    logger.info(
        f"Built snapshot: {len(snapshot.rows)} rows x {len(snapshot.headers)} columns"
    )
    return snapshot
