"""
Snapshot stores — where the previous report for an organization + template lives.

The processing modules never touch storage themselves; callers look the
previous snapshot up here, hand it to the diff/export step, and put the new
one back afterwards.

JsonSnapshotStore keeps everything in one JSON file shaped as:

    {
      "<organization id>": {
        "<template key>": {"data": {"headers": [...], "rows": [...]},
                           "timestamp": "..."}
      }
    }

Public API:
    SnapshotStore (protocol): get(organization_id, template_key), put(...)
    JsonSnapshotStore(path)
    InMemorySnapshotStore()
    SnapshotStoreError: raised by JsonSnapshotStore when its file is corrupt
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from processing.snapshot import ReportSnapshot

logger = logging.getLogger(__name__)


class SnapshotStoreError(Exception):
    """The store file exists but cannot be read; it is never overwritten."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class SnapshotStore(Protocol):
    def get(self, organization_id: str | int, template_key: str | None) -> ReportSnapshot | None:
        ...

    def put(self, organization_id: str | int, template_key: str | None, snapshot: ReportSnapshot) -> None:
        ...


def _template_slot(template_key: str | None) -> str:
    return template_key or "default"


def _select_entry(templates: dict, template_key: str | None) -> dict | None:
    """
    Pick the stored entry for *template_key*.

    An unknown key only falls back to the "default" slot, which holds reports
    saved without a template. Any other template's snapshot is never used,
    so a new template starts with no previous snapshot.
    """
    if not templates:
        return None
    if template_key and template_key in templates:
        return templates[template_key]
    return templates.get(_template_slot(None))


# ═══════════════════════════════════════════════════════════════════════════
# In-memory store
# ═══════════════════════════════════════════════════════════════════════════

class InMemorySnapshotStore:
    """Dict-backed store for tests and single-session use."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, dict]] = {}

    def get(self, organization_id: str | int, template_key: str | None) -> ReportSnapshot | None:
        entry = _select_entry(self._entries.get(str(organization_id), {}), template_key)
        return ReportSnapshot.from_dict(entry) if entry else None

    def put(self, organization_id: str | int, template_key: str | None, snapshot: ReportSnapshot) -> None:
        self._entries.setdefault(str(organization_id), {})[_template_slot(template_key)] = {
            "data": snapshot.to_dict(),
            "timestamp": snapshot.timestamp or datetime.now(timezone.utc).isoformat(),
        }


# ═══════════════════════════════════════════════════════════════════════════
# JSON file store
# ═══════════════════════════════════════════════════════════════════════════

class JsonSnapshotStore:
    """All organizations' previous snapshots in a single JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def get(self, organization_id: str | int, template_key: str | None) -> ReportSnapshot | None:
        entries = self._load()
        org_entries = entries.get(str(organization_id))
        if not isinstance(org_entries, dict):
            return None

        # Very old files stored the snapshot directly under the organization.
        if "headers" in org_entries or "data" in org_entries:
            entry = org_entries
        else:
            entry = _select_entry(org_entries, template_key)

        if entry is None:
            return None
        try:
            return ReportSnapshot.from_dict(entry)
        except ValueError as exc:
            logger.warning(
                f"Ignoring unreadable snapshot for organization {organization_id}: {exc}"
            )
            return None

    def put(self, organization_id: str | int, template_key: str | None, snapshot: ReportSnapshot) -> None:
        entries = self._load()
        org_entries = entries.get(str(organization_id))
        if not isinstance(org_entries, dict) or "headers" in org_entries or "data" in org_entries:
            org_entries = {}

        org_entries[_template_slot(template_key)] = {
            "data": snapshot.to_dict(),
            "timestamp": snapshot.timestamp or datetime.now(timezone.utc).isoformat(),
        }
        entries[str(organization_id)] = org_entries

        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        temp_path.write_text(json.dumps(entries, indent=2, default=str), encoding="utf-8")
        temp_path.replace(self.path)
        logger.info(
            f"Stored snapshot for organization {organization_id}, template "
            f"'{_template_slot(template_key)}' in '{self.path}'"
        )

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            error_message = f"Snapshot file '{self.path}' is not valid JSON: {exc}"
            logger.error(error_message)
            raise SnapshotStoreError(error_message, path=self.path) from exc
        return data if isinstance(data, dict) else {}
