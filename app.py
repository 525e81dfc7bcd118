"""
Streamlit entry point — Department Metrics Consolidator UI.

Wires the processing modules into a 4-step flow:
  1. Sidebar settings (organization, template, report name, summary)
  2. File upload + optional per-file content type override
  3. Merge into one department table, preview, compare with the stored
     previous snapshot
  4. Download the formatted Excel report and store it as the next baseline

Contains NO business logic — only calls processing modules and displays results.
"""

import logging
import tempfile
from datetime import datetime
from pathlib import Path

import pandas as pd
import streamlit as st

from config.content_types import CONTENT_TYPES
from processing.column_sections import classify
from processing.errors import MetricsImportError
from processing.merger import UploadedFile, merge_files
from processing.snapshot import build_snapshot
from processing.snapshot_diff import compute_diff
from utils.excel_formatter import export_report
from utils.snapshot_store import JsonSnapshotStore, SnapshotStoreError

logger = logging.getLogger(__name__)

_AUTO_DETECT = "Auto-detect"


# ═══════════════════════════════════════════════════════════════════════════
# Page configuration
# ═══════════════════════════════════════════════════════════════════════════

st.set_page_config(
    page_title="Department Metrics Consolidator",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ═══════════════════════════════════════════════════════════════════════════
# Session state initialisation
# ═══════════════════════════════════════════════════════════════════════════

def _init_session_state() -> None:
    """Ensure all required session state keys exist with sensible defaults."""
    defaults: dict = {
        "merged_report": None,
        "snapshot": None,
        "baseline_saved": False,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


_init_session_state()

snapshot_store = JsonSnapshotStore(
    Path(st.secrets.get("SNAPSHOT_STORE_PATH", "data/previous-reports.json"))
)


# ═══════════════════════════════════════════════════════════════════════════
# Sidebar — Settings
# ═══════════════════════════════════════════════════════════════════════════

st.sidebar.title("⚙️ Settings")

organization_id = st.sidebar.text_input("Organization ID", value="default")
template_key = st.sidebar.text_input(
    "Template",
    value="default",
    help="Reports are compared against the previous report of the same template.",
)
report_name = st.sidebar.text_input("Report name", value="Department Report")
report_summary = st.sidebar.text_area("Summary (optional)", value="")


# ═══════════════════════════════════════════════════════════════════════════
# Main area — Title
# ═══════════════════════════════════════════════════════════════════════════

st.title("📊 Department Metrics Consolidator")
st.caption(
    "Upload placement, enrichment, employer, careers, assessment and login "
    "exports to build one table per department, with changes since last time."
)


# ═══════════════════════════════════════════════════════════════════════════
# Section 1: File Upload
# ═══════════════════════════════════════════════════════════════════════════

st.header("📁 Upload Files")

uploaded_files = st.file_uploader(
    "Source exports",
    type=["xlsx", "xls", "csv"],
    accept_multiple_files=True,
    help="Files are merged in the order shown. For two files of the same "
         "type with the same column, the later file's values are kept.",
)

if uploaded_files != st.session_state.get("_prev_uploaded_files"):
    st.session_state["_prev_uploaded_files"] = uploaded_files
    st.session_state["merged_report"] = None
    st.session_state["snapshot"] = None
    st.session_state["baseline_saved"] = False

overrides: dict[int, dict] = {}
if uploaded_files:
    st.subheader("Content types")
    for idx, uploaded in enumerate(uploaded_files):
        name_col, type_col = st.columns([3, 1])
        name_col.text(uploaded.name)
        choice = type_col.selectbox(
            "Content type",
            options=[_AUTO_DETECT] + CONTENT_TYPES,
            key=f"content_type_{idx}",
            label_visibility="collapsed",
        )
        if choice != _AUTO_DETECT:
            overrides[idx] = {"type": choice, "color": classify(f"({choice})").color}


# ═══════════════════════════════════════════════════════════════════════════
# Section 2: Merge
# ═══════════════════════════════════════════════════════════════════════════

if uploaded_files and st.button("🔄 Build Report", type="primary"):
    with st.spinner("Reading and merging files..."):
        with tempfile.TemporaryDirectory() as temp_dir:
            batch: list[UploadedFile] = []
            for idx, uploaded in enumerate(uploaded_files):
                temp_path = Path(temp_dir) / f"{idx}_{uploaded.name}"
                temp_path.write_bytes(uploaded.getvalue())
                batch.append(UploadedFile(path=temp_path, original_name=uploaded.name))

            try:
                merged = merge_files(batch, overrides=overrides)
            except MetricsImportError as exc:
                logger.error(f"Upload batch failed: {exc}")
                st.error(f"Could not process '{exc.filename}': {exc}")
                merged = None

    if merged is not None:
        st.session_state["merged_report"] = merged
        st.session_state["snapshot"] = build_snapshot(merged)
        st.session_state["baseline_saved"] = False


merged_report = st.session_state.get("merged_report")
snapshot = st.session_state.get("snapshot")

if merged_report is not None and snapshot is not None:
    st.divider()
    st.header("📋 Merged Report")

    metric_cols = st.columns(3)
    metric_cols[0].metric("Files", len(merged_report.file_info))
    metric_cols[1].metric("Departments", len(merged_report.departments))
    metric_cols[2].metric("Metrics", len(snapshot.headers) - 1)

    for warning in merged_report.warnings:
        st.warning(warning)

    with st.expander("Source files"):
        st.dataframe(
            pd.DataFrame([info.to_dict() for info in merged_report.file_info]),
            use_container_width=True,
            hide_index=True,
        )

    st.dataframe(
        pd.DataFrame(snapshot.rows, columns=snapshot.headers),
        use_container_width=True,
        hide_index=True,
    )

    # ── Comparison with previous snapshot ─────────────────────────
    store_readable = True
    try:
        previous = snapshot_store.get(organization_id, template_key)
    except SnapshotStoreError as exc:
        logger.error(f"Previous snapshot lookup failed: {exc}")
        st.error(f"Could not read stored reports: {exc}")
        previous = None
        store_readable = False

    diff = compute_diff(snapshot, previous)
    if not store_readable:
        st.warning("Changes show as 0, and saving a new baseline is disabled until the file is fixed.")
    elif previous is None:
        st.info("No previous report for this template — all changes show as 0.")
    else:
        st.caption(f"Compared with the report stored at {previous.timestamp}.")

    # ── Download ──────────────────────────────────────────────────
    st.divider()
    st.header("💾 Download")

    artifact = export_report(
        snapshot,
        previous,
        report_name=report_name,
        generated_at=datetime.now(),
        summary=report_summary,
        diff=diff,
    )
    st.download_button(
        label="📥 Download Excel Report",
        data=artifact.content,
        file_name=artifact.filename,
        mime=artifact.mime_type,
        type="primary",
        use_container_width=True,
    )

    if st.button("📌 Save as baseline for next comparison", disabled=not store_readable):
        snapshot_store.put(organization_id, template_key, snapshot)
        st.session_state["baseline_saved"] = True

    if st.session_state.get("baseline_saved"):
        st.success("Saved. The next report for this template will be compared with this one.")
