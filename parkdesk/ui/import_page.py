"""
Bulk upload page: drives ``ImportWizard`` one step per rerun.
"""

from __future__ import annotations

import pandas as pd
import streamlit as st

from parkdesk.bulk_import import LOT_IMPORT_FIELDS, SKIP, ImportStep, ImportWizard, field_label
from parkdesk.client import ParkDeskClient
from parkdesk.config import settings
from parkdesk.domain import User
from parkdesk.exceptions import ParkDeskError
from parkdesk.logging_config import get_logger
from parkdesk.ui.components import show_error
from parkdesk.ui.context import track_event
from parkdesk.ui.session import get_wizard

logger = get_logger(__name__)

_STEP_TITLES = {
    ImportStep.UPLOAD: "1. Upload file",
    ImportStep.MAPPING: "2. Map columns",
    ImportStep.PREVIEW: "3. Preview",
    ImportStep.IMPORTING: "4. Importing",
    ImportStep.RESULTS: "5. Results",
}


def _render_upload(wizard: ImportWizard) -> None:
    st.caption("Upload a CSV or Excel file (.csv, .xlsx, .xls) with one lot per row.")
    uploaded = st.file_uploader("Lot file", type=["csv", "xlsx", "xls"], key="import_file")
    if uploaded is None:
        return
    if st.button("Continue", type="primary"):
        try:
            upload = wizard.load_file(uploaded.name, uploaded.getvalue())
        except ParkDeskError as exc:
            show_error(exc)
            return
        track_event("import_file_loaded", {"row_count": upload.row_count, "column_count": len(upload.headers)})
        st.rerun()


def _render_mapping(wizard: ImportWizard) -> None:
    st.caption(f"{wizard.upload.filename}: {len(wizard.rows)} rows, {len(wizard.headers)} columns")
    choices = [SKIP, *wizard.headers]
    draft = dict(wizard.mapping)

    cols = st.columns(2)
    for i, field in enumerate(LOT_IMPORT_FIELDS):
        current = draft.get(field.key, SKIP)
        with cols[i % 2]:
            draft[field.key] = st.selectbox(
                field_label(field.key, wizard.require_park_name),
                choices,
                index=choices.index(current) if current in choices else 0,
                format_func=lambda value: "(skip)" if value == SKIP else value,
                key=f"import_map_{field.key}",
            )

    col1, col2 = st.columns([1, 3])
    with col1:
        if st.button("Start over", use_container_width=True):
            wizard.reset()
            st.rerun()
    with col2:
        if st.button("Preview", type="primary", use_container_width=True):
            try:
                wizard.confirm_mapping(draft)
            except ParkDeskError as exc:
                show_error(exc)
                return
            st.rerun()


def _render_preview(wizard: ImportWizard, client: ParkDeskClient) -> None:
    preview = wizard.preview()
    st.dataframe(
        pd.DataFrame(
            [
                {"Lot": r.name, "Status": r.status, "Park": r.park, "Price": r.price, "Description": r.description}
                for r in preview.rows
            ]
        ),
        hide_index=True,
        use_container_width=True,
    )
    if preview.remaining_caption:
        st.caption(preview.remaining_caption)
    if wizard.error:
        st.error(wizard.error)

    col1, col2 = st.columns([1, 3])
    with col1:
        if st.button("Back", use_container_width=True):
            wizard.back_to_mapping()
            st.rerun()
    with col2:
        if st.button(f"Import {preview.total} lots", type="primary", use_container_width=True):
            _run_import(wizard, client)


def _run_import(wizard: ImportWizard, client: ParkDeskClient) -> None:
    bar = st.progress(0, text="Importing lots...")
    try:
        results = wizard.run_import(
            client.bulk_create_lots,
            on_progress=lambda value: bar.progress(value, text="Importing lots..."),
        )
    except ParkDeskError as exc:
        show_error(exc)
        return
    st.toast(results.summary)
    track_event(
        "import_completed",
        {"successful": len(results.successful), "failed": len(results.failed), "warnings": len(results.warnings)},
    )
    st.rerun()


def _render_results(wizard: ImportWizard) -> None:
    results = wizard.results
    st.success(results.summary)
    col1, col2, col3 = st.columns(3)
    col1.metric("Successful", len(results.successful))
    col2.metric("Failed", len(results.failed))
    col3.metric("Warnings", len(results.warnings))

    if results.failed:
        st.markdown("#### Failed rows")
        for line in results.failure_lines():
            st.error(line)
    if results.warnings:
        st.markdown("#### Warnings")
        for line in results.warning_lines():
            st.warning(line)

    if st.button("Import another file", type="primary"):
        wizard.reset()
        st.rerun()


def render_import_page(client: ParkDeskClient, user: User) -> None:
    st.title("Bulk upload lots")
    wizard = get_wizard()
    if wizard.require_park_name is None:
        wizard.require_park_name = settings.require_park_name
    st.markdown(f"### {_STEP_TITLES[wizard.step]}")

    if wizard.step is ImportStep.UPLOAD:
        _render_upload(wizard)
    elif wizard.step is ImportStep.MAPPING:
        _render_mapping(wizard)
    elif wizard.step is ImportStep.PREVIEW:
        _render_preview(wizard, client)
    elif wizard.step is ImportStep.RESULTS:
        _render_results(wizard)
    else:
        # An import interrupted by a closed session; nothing is in flight any more.
        st.warning("The previous import did not finish. Check the lot list before retrying.")
        if st.button("Start over"):
            wizard.reset()
            st.rerun()
