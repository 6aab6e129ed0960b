"""
Reusable UI components: filter sidebar, sort and pagination controls,
lot table and error display.
"""

from __future__ import annotations

from typing import Any, Sequence

import pandas as pd
import streamlit as st

from parkdesk.config import settings
from parkdesk.domain import Lot
from parkdesk.exceptions import ParkDeskError, extract_error_message
from parkdesk.listing import ListState, ListView, Page, page_window
from parkdesk.logging_config import get_logger, log_error
from parkdesk.pricing import display_price
from parkdesk.views import LotLookups
from parkdesk.ui.context import track_event

logger = get_logger(__name__)


def show_error(exc: Exception, *, toast: bool = True) -> None:
    """Inline error plus a toast with the backend's message."""
    if isinstance(exc, ParkDeskError):
        message = exc.user_message
    else:
        log_error("ui_unexpected_error", exc)
        message = extract_error_message(str(exc))
    st.error(message)
    if toast:
        st.toast(message, icon="⚠️")


def render_filter_sidebar(view: ListView, records: Sequence[Any], state: ListState) -> None:
    """Multiselects for each categorical field and min/max inputs for ranges."""
    st.sidebar.title("Filters")
    prefix = f"{view.name}_filter"

    search = st.sidebar.text_input("Search", value=state.search, key=f"{prefix}_search")
    state.set_search(search)

    for field in view.categorical:
        options = view.options(records, field.name)
        if not options:
            continue
        current = [o for o in options if o in state.selections.get(field.name, frozenset())]
        selected = st.sidebar.multiselect(
            field.label,
            options,
            default=current,
            format_func=field.label_for,
            key=f"{prefix}_{field.name}",
        )
        state.set_selection(field.name, selected)

    for field in view.ranges:
        minimum, maximum = state.ranges.get(field.name, (None, None))
        col1, col2 = st.sidebar.columns(2)
        with col1:
            low = st.text_input(
                f"{field.label} min",
                value="" if minimum is None else f"{minimum:g}",
                key=f"{prefix}_{field.name}_min",
            )
        with col2:
            high = st.text_input(
                f"{field.label} max",
                value="" if maximum is None else f"{maximum:g}",
                key=f"{prefix}_{field.name}_max",
            )
        state.set_range(field.name, low, high)

    if state.active_filter_count:
        st.sidebar.caption(f"{state.active_filter_count} active filter(s)")
        if st.sidebar.button("Clear filters", use_container_width=True, key=f"{prefix}_clear"):
            state.clear_filters()
            for key in [k for k in st.session_state if str(k).startswith(prefix)]:
                del st.session_state[key]
            track_event("filters_cleared", {"view": view.name})
            st.rerun()


def render_sort_controls(view: ListView, state: ListState) -> None:
    if not view.sort_fields:
        return
    names = [f.name for f in view.sort_fields]
    labels = {f.name: f.label for f in view.sort_fields}
    current = state.sort.key if state.sort is not None else names[0]

    col1, col2 = st.columns([3, 1])
    with col1:
        chosen = st.selectbox(
            "Sort by",
            names,
            index=names.index(current) if current in names else 0,
            format_func=lambda name: labels[name],
            key=f"{view.name}_sort_key",
        )
    with col2:
        arrow = "↓" if state.sort is not None and state.sort.descending else "↑"
        if st.button(arrow, key=f"{view.name}_sort_dir", help="Reverse order", use_container_width=True):
            state.toggle_sort(chosen)
            st.rerun()
    if state.sort is None or chosen != state.sort.key:
        state.toggle_sort(chosen)


def render_pagination(page: Page, state: ListState, *, noun: str, key: str) -> None:
    """Page size, Prev/Next, numbered window and the "Page X of Y" caption."""
    options = list(settings.page_size_options)
    nav1, nav2, nav3, nav4 = st.columns([1, 3, 1, 1])
    with nav1:
        if st.button("← Prev", disabled=not page.has_previous, use_container_width=True, key=f"{key}_prev"):
            state.goto_page(page.page - 1)
            st.rerun()
    with nav2:
        window = page_window(page.page, page.total_pages)
        buttons = st.columns(len(window))
        for col, number in zip(buttons, window):
            with col:
                kind = "primary" if number == page.page else "secondary"
                if st.button(str(number), type=kind, key=f"{key}_page_{number}", use_container_width=True):
                    state.goto_page(number)
                    st.rerun()
    with nav3:
        if st.button("Next →", disabled=not page.has_next, use_container_width=True, key=f"{key}_next"):
            state.goto_page(page.page + 1)
            st.rerun()
    with nav4:
        size = st.selectbox(
            "Per page",
            options,
            index=options.index(state.page_size) if state.page_size in options else 0,
            key=f"{key}_page_size",
            label_visibility="collapsed",
        )
        if size != state.page_size:
            state.set_page_size(size, options)
            st.rerun()

    st.caption(f"Page {page.page} of {page.total_pages} ({page.total} filtered {noun})")


def lot_rows(lots: Sequence[Lot], lookups: LotLookups) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Lot": lot.name_or_number,
                "Status": ", ".join(s.label for s in sorted(lot.status, key=lambda s: s.value)) or "-",
                "Price": display_price(lot),
                "Park": lookups.park_name(lot) or "-",
                "Company": lookups.company_name(lot) or "-",
                "Beds": lot.bedrooms,
                "Baths": lot.bathrooms,
                "Sq Ft": lot.sq_ft,
                "Special status": lookups.special_status_name(lot) or "",
                "Visible": lot.is_active,
            }
            for lot in lots
        ]
    )


def render_lot_table(lots: Sequence[Lot], lookups: LotLookups) -> None:
    if not lots:
        st.info("No lots match the current filters.")
        return
    st.dataframe(lot_rows(lots, lookups), hide_index=True, use_container_width=True)
