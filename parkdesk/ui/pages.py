"""
Page renderers for the Streamlit console.

Every page takes the shared client and the already-guarded user.
Mutations go through the client (which invalidates its cached lists)
and then rerun the script.
"""

from __future__ import annotations

import pandas as pd
import streamlit as st

from parkdesk.client import ParkDeskClient
from parkdesk.config import ROLE_LABELS, settings
from parkdesk.domain import Company, Lot, Park, Role, ShowingStatus, User
from parkdesk.exceptions import ParkDeskError
from parkdesk.listing import ListView
from parkdesk.logging_config import get_logger
from parkdesk.pricing import display_price, format_money
from parkdesk.ui.components import (
    render_filter_sidebar,
    render_lot_table,
    render_pagination,
    render_sort_controls,
    show_error,
)
from parkdesk.ui.context import track_event
from parkdesk.ui.data import by_id, load_companies, load_lot_lookups, load_lots, load_parks, load_showings
from parkdesk.ui.session import get_list_state
from parkdesk.views import LotLookups, company_view, lot_view, park_view, showing_view, tenant_view

logger = get_logger(__name__)


def _run_list(view: ListView, records: list, *, noun: str, include_text: bool = True):
    state = get_list_state(view)
    render_filter_sidebar(view, records, state)
    render_sort_controls(view, state)
    page = view.run(records, state, include_text=include_text)
    render_pagination(page, state, noun=noun, key=view.name)
    return page


# =============================================================================
# Lots
# =============================================================================


def _render_lot_actions(client: ParkDeskClient, lots: list[Lot], lookups: LotLookups) -> None:
    if not lots:
        return
    st.markdown("#### Manage lot")
    by_lot = {lot.id: lot for lot in lots if lot.id}
    lot_id = st.selectbox(
        "Lot",
        list(by_lot),
        format_func=lambda key: f"{by_lot[key].name_or_number} ({lookups.park_name(by_lot[key]) or 'no park'})",
        key="lot_manage_select",
    )
    lot = by_lot.get(lot_id)
    if lot is None:
        return

    col1, col2, col3 = st.columns(3)
    with col1:
        label = "Hide lot" if lot.is_active else "Show lot"
        if st.button(label, use_container_width=True, key="lot_toggle_active"):
            try:
                client.toggle_lot_active(lot.id)
            except ParkDeskError as exc:
                show_error(exc)
            else:
                track_event("lot_visibility_toggled", {"lot_id": lot.id})
                st.rerun()

    with col2:
        try:
            statuses = client.list_special_statuses(lot.park_id) if lot.park_id else []
        except ParkDeskError as exc:
            show_error(exc, toast=False)
            statuses = []
        choices = [""] + [s.id for s in statuses if s.id]
        names = {s.id: s.name for s in statuses}
        current = lot.special_status_id if lot.special_status_id in choices else ""
        chosen = st.selectbox(
            "Special status",
            choices,
            index=choices.index(current),
            format_func=lambda key: names.get(key, "None") if key else "None",
            key="lot_special_status",
        )
        if chosen != current and st.button("Assign", use_container_width=True, key="lot_special_status_apply"):
            try:
                client.set_lot_special_status(lot.id, chosen or None)
            except ParkDeskError as exc:
                show_error(exc)
            else:
                st.rerun()

    with col3:
        confirm = st.checkbox("Confirm delete", key="lot_delete_confirm")
        if st.button("Delete lot", disabled=not confirm, use_container_width=True, key="lot_delete"):
            try:
                client.delete_lot(lot.id)
            except ParkDeskError as exc:
                show_error(exc)
            else:
                track_event("lot_deleted", {"lot_id": lot.id})
                st.rerun()


def render_lots_page(client: ParkDeskClient, user: User) -> None:
    st.title("Lots")
    server_search = settings.server_side_search
    try:
        lookups = load_lot_lookups(client, user)
        view = lot_view(lookups)
        state = get_list_state(view)
        lots = load_lots(client, search=state.search if server_search else "")
        lookups.add_special_statuses(lots)
    except ParkDeskError as exc:
        show_error(exc, toast=False)
        return

    page = _run_list(view, lots, noun="lots", include_text=not server_search)
    render_lot_table(page.items, lookups)
    if user.role in (Role.ADMIN, Role.COMPANY_MANAGER, Role.MANAGER):
        _render_lot_actions(client, page.items, lookups)


# =============================================================================
# Parks and companies
# =============================================================================


def _company_name(park: Park, companies: dict[str, Company]) -> str:
    if park.company is not None and park.company.name:
        return park.company.name
    company = companies.get(park.company_id) if park.company_id else None
    return company.name if company else ""


def render_parks_page(client: ParkDeskClient, user: User) -> None:
    st.title("Parks")
    try:
        parks = load_parks(client, user)
        companies = by_id(load_companies(client)) if user.role is Role.ADMIN else {}
    except ParkDeskError as exc:
        show_error(exc, toast=False)
        return

    view = park_view(companies)
    page = _run_list(view, parks, noun="parks")
    if not page.items:
        st.info("No parks match the current filters.")
        return
    st.dataframe(
        pd.DataFrame(
            [
                {
                    "Park": park.name,
                    "City": park.city or "",
                    "State": park.state or "",
                    "Company": _company_name(park, companies),
                    "Visible": park.is_active,
                }
                for park in page.items
            ]
        ),
        hide_index=True,
        use_container_width=True,
    )


def _company_form(key: str, defaults: dict | None = None) -> dict | None:
    defaults = defaults or {}
    with st.form(key, clear_on_submit=not defaults):
        name = st.text_input("Name *", value=defaults.get("name", ""))
        email = st.text_input("Email", value=defaults.get("email") or "")
        phone = st.text_input("Phone", value=defaults.get("phone") or "")
        address = st.text_input("Address", value=defaults.get("address") or "")
        col1, col2, col3 = st.columns(3)
        with col1:
            city = st.text_input("City", value=defaults.get("city") or "")
        with col2:
            state = st.text_input("State", value=defaults.get("state") or "")
        with col3:
            zip_code = st.text_input("Zip", value=defaults.get("zip") or "")
        submitted = st.form_submit_button("Save", type="primary")
    if not submitted:
        return None
    if not name.strip():
        st.error("Name is required")
        return None
    return {
        "name": name.strip(),
        "email": email.strip() or None,
        "phone": phone.strip() or None,
        "address": address.strip() or None,
        "city": city.strip() or None,
        "state": state.strip() or None,
        "zip": zip_code.strip() or None,
    }


def render_companies_page(client: ParkDeskClient, user: User) -> None:
    st.title("Companies")
    try:
        companies = load_companies(client)
    except ParkDeskError as exc:
        show_error(exc, toast=False)
        return

    with st.expander("New company", expanded=False):
        data = _company_form("company_create")
        if data is not None:
            try:
                client.create_company(data)
            except ParkDeskError as exc:
                show_error(exc)
            else:
                st.toast("Company created")
                st.rerun()

    page = _run_list(company_view(), companies, noun="companies")
    for company in page.items:
        with st.container(border=True):
            col1, col2 = st.columns([4, 1])
            with col1:
                st.markdown(f"**{company.name}**")
                st.caption(" · ".join(x for x in (company.city, company.state, company.email) if x))
            with col2:
                if st.button("Delete", key=f"company_delete_{company.id}", use_container_width=True):
                    try:
                        client.delete_company(company.id)
                    except ParkDeskError as exc:
                        show_error(exc)
                    else:
                        st.rerun()
            with st.expander("Edit"):
                changes = _company_form(f"company_edit_{company.id}", company.to_api())
                if changes is not None:
                    try:
                        client.update_company(company.id, changes)
                    except ParkDeskError as exc:
                        show_error(exc)
                    else:
                        st.rerun()


# =============================================================================
# Showings and tenants
# =============================================================================


def render_showings_page(client: ParkDeskClient, user: User) -> None:
    st.title("Showings")
    period = "this-month"
    if user.role is not Role.ADMIN:
        period = st.radio("Period", ["today", "this-week", "this-month"], horizontal=True, index=2)
    try:
        showings = load_showings(client, user, period=period)
        lots = by_id(load_lots(client))
    except ParkDeskError as exc:
        show_error(exc, toast=False)
        return

    page = _run_list(showing_view(lots), showings, noun="showings")
    if not page.items:
        st.info("No showings match the current filters.")
        return

    statuses = [s.value for s in ShowingStatus]
    for showing in page.items:
        lot = showing.lot or lots.get(showing.lot_id)
        with st.container(border=True):
            col1, col2 = st.columns([3, 2])
            with col1:
                when = showing.start_dt.strftime("%Y-%m-%d %H:%M") if showing.start_dt else "unscheduled"
                st.markdown(f"**{showing.client_name or 'Unknown client'}** · {when}")
                st.caption(f"Lot {lot.name_or_number if lot else showing.lot_id or '-'}")
            with col2:
                current = showing.status.value if showing.status else statuses[0]
                chosen = st.selectbox(
                    "Status",
                    statuses,
                    index=statuses.index(current),
                    key=f"showing_status_{showing.id}",
                )
                if chosen != current:
                    try:
                        if user.role is Role.ADMIN:
                            client.update_booking_status(showing.id, chosen)
                        else:
                            client.update_showing(showing.id, {"status": chosen})
                    except ParkDeskError as exc:
                        show_error(exc)
                    else:
                        track_event("showing_status_changed", {"showing_id": showing.id, "status": chosen})
                        st.rerun()


def render_tenants_page(client: ParkDeskClient, user: User) -> None:
    st.title("Tenants")
    try:
        tenants = client.list_tenants()
        parks = by_id(load_parks(client, user))
    except ParkDeskError as exc:
        show_error(exc, toast=False)
        return

    page = _run_list(tenant_view(parks), tenants, noun="tenants")
    if not page.items:
        st.info("No tenants match the current filters.")
        return
    st.dataframe(
        pd.DataFrame(
            [
                {
                    "Name": tenant.full_name,
                    "Email": tenant.email or "",
                    "Phone": tenant.phone or "",
                    "Status": tenant.status.value if tenant.status else "",
                    "Lot": tenant.lot.name_or_number if tenant.lot else "",
                    "Lease end": tenant.lease_end_date or "",
                    "Rent": format_money(tenant.monthly_rent) if tenant.monthly_rent else "",
                }
                for tenant in page.items
            ]
        ),
        hide_index=True,
        use_container_width=True,
    )


def render_my_info_page(client: ParkDeskClient, user: User) -> None:
    st.title("My info")
    st.caption(f"{user.display_name} · {ROLE_LABELS.get(user.role.value, user.role.value)}")
    try:
        tenant = client.my_tenant_info()
        payments = client.my_payments()
    except ParkDeskError as exc:
        show_error(exc, toast=False)
        return

    if tenant is None:
        st.info("No tenancy is linked to this account.")
        return

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("#### Lease")
        st.write("Lot:", tenant.lot.name_or_number if tenant.lot else "-")
        st.write("Park:", tenant.park.name if tenant.park else "-")
        st.write("Lease:", f"{tenant.lease_start_date or '-'} to {tenant.lease_end_date or '-'}")
        st.write("Monthly rent:", format_money(tenant.monthly_rent) if tenant.monthly_rent else "-")
    with col2:
        st.markdown("#### Home")
        if tenant.lot:
            st.write("Listing price:", display_price(tenant.lot))
            st.write("Bedrooms:", tenant.lot.bedrooms if tenant.lot.bedrooms is not None else "-")

    st.markdown("#### Payments")
    if payments:
        st.dataframe(pd.DataFrame(payments), hide_index=True, use_container_width=True)
    else:
        st.caption("No payments recorded.")
