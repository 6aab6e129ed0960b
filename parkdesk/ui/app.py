"""
Streamlit console: page config, sign-in check, navigation and dispatch.

The current page lives in ``st.query_params["page"]`` so it survives
reloads and can be linked to. Access is checked before a page renders.
"""

from __future__ import annotations

from typing import Callable

import streamlit as st

from parkdesk.client import ParkDeskClient
from parkdesk.config import ROLE_LABELS
from parkdesk.domain import User
from parkdesk.exceptions import AuthenticationRequiredError, NotFoundError, ParkDeskError, PermissionDeniedError
from parkdesk.guards import PageSpec, allowed_pages, resolve_page
from parkdesk.logging_config import LogContextManager, get_logger
from parkdesk.ui.components import show_error
from parkdesk.ui.context import get_client, track_event
from parkdesk.ui.import_page import render_import_page
from parkdesk.ui.pages import (
    render_companies_page,
    render_lots_page,
    render_my_info_page,
    render_parks_page,
    render_showings_page,
    render_tenants_page,
)
from parkdesk.ui.session import clear_user, get_cached_user, get_session_id, init_session_state, set_cached_user

logger = get_logger(__name__)

PAGE_RENDERERS: dict[str, Callable[[ParkDeskClient, User], None]] = {
    "lots": render_lots_page,
    "import": render_import_page,
    "parks": render_parks_page,
    "companies": render_companies_page,
    "showings": render_showings_page,
    "tenants": render_tenants_page,
    "my_info": render_my_info_page,
}


def _current_user(client: ParkDeskClient) -> User | None:
    user = get_cached_user()
    if user is None:
        user = client.current_user()
        set_cached_user(user)
    return user


def _render_navigation(user: User, current: PageSpec) -> None:
    st.sidebar.markdown(f"**{user.display_name}**")
    st.sidebar.caption(ROLE_LABELS.get(user.role.value, user.role.value))
    for page in allowed_pages(user):
        kind = "primary" if page.key == current.key else "secondary"
        if st.sidebar.button(page.title, key=f"nav_{page.key}", type=kind, use_container_width=True):
            st.query_params["page"] = page.key
            track_event("navigate", {"to_page": page.key})
            st.rerun()
    st.sidebar.divider()
    if st.sidebar.button("Refresh session", key="nav_refresh_session"):
        clear_user()
        st.rerun()


def main() -> None:
    st.set_page_config(page_title="ParkDesk", page_icon="🏡", layout="wide")
    init_session_state()
    client = get_client()

    try:
        user = _current_user(client)
    except ParkDeskError as exc:
        show_error(exc, toast=False)
        st.stop()

    requested = st.query_params.get("page")
    try:
        page = resolve_page(requested, user)
    except AuthenticationRequiredError:
        st.title("ParkDesk")
        st.info("Sign in required. Sign in to the ParkDesk portal, then reload this page.")
        st.stop()
    except NotFoundError:
        st.title("Page not found")
        st.caption(f"There is no page named {requested!r}.")
        st.stop()
    except PermissionDeniedError:
        st.title("Page not found")
        st.caption("This page is not available for your account.")
        st.stop()

    st.query_params["page"] = page.key
    _render_navigation(user, page)
    with LogContextManager(user_id=user.id, page=page.key, request_id=get_session_id()):
        PAGE_RENDERERS[page.key](client, user)
