"""
Session state helpers for the Streamlit UI.
"""

from __future__ import annotations

import uuid

import streamlit as st

from parkdesk.bulk_import import ImportWizard
from parkdesk.domain import User
from parkdesk.listing import ListState, ListView

_LIST_STATES = "_list_states"
_WIZARD = "_import_wizard"
_USER = "_current_user"


def init_session_state() -> None:
    if "_session_id" not in st.session_state:
        st.session_state["_session_id"] = str(uuid.uuid4())
    if _LIST_STATES not in st.session_state:
        st.session_state[_LIST_STATES] = {}


def get_session_id() -> str:
    return st.session_state.get("_session_id", "default")


def get_list_state(view: ListView) -> ListState:
    """The user's filters/sort/page for ``view``, kept across reruns."""
    states = st.session_state.setdefault(_LIST_STATES, {})
    if view.name not in states:
        states[view.name] = view.new_state()
    return states[view.name]


def get_wizard() -> ImportWizard:
    if _WIZARD not in st.session_state:
        st.session_state[_WIZARD] = ImportWizard()
    return st.session_state[_WIZARD]


def get_cached_user() -> User | None:
    return st.session_state.get(_USER)


def set_cached_user(user: User | None) -> None:
    st.session_state[_USER] = user


def clear_user() -> None:
    st.session_state.pop(_USER, None)
