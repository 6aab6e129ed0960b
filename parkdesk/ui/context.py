"""
Shared resources for the Streamlit UI: the backend client and event logging.
"""

from __future__ import annotations

from typing import Any

import streamlit as st

from parkdesk.client import ParkDeskClient
from parkdesk.logging_config import LogContext, get_logger

logger = get_logger(__name__)


@st.cache_resource(show_spinner=False)
def get_client() -> ParkDeskClient:
    """One client (and so one query cache) per server process."""
    return ParkDeskClient()


def track_event(event: str, properties: dict[str, Any] | None = None) -> None:
    logger.info("ui_event", extra={"event": event, "page": LogContext.get("page"), **(properties or {})})
