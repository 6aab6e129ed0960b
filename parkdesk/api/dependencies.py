"""
Dependency helpers for API routes.

These are kept as simple functions (not FastAPI Depends) because the app
already uses request.app.state for its backend client.
"""

from __future__ import annotations

from fastapi import Request

from parkdesk.api.state import AppState
from parkdesk.client import ParkDeskClient
from parkdesk.views import LotLookups


def get_state(request: Request) -> AppState:
    state = getattr(request.app.state, "state", None)
    if state is None:
        state = AppState(client=ParkDeskClient())
        request.app.state.state = state
    return state


def get_client(request: Request) -> ParkDeskClient:
    return get_state(request).client


def get_lot_lookups(client: ParkDeskClient) -> LotLookups:
    parks = client.list_parks()
    companies = client.list_companies()
    return LotLookups(
        parks_by_id={p.id: p for p in parks if p.id},
        companies_by_id={c.id: c for c in companies if c.id},
    )
