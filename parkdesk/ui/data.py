"""
Data loaders for the Streamlit pages.

Lists come through the shared client, whose query cache dedupes repeat
reads across reruns; mutations there invalidate the matching keys.
"""

from __future__ import annotations

from parkdesk.client import ParkDeskClient
from parkdesk.config import settings
from parkdesk.domain import Company, Lot, Park, Role, Showing, User
from parkdesk.views import LotLookups


def load_lots(client: ParkDeskClient, *, search: str = "") -> list[Lot]:
    """
    All lots for the client-side list, or the server-filtered subset when
    server-side search is on and there is a query.
    """
    if settings.server_side_search and search.strip():
        return client.list_lots(q=search)
    return client.list_lots()


def load_parks(client: ParkDeskClient, user: User) -> list[Park]:
    if user.role is Role.COMPANY_MANAGER:
        return client.list_company_manager_parks()
    return client.list_parks()


def load_companies(client: ParkDeskClient) -> list[Company]:
    return client.list_companies()


def by_id(records: list) -> dict:
    return {r.id: r for r in records if r.id}


def load_lot_lookups(client: ParkDeskClient, user: User) -> LotLookups:
    return LotLookups(
        parks_by_id=by_id(load_parks(client, user)),
        companies_by_id=by_id(load_companies(client)) if user.role is Role.ADMIN else {},
    )


def load_showings(client: ParkDeskClient, user: User, *, period: str = "this-month") -> list[Showing]:
    if user.role is Role.ADMIN:
        return client.list_bookings()
    return client.list_manager_showings(period)
