"""
Lot list routes: filtering, sorting and pagination done server-side.
"""

from __future__ import annotations

import time

from fastapi import APIRouter, Query, Request, Response

from parkdesk.api.dependencies import get_client, get_lot_lookups
from parkdesk.api.models import FilterOptionsResponse, LotListResponse
from parkdesk.config import settings
from parkdesk.domain import Lot
from parkdesk.listing import ListState, ListView, SortSpec, page_window
from parkdesk.logging_config import get_logger
from parkdesk.pricing import display_price
from parkdesk.views import lot_view

logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["lots"])


def _state_from_query(view: ListView[Lot], request: Request, *, q: str, sort: str | None, page: int, page_size: int) -> ListState:
    params = request.query_params
    state = view.new_state()
    for field in view.categorical:
        values = params.getlist(field.name)
        if values:
            state.set_selection(field.name, values)
    for field in view.ranges:
        state.set_range(field.name, params.get(f"{field.name}_min"), params.get(f"{field.name}_max"))

    spec = SortSpec.parse(sort)
    if spec is not None:
        view.sort_field(spec.key)
        state.sort = spec

    state.set_page_size(page_size)
    state.set_search(q.strip())
    state.goto_page(page)
    return state


def _lot_for_api(lot: Lot) -> dict:
    out = lot.to_api()
    out["displayPrice"] = display_price(lot)
    return out


@router.get(
    "/lots",
    response_model=LotListResponse,
    responses={200: {"description": "One page of lots matching the filters"}, 400: {"description": "Bad filter or sort"}},
)
def lots(
    request: Request,
    response: Response,
    q: str = Query(default="", max_length=200, description="Search name, description, park and special status"),
    sort: str | None = Query(default=None, max_length=40, description="Sort key, '-' prefix for descending", examples=["-price"]),
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=settings.default_page_size, ge=1, description="Results per page"),
) -> dict:
    start_time = time.perf_counter()
    client = get_client(request)
    view = lot_view(get_lot_lookups(client))
    state = _state_from_query(view, request, q=q, sort=sort, page=page, page_size=page_size)

    if settings.server_side_search and state.search:
        records = client.list_lots(q=state.search)
        result = view.run(records, state, include_text=False)
    else:
        records = client.list_lots()
        result = view.run(records, state)

    response.headers["Cache-Control"] = "no-store"
    request.state.result_count = result.total
    logger.info(
        "lots_listed",
        extra={
            "query": state.search or "(empty)",
            "result_count": result.total,
            "page": result.page,
            "page_size": result.page_size,
            "active_filters": state.active_filter_count,
            "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
        },
    )
    return {
        "query": state.search,
        "total": result.total,
        "page": result.page,
        "page_size": result.page_size,
        "total_pages": result.total_pages,
        "page_window": page_window(result.page, result.total_pages),
        "items": [_lot_for_api(lot) for lot in result.items],
    }


@router.get(
    "/lots/filters",
    response_model=FilterOptionsResponse,
    responses={200: {"description": "Available filter options"}},
)
def lot_filters(request: Request, response: Response) -> dict:
    client = get_client(request)
    lookups = get_lot_lookups(client)
    view = lot_view(lookups)
    records = client.list_lots()
    lookups.add_special_statuses(records)
    response.headers["Cache-Control"] = "no-store"
    return {
        "filters": {
            field.name: [{"value": key, "label": field.label_for(key)} for key in view.options(records, field.name)]
            for field in view.categorical
        }
    }
