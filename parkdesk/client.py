"""
REST client for the property-management backend.

Every call goes through ``ParkDeskClient.request``: a non-2xx answer
becomes ``APIRequestError`` carrying the conventional ``"<status>: <body>"``
message, and transport failures become ``APITimeoutError`` /
``APIConnectionError``. List reads are cached by query key; a successful
mutation invalidates the keys it affects. There is no retry policy.
"""

from __future__ import annotations

from typing import Any, Iterable

import requests

from parkdesk.bulk_import.results import ImportResults
from parkdesk.cache import QueryCache
from parkdesk.config import settings
from parkdesk.domain import (
    Company,
    EntityType,
    Lot,
    Park,
    Photo,
    Showing,
    ShowingStatus,
    SpecialStatus,
    Tenant,
    User,
    parse_record,
    parse_records,
)
from parkdesk.exceptions import APIConnectionError, APIRequestError, APITimeoutError, ValidationError
from parkdesk.logging_config import PerformanceTracker, get_logger

logger = get_logger(__name__)

SERVICE_NAME = "backend"

LOTS = "/api/lots"
PARKS = "/api/parks"
COMPANIES = "/api/companies"
TENANTS = "/api/tenants"
ADMIN_BOOKINGS = "/api/admin/bookings"

MANAGER_SHOWING_PERIODS = ("today", "this-week", "this-month")

_PHOTO_ROOTS = {
    EntityType.LOT: LOTS,
    EntityType.PARK: PARKS,
    EntityType.COMPANY: COMPANIES,
}


def _unwrap_list(payload: Any, *keys: str) -> list[dict]:
    """Accept a bare array or an envelope such as ``{"lots": [...], "totalCount": n}``."""
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in (*keys, "items", "data", "results"):
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise ValidationError("unexpected list response", detail=f"Got {type(payload).__name__}")


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


class ParkDeskClient:
    """Thin typed wrapper over the backend REST endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
        cache: QueryCache | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token = token if token is not None else settings.api_token
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.session = session or requests.Session()
        self.cache = cache or QueryCache(
            max_size=settings.query_cache_size,
            ttl_seconds=settings.query_cache_ttl_seconds,
        )

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            logger.warning("api_request_timeout", extra={"method": method, "path": path, "timeout": self.timeout})
            raise APITimeoutError(SERVICE_NAME, timeout_seconds=self.timeout) from exc
        except requests.RequestException as exc:
            logger.warning("api_connection_failed", extra={"method": method, "path": path, "error_message": str(exc)})
            raise APIConnectionError(SERVICE_NAME, reason=str(exc)) from exc

        if not response.ok:
            error = APIRequestError(
                response.status_code,
                response.text or response.reason or "",
                method=method,
                path=path,
            )
            logger.warning(
                "api_request_failed",
                extra={"method": method, "path": path, "status_code": response.status_code, "error_message": error.message},
            )
            raise error

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _cached_get(self, key: tuple, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.cache.get_or_fetch(key, lambda: self.request("GET", path, params=params))

    def _mutate(self, method: str, path: str, invalidate: Iterable[tuple], payload: Any = None) -> Any:
        result = self.request(method, path, json=payload)
        for prefix in invalidate:
            self.cache.invalidate(*prefix)
        return result

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    def current_user(self) -> User | None:
        """The signed-in user, or None when the backend answers 401."""
        try:
            payload = self.request("GET", "/api/auth/me")
        except APIRequestError as exc:
            if exc.status_code == 401:
                return None
            raise
        if not payload:
            return None
        return parse_record(User, payload.get("user", payload) if isinstance(payload, dict) else payload)

    # -------------------------------------------------------------------------
    # Lots
    # -------------------------------------------------------------------------

    def list_lot_records(
        self,
        *,
        include_inactive: bool = True,
        q: str | None = None,
        park_id: str | None = None,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        """Raw lot records, fetched once per distinct query and cached."""
        limit = limit or settings.list_fetch_limit
        params: dict[str, Any] = {"includeInactive": _bool_param(include_inactive), "limit": limit}
        key: tuple = (LOTS, f"includeInactive={_bool_param(include_inactive)}", f"limit={limit}")
        if park_id:
            params["parkId"] = park_id
            key += (f"parkId={park_id}",)
        if status:
            params["status"] = status
            key += (f"status={status}",)
        if q and q.strip():
            params["q"] = q.strip()
            key += (f"q={q.strip()}",)

        def fetch() -> list[dict]:
            with PerformanceTracker("lots_fetch", limit=limit, server_search=bool(params.get("q"))):
                return _unwrap_list(self.request("GET", LOTS, params=params), "lots")

        return self.cache.get_or_fetch(key, fetch)

    def list_lots(self, **kwargs: Any) -> list[Lot]:
        return parse_records(Lot, self.list_lot_records(**kwargs))

    def get_lot(self, lot_id: str) -> Lot:
        return parse_record(Lot, self._cached_get((LOTS, lot_id), f"{LOTS}/{lot_id}"))

    def create_lot(self, data: dict[str, Any]) -> Lot:
        return parse_record(Lot, self._mutate("POST", LOTS, [(LOTS,), (PARKS,)], data))

    def update_lot(self, lot_id: str, changes: dict[str, Any]) -> Lot:
        return parse_record(Lot, self._mutate("PATCH", f"{LOTS}/{lot_id}", [(LOTS,)], changes))

    def delete_lot(self, lot_id: str) -> None:
        self._mutate("DELETE", f"{LOTS}/{lot_id}", [(LOTS,), (PARKS,)])

    def toggle_lot_active(self, lot_id: str) -> Lot | None:
        payload = self._mutate("PATCH", f"{LOTS}/{lot_id}/toggle-active", [(LOTS,)])
        return parse_record(Lot, payload) if isinstance(payload, dict) else None

    def set_lot_special_status(self, lot_id: str, special_status_id: str | None) -> Lot | None:
        payload = self._mutate(
            "PUT",
            f"{LOTS}/{lot_id}/special-status",
            [(LOTS,)],
            {"specialStatusId": special_status_id},
        )
        return parse_record(Lot, payload) if isinstance(payload, dict) else None

    def bulk_create_lots(self, rows: list[dict[str, Any]]) -> ImportResults:
        """
        Submit mapped import rows as one batch.

        Created lots are merged into the cached lot lists instead of
        invalidating them.
        """
        if not rows:
            raise ValidationError("No rows to import", field="lots")
        with PerformanceTracker("bulk_import_request", row_count=len(rows)):
            payload = self.request("POST", "/api/admin/lots/bulk", json={"lots": rows})
        results = ImportResults.from_response(payload, total=len(rows))
        created = [r for r in results.successful if isinstance(r, dict)]
        # Only the lot list queries; detail and per-lot showing entries share the prefix.
        merged = sum(
            self.cache.merge_items((LOTS, f"includeInactive={_bool_param(flag)}"), created, key_length=3)
            for flag in (True, False)
        )
        logger.info(
            "bulk_import_completed",
            extra={
                "row_count": len(rows),
                "successful": len(results.successful),
                "failed": len(results.failed),
                "warnings": len(results.warnings),
                "cache_entries_merged": merged,
            },
        )
        return results

    # -------------------------------------------------------------------------
    # Parks and special statuses
    # -------------------------------------------------------------------------

    def list_parks(self) -> list[Park]:
        return parse_records(Park, _unwrap_list(self._cached_get((PARKS,), PARKS), "parks"))

    def list_company_manager_parks(self) -> list[Park]:
        path = "/api/company-manager/parks"
        return parse_records(Park, _unwrap_list(self._cached_get((path,), path), "parks"))

    def get_park(self, park_id: str) -> Park:
        return parse_record(Park, self._cached_get((PARKS, park_id), f"{PARKS}/{park_id}"))

    def create_park(self, data: dict[str, Any]) -> Park:
        return parse_record(Park, self._mutate("POST", PARKS, [(PARKS,)], data))

    def update_park(self, park_id: str, changes: dict[str, Any]) -> Park:
        return parse_record(Park, self._mutate("PATCH", f"{PARKS}/{park_id}", [(PARKS,), (LOTS,)], changes))

    def delete_park(self, park_id: str) -> None:
        self._mutate("DELETE", f"{PARKS}/{park_id}", [(PARKS,), (LOTS,)])

    def list_special_statuses(self, park_id: str) -> list[SpecialStatus]:
        path = f"{PARKS}/{park_id}/special-statuses"
        return parse_records(SpecialStatus, _unwrap_list(self._cached_get((PARKS, park_id, "special-statuses"), path)))

    def create_special_status(self, park_id: str, data: dict[str, Any]) -> SpecialStatus:
        payload = self._mutate(
            "POST",
            f"{PARKS}/{park_id}/special-statuses",
            [(PARKS, park_id, "special-statuses")],
            data,
        )
        return parse_record(SpecialStatus, payload)

    def update_special_status(self, status_id: str, changes: dict[str, Any]) -> SpecialStatus:
        payload = self._mutate("PUT", f"/api/special-statuses/{status_id}", [(PARKS,), (LOTS,)], changes)
        return parse_record(SpecialStatus, payload)

    def delete_special_status(self, status_id: str) -> None:
        self._mutate("DELETE", f"/api/special-statuses/{status_id}", [(PARKS,), (LOTS,)])

    # -------------------------------------------------------------------------
    # Companies
    # -------------------------------------------------------------------------

    def list_companies(self) -> list[Company]:
        return parse_records(Company, _unwrap_list(self._cached_get((COMPANIES,), COMPANIES), "companies"))

    def get_company(self, company_id: str) -> Company:
        return parse_record(Company, self._cached_get((COMPANIES, company_id), f"{COMPANIES}/{company_id}"))

    def create_company(self, data: dict[str, Any]) -> Company:
        return parse_record(Company, self._mutate("POST", COMPANIES, [(COMPANIES,)], data))

    def update_company(self, company_id: str, changes: dict[str, Any]) -> Company:
        return parse_record(Company, self._mutate("PATCH", f"{COMPANIES}/{company_id}", [(COMPANIES,)], changes))

    def delete_company(self, company_id: str) -> None:
        self._mutate("DELETE", f"{COMPANIES}/{company_id}", [(COMPANIES,), (PARKS,)])

    # -------------------------------------------------------------------------
    # Showings
    # -------------------------------------------------------------------------

    def list_bookings(self, status: ShowingStatus | str | None = None) -> list[Showing]:
        params = {}
        key: tuple = (ADMIN_BOOKINGS,)
        if status and str(status) != "all":
            value = status.value if isinstance(status, ShowingStatus) else str(status)
            params["status"] = value
            key += (value,)
        return parse_records(Showing, _unwrap_list(self._cached_get(key, ADMIN_BOOKINGS, params or None), "bookings"))

    def update_booking_status(self, booking_id: str, status: ShowingStatus | str) -> Showing | None:
        value = status.value if isinstance(status, ShowingStatus) else str(status)
        payload = self._mutate("PUT", f"{ADMIN_BOOKINGS}/{booking_id}", [(ADMIN_BOOKINGS,)], {"status": value})
        return parse_record(Showing, payload) if isinstance(payload, dict) else None

    def list_manager_showings(self, period: str = "today") -> list[Showing]:
        if period not in MANAGER_SHOWING_PERIODS:
            raise ValidationError("unknown period", field="period", detail=f"Choose one of {', '.join(MANAGER_SHOWING_PERIODS)}")
        path = f"/api/manager/showings/{period}"
        return parse_records(Showing, _unwrap_list(self._cached_get((path,), path), "showings"))

    def list_lot_showings(self, lot_id: str) -> list[Showing]:
        path = f"{LOTS}/{lot_id}/showings/full"
        return parse_records(Showing, _unwrap_list(self._cached_get((LOTS, lot_id, "showings"), path), "showings"))

    def update_showing(self, showing_id: str, changes: dict[str, Any]) -> Showing | None:
        payload = self._mutate(
            "PATCH",
            f"/api/showings/{showing_id}",
            [*((f"/api/manager/showings/{p}",) for p in MANAGER_SHOWING_PERIODS), (ADMIN_BOOKINGS,), (LOTS,)],
            changes,
        )
        return parse_record(Showing, payload) if isinstance(payload, dict) else None

    def list_company_managers(self) -> list[User]:
        path = "/api/company-manager/managers"
        return parse_records(User, _unwrap_list(self._cached_get((path,), path), "managers"))

    # -------------------------------------------------------------------------
    # Tenants
    # -------------------------------------------------------------------------

    def list_tenants(self, *, status: str | None = None, q: str | None = None) -> list[Tenant]:
        params: dict[str, Any] = {}
        key: tuple = (TENANTS,)
        if status and status != "all":
            params["status"] = status
            key += (f"status={status}",)
        if q and q.strip():
            params["q"] = q.strip()
            key += (f"q={q.strip()}",)
        return parse_records(Tenant, _unwrap_list(self._cached_get(key, TENANTS, params or None), "tenants"))

    def get_tenant(self, tenant_id: str) -> Tenant:
        return parse_record(Tenant, self._cached_get((TENANTS, tenant_id), f"{TENANTS}/{tenant_id}"))

    def create_tenant(self, data: dict[str, Any]) -> Tenant:
        return parse_record(Tenant, self._mutate("POST", TENANTS, [(TENANTS,), (LOTS,)], data))

    def update_tenant(self, tenant_id: str, changes: dict[str, Any]) -> Tenant:
        return parse_record(Tenant, self._mutate("PATCH", f"{TENANTS}/{tenant_id}", [(TENANTS,)], changes))

    def delete_tenant(self, tenant_id: str) -> None:
        self._mutate("DELETE", f"{TENANTS}/{tenant_id}", [(TENANTS,), (LOTS,)])

    def my_tenant_info(self) -> Tenant | None:
        payload = self._cached_get(("/api/tenant/me",), "/api/tenant/me")
        return parse_record(Tenant, payload) if isinstance(payload, dict) else None

    def my_payments(self) -> list[dict]:
        return _unwrap_list(self._cached_get(("/api/tenant/payments",), "/api/tenant/payments"), "payments")

    # -------------------------------------------------------------------------
    # Photos
    # -------------------------------------------------------------------------

    def list_photos(self, entity_type: EntityType | str, entity_id: str) -> list[Photo]:
        root = _PHOTO_ROOTS[EntityType(entity_type)]
        path = f"{root}/{entity_id}/photos"
        return parse_records(Photo, _unwrap_list(self._cached_get((root, entity_id, "photos"), path), "photos"))

    def delete_photo(self, photo_id: str, *, entity_type: EntityType | str, entity_id: str) -> None:
        root = _PHOTO_ROOTS[EntityType(entity_type)]
        self._mutate("DELETE", f"/api/photos/{photo_id}", [(root, entity_id, "photos")])
