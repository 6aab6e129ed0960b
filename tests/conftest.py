"""
Pytest configuration and shared fixtures for ParkDesk tests.
"""

import json
from pathlib import Path
from typing import Any, Dict

import pytest


# Add the repo root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def sample_parks() -> list[Dict[str, Any]]:
    """Parks as the backend returns them."""
    return [
        {"id": 1, "companyId": 10, "name": "Oak Grove", "city": "Austin", "state": "TX", "isActive": True},
        {"id": 2, "companyId": 20, "name": "Élan Meadows", "city": "Tulsa", "state": "OK", "isActive": True},
        {"id": 3, "companyId": None, "name": "Cedar Point", "city": "Waco", "state": "TX", "isActive": False},
    ]


@pytest.fixture
def sample_companies() -> list[Dict[str, Any]]:
    return [
        {"id": 10, "name": "Sunrise Communities", "city": "Austin", "email": "ops@sunrise.example"},
        {"id": 20, "name": "Prairie Homes", "city": "Tulsa", "email": None},
    ]


@pytest.fixture
def sample_lots() -> list[Dict[str, Any]]:
    """Lots in the backend's camelCase shape, with every status shape it sends."""
    return [
        {
            "id": "101",
            "parkId": 1,
            "nameOrNumber": "A1",
            "status": ["FOR_RENT"],
            "priceForRent": "1200",
            "bedrooms": 3,
            "bathrooms": 2,
            "sqFt": 1100,
            "houseManufacturer": "Clayton",
            "description": "Corner lot with shade trees",
            "isActive": True,
        },
        {
            "id": "102",
            "parkId": 1,
            "nameOrNumber": "A2",
            "status": "FOR_SALE",
            "priceForSale": "45000",
            "bedrooms": 2,
            "bathrooms": 1,
            "sqFt": 800,
            "houseManufacturer": "Champion",
            "isActive": True,
        },
        {
            "id": "103",
            "parkId": 2,
            "nameOrNumber": "B7",
            "status": "FOR_RENT,RENT_TO_OWN",
            "priceForRent": "950",
            "priceRentToOwn": "1100",
            "bedrooms": 2,
            "bathrooms": 2,
            "specialStatusId": 7,
            "specialStatus": {"id": 7, "parkId": 2, "name": "Move-in special"},
            "isActive": True,
        },
        {
            "id": "104",
            "parkId": None,
            "nameOrNumber": "C3",
            "status": None,
            "price": "800",
            "bedrooms": None,
            "isActive": False,
        },
        {
            "id": "105",
            "parkId": 3,
            "nameOrNumber": "D9",
            "status": ["CONTRACT_FOR_DEED"],
            "priceContractForDeed": "$30,000",
            "bedrooms": 4,
            "bathrooms": 2.5,
            "sqFt": 1500,
            "houseManufacturer": "Clayton",
            "isActive": True,
        },
    ]


@pytest.fixture
def sample_showings() -> list[Dict[str, Any]]:
    return [
        {
            "id": 1,
            "lotId": "101",
            "clientName": "Dana Reyes",
            "clientEmail": "dana@example.com",
            "startDt": "2026-10-01T15:00:00",
            "status": "SCHEDULED",
        },
        {
            "id": 2,
            "lotId": "103",
            "clientName": "Lee Park",
            "startDt": "2026-10-03T10:30:00",
            "status": "CANCELLED",
        },
        {
            "id": 3,
            "lotId": "101",
            "clientName": "Ari Cole",
            "startDt": "2026-10-02T09:00:00",
            "status": "COMPLETED",
        },
    ]


@pytest.fixture
def lots_csv() -> bytes:
    """A small lot upload with header names a person would type."""
    return (
        "Lot,Park Name,Status,Rent,Beds,Notes\n"
        "A1,Oak Grove,FOR_RENT,1200,3,Corner lot\n"
        "A2,Oak Grove,FOR_SALE,,2,\n"
        "\n"
        "B7,Élan Meadows,\"FOR_RENT,RENT_TO_OWN\",950,2,Near pool\n"
    ).encode("utf-8")


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None, reason: str = ""):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self.text = text
        self.content = text.encode("utf-8")
        self.reason = reason

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        return json.loads(self.text)


class FakeSession:
    """
    Routes ``(method, path)`` to canned responses and records every call.

    A route value may be a ``FakeResponse``, an exception instance to raise,
    or a callable taking the call dict and returning either.
    """

    def __init__(self, base_url: str = "http://backend.test"):
        self.base_url = base_url
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def add(self, method: str, path: str, response: Any) -> None:
        self.routes[(method.upper(), path)] = response

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        path = url[len(self.base_url):] if url.startswith(self.base_url) else url
        call = {"method": method, "path": path, "params": params, "json": json, "headers": headers, "timeout": timeout}
        self.calls.append(call)
        route = self.routes.get((method.upper(), path))
        if route is None:
            return FakeResponse(404, {"message": f"No route for {method} {path}"})
        if callable(route) and not isinstance(route, FakeResponse):
            route = route(call)
        if isinstance(route, Exception):
            raise route
        return route

    def count(self, method: str, path: str) -> int:
        return sum(1 for c in self.calls if c["method"] == method and c["path"] == path)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def backend(fake_session, sample_lots, sample_parks, sample_companies) -> FakeSession:
    """A fake backend serving the sample lots, parks and companies."""
    fake_session.add("GET", "/api/lots", FakeResponse(200, sample_lots))
    fake_session.add("GET", "/api/parks", FakeResponse(200, sample_parks))
    fake_session.add("GET", "/api/companies", FakeResponse(200, sample_companies))
    return fake_session


@pytest.fixture
def api_client(fake_session):
    """A ``ParkDeskClient`` wired to the fake session."""
    from parkdesk.cache import QueryCache
    from parkdesk.client import ParkDeskClient

    return ParkDeskClient(
        fake_session.base_url,
        token="test-token",
        timeout=5,
        session=fake_session,
        cache=QueryCache(max_size=64, ttl_seconds=60),
    )
