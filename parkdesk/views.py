"""
List view definitions for each entity.

Each factory closes over the lookup maps a view needs to resolve related
names (park, company, special status) and returns a ``ListView``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from parkdesk.domain import Company, Lot, LotStatus, Park, Showing, ShowingStatus, SpecialStatus, Tenant, TenantStatus
from parkdesk.listing import CategoricalField, ListView, RangeField, SortField, SortSpec
from parkdesk.pricing import STATUS_PRICE_PRIORITY, effective_price

VISIBLE = "visible"
HIDDEN = "hidden"


def _visibility(record: Any) -> str:
    return VISIBLE if record.is_active else HIDDEN


def _iso(value: datetime | None) -> str:
    return value.isoformat() if value else ""


def _enum_label(enum_cls):
    def label(key: str) -> str:
        try:
            return enum_cls(key).value.replace("_", " ").title()
        except ValueError:
            return key

    return label


def _name_label(by_id: Mapping[str, Any]):
    def label(key: str) -> str:
        record = by_id.get(key)
        return record.name if record is not None and record.name else key

    return label


class LotLookups:
    """Resolves a lot's related names from id maps, preferring nested records."""

    def __init__(
        self,
        parks_by_id: Mapping[str, Park] | None = None,
        companies_by_id: Mapping[str, Company] | None = None,
        special_statuses_by_id: Mapping[str, SpecialStatus] | None = None,
    ) -> None:
        self.parks_by_id = dict(parks_by_id or {})
        self.companies_by_id = dict(companies_by_id or {})
        self.special_statuses_by_id = dict(special_statuses_by_id or {})

    def add_special_statuses(self, lots: Iterable[Lot]) -> None:
        """Fill the special-status map from statuses nested in lot records."""
        for lot in lots:
            status = lot.special_status
            key = lot.special_status_id or (status.id if status is not None else None)
            if status is not None and status.name and key:
                self.special_statuses_by_id.setdefault(key, status)

    def park(self, lot: Lot) -> Park | None:
        if lot.park is not None and lot.park.name:
            return lot.park
        return self.parks_by_id.get(lot.park_id) if lot.park_id else None

    def park_name(self, lot: Lot) -> str | None:
        park = self.park(lot)
        return park.name if park else None

    def company_id(self, lot: Lot) -> str | None:
        park = self.park(lot)
        if park is not None and park.company_id:
            return park.company_id
        mapped = self.parks_by_id.get(lot.park_id) if lot.park_id else None
        return mapped.company_id if mapped else None

    def company_name(self, lot: Lot) -> str | None:
        company_id = self.company_id(lot)
        company = self.companies_by_id.get(company_id) if company_id else None
        return company.name if company else None

    def special_status_name(self, lot: Lot) -> str | None:
        if lot.special_status is not None and lot.special_status.name:
            return lot.special_status.name
        status = self.special_statuses_by_id.get(lot.special_status_id) if lot.special_status_id else None
        return status.name if status else None


def _status_sort_text(lot: Lot) -> str:
    return ",".join(status.value for status, _ in STATUS_PRICE_PRIORITY if status in lot.status)


def lot_view(lookups: LotLookups | None = None) -> ListView[Lot]:
    lookups = lookups or LotLookups()
    return ListView(
        name="lots",
        categorical=(
            CategoricalField("status", "Status", lambda lot: lot.status, option_label=_enum_label(LotStatus)),
            CategoricalField("park", "Park", lambda lot: lot.park_id, option_label=_name_label(lookups.parks_by_id)),
            CategoricalField(
                "company",
                "Company",
                lookups.company_id,
                option_label=_name_label(lookups.companies_by_id),
            ),
            CategoricalField("manufacturer", "Manufacturer", lambda lot: lot.house_manufacturer),
            CategoricalField("model", "Model", lambda lot: lot.house_model),
            CategoricalField(
                "special_status",
                "Special status",
                lambda lot: lot.special_status_id,
                option_label=_name_label(lookups.special_statuses_by_id),
            ),
            CategoricalField("visibility", "Visibility", _visibility, allow_none=False),
        ),
        ranges=(
            RangeField("bedrooms", "Bedrooms", lambda lot: lot.bedrooms),
            RangeField("bathrooms", "Bathrooms", lambda lot: lot.bathrooms),
            RangeField("sq_ft", "Square feet", lambda lot: lot.sq_ft),
            RangeField("price", "Price", effective_price),
        ),
        text_accessors=(
            lambda lot: lot.name_or_number,
            lambda lot: lot.description,
            lookups.park_name,
            lookups.special_status_name,
        ),
        sort_fields=(
            SortField("nameOrNumber", "Name/Number", lambda lot: lot.name_or_number),
            SortField("status", "Status", _status_sort_text),
            SortField("price", "Price", effective_price, numeric=True),
            SortField("bedrooms", "Bedrooms", lambda lot: lot.bedrooms, numeric=True),
            SortField("bathrooms", "Bathrooms", lambda lot: lot.bathrooms, numeric=True),
            SortField("sqFt", "Sq Ft", lambda lot: lot.sq_ft, numeric=True),
            SortField("parkName", "Park", lookups.park_name),
            SortField("companyName", "Company", lookups.company_name),
            SortField("visibility", "Visibility", lambda lot: 1 if lot.is_active else 0, numeric=True),
            SortField("specialStatus", "Special status", lookups.special_status_name),
        ),
        default_sort=SortSpec("nameOrNumber"),
    )


def park_view(companies_by_id: Mapping[str, Company] | None = None) -> ListView[Park]:
    companies_by_id = dict(companies_by_id or {})

    def company_name(park: Park) -> str | None:
        if park.company is not None and park.company.name:
            return park.company.name
        company = companies_by_id.get(park.company_id) if park.company_id else None
        return company.name if company else None

    return ListView(
        name="parks",
        categorical=(
            CategoricalField(
                "company",
                "Company",
                lambda park: park.company_id,
                option_label=_name_label(companies_by_id),
            ),
            CategoricalField("state", "State", lambda park: park.state),
            CategoricalField("visibility", "Visibility", _visibility, allow_none=False),
        ),
        text_accessors=(
            lambda park: park.name,
            lambda park: park.city,
            lambda park: park.state,
        ),
        sort_fields=(
            SortField("name", "Name", lambda park: park.name),
            SortField("city", "City", lambda park: park.city),
            SortField("state", "State", lambda park: park.state),
            SortField("companyName", "Company", company_name),
        ),
        default_sort=SortSpec("name"),
    )


def company_view() -> ListView[Company]:
    return ListView(
        name="companies",
        categorical=(CategoricalField("visibility", "Visibility", _visibility, allow_none=False),),
        text_accessors=(
            lambda company: company.name,
            lambda company: company.city,
            lambda company: company.email,
        ),
        sort_fields=(
            SortField("name", "Name", lambda company: company.name),
            SortField("createdAt", "Created", lambda company: _iso(company.created_at)),
        ),
        default_sort=SortSpec("name"),
    )


def showing_view(lots_by_id: Mapping[str, Lot] | None = None) -> ListView[Showing]:
    lots_by_id = dict(lots_by_id or {})

    def lot_label(key: str) -> str:
        lot = lots_by_id.get(key)
        return lot.name_or_number if lot is not None and lot.name_or_number else key

    return ListView(
        name="showings",
        categorical=(
            CategoricalField(
                "status",
                "Status",
                lambda showing: showing.status,
                option_label=_enum_label(ShowingStatus),
            ),
            CategoricalField("lot", "Lot", lambda showing: showing.lot_id, option_label=lot_label),
        ),
        text_accessors=(
            lambda showing: showing.client_name,
            lambda showing: showing.client_email,
            lambda showing: showing.client_phone,
        ),
        sort_fields=(
            SortField("startDt", "Start", lambda showing: _iso(showing.start_dt)),
            SortField("clientName", "Client", lambda showing: showing.client_name),
            SortField("status", "Status", lambda showing: showing.status.value if showing.status else ""),
        ),
        default_sort=SortSpec("startDt", descending=True),
    )


def tenant_view(parks_by_id: Mapping[str, Park] | None = None) -> ListView[Tenant]:
    parks_by_id = dict(parks_by_id or {})

    def park_id(tenant: Tenant) -> str | None:
        if tenant.park is not None and tenant.park.id:
            return tenant.park.id
        return tenant.lot.park_id if tenant.lot is not None else None

    return ListView(
        name="tenants",
        categorical=(
            CategoricalField(
                "status",
                "Status",
                lambda tenant: tenant.status,
                option_label=_enum_label(TenantStatus),
            ),
            CategoricalField("park", "Park", park_id, option_label=_name_label(parks_by_id)),
        ),
        text_accessors=(
            lambda tenant: tenant.full_name,
            lambda tenant: tenant.email,
            lambda tenant: tenant.phone,
        ),
        sort_fields=(
            SortField("lastName", "Last name", lambda tenant: tenant.last_name),
            SortField("status", "Status", lambda tenant: tenant.status.value if tenant.status else ""),
            SortField("leaseEndDate", "Lease end", lambda tenant: tenant.lease_end_date),
        ),
        default_sort=SortSpec("lastName"),
    )
