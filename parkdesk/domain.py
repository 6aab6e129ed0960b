"""
Domain records returned by the property-management backend.

Records are parsed once, at the data-access boundary, into pydantic models.
Attribute names are snake_case; the backend's camelCase keys are accepted
through aliases and extra keys are kept. A lot's status arrives in several
shapes (missing, one value, a delimited string or a list) and is normalized
here, and only here, into a ``frozenset[LotStatus]``.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Iterable, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic import ValidationError as SchemaError
from pydantic.alias_generators import to_camel

from parkdesk.exceptions import ExternalAPIError


class LotStatus(str, Enum):
    FOR_RENT = "FOR_RENT"
    FOR_SALE = "FOR_SALE"
    RENT_TO_OWN = "RENT_TO_OWN"
    CONTRACT_FOR_DEED = "CONTRACT_FOR_DEED"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class ShowingStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"
    COMPLETED = "COMPLETED"

    @classmethod
    def _missing_(cls, value: object):
        text = str(value or "").strip().upper()
        if text == "CANCELLED":
            return cls.CANCELED
        for member in cls:
            if member.value == text:
                return member
        return None


class TenantStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    PENDING = "PENDING"
    TERMINATED = "TERMINATED"


class EntityType(str, Enum):
    COMPANY = "COMPANY"
    PARK = "PARK"
    LOT = "LOT"


class Role(str, Enum):
    ADMIN = "ADMIN"
    COMPANY_MANAGER = "COMPANY_MANAGER"
    MANAGER = "MANAGER"
    TENANT = "TENANT"
    OWNER_TENANT = "OWNER_TENANT"

    @classmethod
    def _missing_(cls, value: object):
        text = str(value or "").strip().upper()
        aliases = {"MHP_LORD": cls.ADMIN, "OWNER": cls.OWNER_TENANT}
        if text in aliases:
            return aliases[text]
        for member in cls:
            if member.value == text:
                return member
        return None


# =============================================================================
# Normalization helpers
# =============================================================================

_STATUS_SPLIT = re.compile(r"[,;|]")
_NUMBER_NOISE = re.compile(r"[^0-9.\-]")


def _status_token(raw: str) -> str:
    return re.sub(r"[\s\-]+", "_", raw.strip()).upper()


def normalize_statuses(value: Any, *, strict: bool = True) -> frozenset[LotStatus]:
    """
    Normalize any status shape into a set of ``LotStatus`` values.

    Accepts None, an empty string, a single value, a comma/semicolon/pipe
    delimited string, a ``LotStatus`` or any iterable of those. Unknown
    tokens raise ``ValueError`` when ``strict`` and are dropped otherwise.
    """
    if value is None:
        return frozenset()
    if isinstance(value, LotStatus):
        return frozenset({value})
    if isinstance(value, str):
        tokens: Iterable[Any] = _STATUS_SPLIT.split(value)
    elif isinstance(value, Iterable):
        tokens = value
    else:
        tokens = [value]

    statuses: set[LotStatus] = set()
    for token in tokens:
        if isinstance(token, LotStatus):
            statuses.add(token)
            continue
        text = _status_token(str(token or ""))
        if not text:
            continue
        try:
            statuses.add(LotStatus(text))
        except ValueError:
            if strict:
                raise ValueError(f"Unknown lot status: {token!r}") from None
    return frozenset(statuses)


def parse_number(value: Any) -> float | None:
    """Extract a float from a number or a money-like string ("$1,200.50")."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = _NUMBER_NOISE.sub("", str(value))
    if cleaned in ("", "-", ".", "-."):
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def _coerce_id(value: Any) -> Any:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value)) if float(value).is_integer() else str(value)
    return value


def _price_text(value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).strip()
    return text or None


RecordId = Annotated[Optional[str], BeforeValidator(_coerce_id)]
PriceText = Annotated[Optional[str], BeforeValidator(_price_text)]


class Record(BaseModel):
    """Base for backend records: camelCase aliases, extra keys kept."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: RecordId = None

    def to_api(self) -> dict[str, Any]:
        """Serialize back to the backend's camelCase shape."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# =============================================================================
# Entities
# =============================================================================


class Company(Record):
    name: str = ""
    description: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = Field(default=None, alias="zip")
    is_active: bool = True
    created_at: datetime | None = None


class Park(Record):
    company_id: RecordId = None
    name: str = ""
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = Field(default=None, alias="zip")
    description: str | None = None
    amenities: list[str] = Field(default_factory=list)
    is_active: bool = True
    company: Company | None = None

    @field_validator("amenities", mode="before")
    @classmethod
    def _amenities(cls, value: Any) -> Any:
        return [] if value is None else value


class SpecialStatus(Record):
    park_id: RecordId = None
    name: str = ""
    description: str | None = None
    color: str | None = None
    is_active: bool = True


class Lot(Record):
    park_id: RecordId = None
    name_or_number: str = ""
    status: frozenset[LotStatus] = Field(default_factory=frozenset)

    price: PriceText = None
    price_for_rent: PriceText = None
    price_for_sale: PriceText = None
    price_rent_to_own: PriceText = None
    price_contract_for_deed: PriceText = None
    deposit_for_rent: PriceText = None
    deposit_for_sale: PriceText = None
    deposit_rent_to_own: PriceText = None
    deposit_contract_for_deed: PriceText = None
    down_payment_contract_for_deed: PriceText = None
    lot_rent: PriceText = None
    promotional_price: PriceText = None
    promotional_price_active: bool = False
    estimated_payment: PriceText = None

    available_date: str | None = None
    showing_link: str | None = None
    description: str | None = None
    bedrooms: int | None = None
    bathrooms: float | None = None
    sq_ft: int | None = None
    house_manufacturer: str | None = None
    house_model: str | None = None
    mobile_home_year: int | None = None
    mobile_home_size: str | None = None
    special_status_id: RecordId = None
    tenant_id: RecordId = None
    is_active: bool = True

    park: Park | None = None
    special_status: SpecialStatus | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> frozenset[LotStatus]:
        return normalize_statuses(value)

    @field_validator("bedrooms", "sq_ft", "mobile_home_year", mode="before")
    @classmethod
    def _whole_number(cls, value: Any) -> Any:
        if value in (None, ""):
            return None
        number = parse_number(value)
        return None if number is None else int(number)

    @field_validator("bathrooms", mode="before")
    @classmethod
    def _bathrooms(cls, value: Any) -> Any:
        if value in (None, ""):
            return None
        return parse_number(value)

    def to_api(self) -> dict[str, Any]:
        data = super().to_api()
        data["status"] = sorted(s.value for s in self.status)
        return data


class Tenant(Record):
    first_name: str = ""
    last_name: str = ""
    email: str | None = None
    phone: str | None = None
    status: TenantStatus | None = None
    lot_id: RecordId = None
    lease_start_date: str | None = None
    lease_end_date: str | None = None
    monthly_rent: PriceText = None
    security_deposit: PriceText = None
    created_at: datetime | None = None
    lot: Lot | None = None
    park: Park | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Showing(Record):
    lot_id: RecordId = None
    manager_id: RecordId = None
    start_dt: datetime | None = None
    end_dt: datetime | None = None
    client_name: str = ""
    client_email: str | None = None
    client_phone: str | None = None
    status: ShowingStatus | None = None
    created_at: datetime | None = None
    lot: Lot | None = None


class Photo(Record):
    entity_type: EntityType | None = None
    entity_id: RecordId = None
    url_or_path: str = ""
    caption: str | None = None
    sort_order: int = 0


class User(Record):
    email: str = ""
    full_name: str | None = None
    role: Role
    company_id: RecordId = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or (self.id or "")


def parse_record(model: type[BaseModel], record: Any) -> Any:
    """
    Validate one raw backend record into ``model``.

    A record in the wrong shape raises ``ExternalAPIError`` naming the entity.
    """
    try:
        return model.model_validate(record)
    except SchemaError as exc:
        raise ExternalAPIError(
            f"Backend returned an invalid {model.__name__.lower()} record: {exc.errors()[0]['msg']}",
            service="backend",
        ) from exc


def parse_records(model: type[BaseModel], records: Iterable[dict]) -> list:
    """Validate a list of raw backend records into ``model`` instances."""
    return [parse_record(model, r) for r in records]
