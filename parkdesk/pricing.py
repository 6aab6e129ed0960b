"""
Derived price display for lots.

A lot carries one price per status plus a legacy single price. The display
price is the first active status (in ``STATUS_PRICE_PRIORITY`` order) that
has a price, falling back to the legacy price, then to a context label.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping

from parkdesk.domain import Lot, LotStatus, normalize_statuses, parse_number


class PriceContext(str, Enum):
    LISTING = "listing"
    PREVIEW = "preview"


EMPTY_PRICE_LABELS = {
    PriceContext.LISTING: "Price TBD",
    PriceContext.PREVIEW: "N/A",
}

STATUS_PRICE_PRIORITY: tuple[tuple[LotStatus, str], ...] = (
    (LotStatus.FOR_RENT, "price_for_rent"),
    (LotStatus.FOR_SALE, "price_for_sale"),
    (LotStatus.RENT_TO_OWN, "price_rent_to_own"),
    (LotStatus.CONTRACT_FOR_DEED, "price_contract_for_deed"),
)

RECURRING_STATUSES = frozenset({LotStatus.FOR_RENT, LotStatus.RENT_TO_OWN, LotStatus.CONTRACT_FOR_DEED})

MONTHLY_SUFFIX = "/mo"

# Mapped import rows use the backend's camelCase keys.
_ROW_KEYS = {
    "price": "price",
    "price_for_rent": "priceForRent",
    "price_for_sale": "priceForSale",
    "price_rent_to_own": "priceRentToOwn",
    "price_contract_for_deed": "priceContractForDeed",
}


def _has_value(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def format_money(value: Any) -> str:
    """
    Format a price as ``$1,234`` / ``$1,234.5``.

    Values that do not parse as numbers are shown as given, with a ``$``.
    """
    number = parse_number(value)
    if number is None:
        text = str(value).strip()
        return text if text.startswith("$") else f"${text}"
    try:
        amount = Decimal(str(number)).quantize(Decimal("0.01"))
    except InvalidOperation:
        return f"${value}"
    if amount == amount.to_integral_value():
        return f"${int(amount):,}"
    return "$" + f"{amount:,.2f}".rstrip("0")


def _price_fields(source: Lot | Mapping[str, Any]) -> tuple[frozenset[LotStatus], dict[str, Any]]:
    if isinstance(source, Lot):
        return source.status, {attr: getattr(source, attr) for attr in _ROW_KEYS}
    statuses = normalize_statuses(source.get("status"), strict=False)
    return statuses, {attr: source.get(key) for attr, key in _ROW_KEYS.items()}


def select_price(source: Lot | Mapping[str, Any]) -> tuple[Any, bool] | None:
    """
    Pick the price to display and whether it is monthly.

    Returns ``(raw_price, monthly)`` or None when no price is available.
    """
    statuses, prices = _price_fields(source)
    for status, attr in STATUS_PRICE_PRIORITY:
        if status in statuses and _has_value(prices[attr]):
            return prices[attr], status in RECURRING_STATUSES
    if _has_value(prices["price"]):
        return prices["price"], LotStatus.FOR_RENT in statuses
    return None


def display_price(
    source: Lot | Mapping[str, Any],
    *,
    context: PriceContext = PriceContext.LISTING,
) -> str:
    """Render the lot's display price, e.g. ``$1,200/mo`` or ``Price TBD``."""
    selected = select_price(source)
    if selected is None:
        return EMPTY_PRICE_LABELS[context]
    raw, monthly = selected
    text = format_money(raw)
    return f"{text}{MONTHLY_SUFFIX}" if monthly else text


def effective_price(source: Lot | Mapping[str, Any]) -> float | None:
    """Numeric value of the displayed price, used for price ranges and sorting."""
    selected = select_price(source)
    if selected is None:
        return None
    return parse_number(selected[0])
