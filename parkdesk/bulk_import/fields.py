"""
Target fields a spreadsheet column can be mapped onto when importing lots.
"""

from __future__ import annotations

from dataclasses import dataclass

from parkdesk.config import settings

# Mapping value meaning "do not import this field".
SKIP = "skip"

NAME_FIELD = "nameOrNumber"
PARK_NAME_FIELD = "parkName"


@dataclass(frozen=True)
class ImportField:
    key: str
    label: str
    required: bool = False
    aliases: tuple[str, ...] = ()


LOT_IMPORT_FIELDS: tuple[ImportField, ...] = (
    ImportField(NAME_FIELD, "Lot Name/Number", required=True, aliases=("lot", "lot_number", "lot_name", "name", "unit")),
    ImportField(PARK_NAME_FIELD, "Park Name", aliases=("park", "community")),
    ImportField("parkId", "Park ID", aliases=("park_id",)),
    ImportField("status", "Status", aliases=("listing_status",)),
    ImportField("specialStatus", "Special Status", aliases=("tag",)),
    ImportField("description", "Description", aliases=("notes", "details")),
    ImportField("availableDate", "Available Date", aliases=("available", "available_on")),
    ImportField("showingLink", "Showing Link", aliases=("showing_url", "tour_link")),
    ImportField("bedrooms", "Bedrooms", aliases=("beds", "bed", "br")),
    ImportField("bathrooms", "Bathrooms", aliases=("baths", "bath", "ba")),
    ImportField("sqFt", "Square Feet", aliases=("sqft", "square_footage", "sq_ft")),
    ImportField("houseManufacturer", "House Manufacturer", aliases=("manufacturer", "make")),
    ImportField("houseModel", "House Model", aliases=("model",)),
    ImportField("mobileHomeYear", "Mobile Home Year", aliases=("year", "year_built")),
    ImportField("mobileHomeSize", "Mobile Home Size", aliases=("size", "home_size")),
    ImportField("priceForRent", "Price For Rent", aliases=("rent", "rent_price", "monthly_rent")),
    ImportField("priceForSale", "Price For Sale", aliases=("sale_price", "asking_price")),
    ImportField("priceRentToOwn", "Price Rent To Own", aliases=("rto_price",)),
    ImportField("priceContractForDeed", "Price Contract For Deed", aliases=("cfd_price",)),
    ImportField("depositForRent", "Deposit For Rent", aliases=("rent_deposit",)),
    ImportField("depositForSale", "Deposit For Sale", aliases=("sale_deposit",)),
    ImportField("depositRentToOwn", "Deposit Rent To Own", aliases=("rto_deposit",)),
    ImportField("depositContractForDeed", "Deposit Contract For Deed", aliases=("cfd_deposit",)),
    ImportField("downPaymentContractForDeed", "Down Payment Contract For Deed", aliases=("down_payment",)),
    ImportField("lotRent", "Lot Rent", aliases=("lot_rent", "space_rent")),
    ImportField("promotionalPrice", "Promotional Price", aliases=("promo_price",)),
    ImportField("promotionalPriceActive", "Promotional Price Active", aliases=("promo_active",)),
    ImportField("estimatedPayment", "Estimated Payment", aliases=("est_payment",)),
)

FIELDS_BY_KEY = {f.key: f for f in LOT_IMPORT_FIELDS}


def required_fields(require_park_name: bool | None = None) -> list[str]:
    """Target fields that must be mapped before the preview step."""
    if require_park_name is None:
        require_park_name = settings.require_park_name
    keys = [f.key for f in LOT_IMPORT_FIELDS if f.required]
    if require_park_name:
        keys.append(PARK_NAME_FIELD)
    return keys


def field_label(key: str, require_park_name: bool | None = None) -> str:
    field = FIELDS_BY_KEY[key]
    if key in required_fields(require_park_name):
        return f"{field.label} *"
    if key == "parkId":
        return f"{field.label} (alternative to Park Name)"
    return field.label
