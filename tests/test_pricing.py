"""
Tests for parkdesk.pricing module.
"""

import pytest


def _lot(**fields):
    from parkdesk.domain import Lot

    return Lot.model_validate({"nameOrNumber": "T1", **fields})


class TestFormatMoney:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (1200, "$1,200"),
            ("1200", "$1,200"),
            ("45000.00", "$45,000"),
            ("1234.5", "$1,234.5"),
            ("$30,000", "$30,000"),
            ("999.99", "$999.99"),
            ("call", "$call"),
        ],
    )
    def test_format(self, value, expected):
        from parkdesk.pricing import format_money

        assert format_money(value) == expected


class TestDisplayPrice:
    def test_rent_is_monthly(self):
        from parkdesk.pricing import display_price

        assert display_price(_lot(status=["FOR_RENT"], priceForRent="1200")) == "$1,200/mo"

    def test_sale_has_no_suffix(self):
        from parkdesk.pricing import display_price

        assert display_price(_lot(status="FOR_SALE", priceForSale="45000")) == "$45,000"

    def test_priority_order(self):
        """FOR_RENT wins over FOR_SALE when both are active and priced."""
        from parkdesk.pricing import display_price

        lot = _lot(status="FOR_SALE,FOR_RENT", priceForRent="900", priceForSale="40000")
        assert display_price(lot) == "$900/mo"

    def test_inactive_status_price_ignored(self):
        from parkdesk.pricing import display_price

        lot = _lot(status="FOR_SALE", priceForRent="900", priceForSale="40000")
        assert display_price(lot) == "$40,000"

    def test_skips_unpriced_status(self):
        from parkdesk.pricing import display_price

        lot = _lot(status="FOR_RENT,CONTRACT_FOR_DEED", priceContractForDeed="30000")
        assert display_price(lot) == "$30,000/mo"

    def test_legacy_price_monthly_only_when_for_rent(self):
        from parkdesk.pricing import display_price

        assert display_price(_lot(status="FOR_RENT", price="800")) == "$800/mo"
        assert display_price(_lot(status="FOR_SALE", price="800")) == "$800"
        assert display_price(_lot(price="800")) == "$800"

    def test_no_price_labels(self):
        from parkdesk.pricing import PriceContext, display_price

        lot = _lot(status="FOR_RENT")
        assert display_price(lot) == "Price TBD"
        assert display_price(lot, context=PriceContext.PREVIEW) == "N/A"

    def test_mapped_row(self):
        """Import rows are plain dicts with camelCase keys and loose statuses."""
        from parkdesk.pricing import PriceContext, display_price

        row = {"status": "for rent, LEASED", "priceForRent": "950"}
        assert display_price(row, context=PriceContext.PREVIEW) == "$950/mo"
        assert display_price({"nameOrNumber": "A1"}, context=PriceContext.PREVIEW) == "N/A"


class TestEffectivePrice:
    def test_numeric_value_of_display_price(self):
        from parkdesk.pricing import effective_price

        assert effective_price(_lot(status="CONTRACT_FOR_DEED", priceContractForDeed="$30,000")) == 30000.0
        assert effective_price(_lot(status="FOR_RENT")) is None

    def test_select_price(self):
        from parkdesk.pricing import select_price

        assert select_price(_lot(status="RENT_TO_OWN", priceRentToOwn="1100")) == ("1100", True)
        assert select_price(_lot()) is None
