"""
Tests for column mapping and preview in parkdesk.bulk_import.
"""

import pytest


HEADERS = ["Lot", "Park Name", "Status", "Rent", "Beds", "Notes"]


class TestFields:
    def test_name_is_the_only_required_field_by_default(self):
        from parkdesk.bulk_import import required_fields

        assert required_fields(False) == ["nameOrNumber"]
        assert required_fields(True) == ["nameOrNumber", "parkName"]

    def test_labels(self):
        from parkdesk.bulk_import import field_label

        assert field_label("nameOrNumber", False) == "Lot Name/Number *"
        assert field_label("parkName", True) == "Park Name *"
        assert field_label("parkName", False) == "Park Name"
        assert field_label("parkId", False) == "Park ID (alternative to Park Name)"

    def test_field_keys_are_unique(self):
        from parkdesk.bulk_import import LOT_IMPORT_FIELDS

        keys = [f.key for f in LOT_IMPORT_FIELDS]
        assert len(keys) == len(set(keys))


class TestSuggestMapping:
    def test_common_headers(self):
        from parkdesk.bulk_import import SKIP, suggest_mapping

        mapping = suggest_mapping(HEADERS)

        assert mapping["nameOrNumber"] == "Lot"
        assert mapping["parkName"] == "Park Name"
        assert mapping["status"] == "Status"
        assert mapping["priceForRent"] == "Rent"
        assert mapping["bedrooms"] == "Beds"
        assert mapping["description"] == "Notes"
        assert mapping["parkId"] == SKIP
        assert mapping["lotRent"] == SKIP

    def test_each_column_used_once(self):
        from parkdesk.bulk_import import SKIP, suggest_mapping

        mapping = suggest_mapping(HEADERS)
        used = [v for v in mapping.values() if v != SKIP]
        assert len(used) == len(set(used))

    def test_exact_field_keys(self):
        from parkdesk.bulk_import import suggest_mapping

        mapping = suggest_mapping(["nameOrNumber", "parkId", "sqFt", "priceForSale"])
        assert mapping["nameOrNumber"] == "nameOrNumber"
        assert mapping["parkId"] == "parkId"
        assert mapping["sqFt"] == "sqFt"
        assert mapping["priceForSale"] == "priceForSale"

    def test_short_headers_need_exact_match(self):
        from parkdesk.bulk_import import SKIP, suggest_mapping

        mapping = suggest_mapping(["ID", "BR"])
        assert mapping["parkId"] == SKIP
        assert mapping["bedrooms"] == "BR"

    @pytest.mark.parametrize(
        "raw, expected",
        [("Lot #", "lot"), ("sqFt", "sq_ft"), ("Park-Name", "park_name"), ("  Price (For Rent) ", "price_for_rent")],
    )
    def test_normalize_column_name(self, raw, expected):
        from parkdesk.bulk_import.mapping import normalize_column_name

        assert normalize_column_name(raw) == expected


class TestValidateMapping:
    def test_returns_active_entries(self):
        from parkdesk.bulk_import import SKIP, validate_mapping

        active = validate_mapping({"nameOrNumber": "Lot", "status": "Status", "bedrooms": SKIP, "parkId": ""}, HEADERS)
        assert active == {"nameOrNumber": "Lot", "status": "Status"}

    def test_missing_name(self):
        from parkdesk.bulk_import import SKIP, validate_mapping
        from parkdesk.exceptions import MissingMappingError

        with pytest.raises(MissingMappingError) as exc_info:
            validate_mapping({"nameOrNumber": SKIP, "status": "Status"}, HEADERS, require_park_name=False)
        assert exc_info.value.missing == ["nameOrNumber"]

    def test_park_name_required_when_configured(self):
        from parkdesk.bulk_import import validate_mapping
        from parkdesk.exceptions import MissingMappingError

        with pytest.raises(MissingMappingError) as exc_info:
            validate_mapping({"parkId": "Park Name"}, HEADERS, require_park_name=True)
        assert exc_info.value.detail == (
            "Please map: nameOrNumber, parkName (required - Park ID alone is not sufficient)"
        )

    def test_unknown_field(self):
        from parkdesk.bulk_import import validate_mapping
        from parkdesk.exceptions import MissingMappingError, ValidationError

        with pytest.raises(ValidationError) as exc_info:
            validate_mapping({"nameOrNumber": "Lot", "color": "Notes"}, HEADERS)
        assert not isinstance(exc_info.value, MissingMappingError)
        assert exc_info.value.detail == "color"

    def test_column_not_in_file(self):
        from parkdesk.bulk_import import validate_mapping
        from parkdesk.exceptions import ValidationError

        with pytest.raises(ValidationError) as exc_info:
            validate_mapping({"nameOrNumber": "Lot Number"}, HEADERS)
        assert exc_info.value.message == "mapping: column not found in file"


class TestApplyMapping:
    def test_rename_and_skip(self):
        from parkdesk.bulk_import import SKIP, apply_mapping

        rows = [
            {"Lot": "A1", "Park Name": "Oak Grove", "Rent": "1200", "Notes": "x"},
            {"Lot": "A2", "Park Name": "Oak Grove"},
        ]
        mapping = {"nameOrNumber": "Lot", "parkName": "Park Name", "priceForRent": "Rent", "description": SKIP}

        assert apply_mapping(rows, mapping) == [
            {"nameOrNumber": "A1", "parkName": "Oak Grove", "priceForRent": "1200"},
            {"nameOrNumber": "A2", "parkName": "Oak Grove"},
        ]

    def test_values_pass_through(self):
        from parkdesk.bulk_import import apply_mapping

        assert apply_mapping([{"Beds": 3, "Lot": " A1 "}], {"bedrooms": "Beds", "nameOrNumber": "Lot"}) == [
            {"bedrooms": 3, "nameOrNumber": " A1 "}
        ]


class TestPreview:
    def test_preview_row(self):
        from parkdesk.bulk_import.preview import preview_row

        row = preview_row({"nameOrNumber": "A1", "parkName": "Oak Grove", "status": "FOR_RENT", "priceForRent": "1200"})
        assert (row.name, row.status, row.park, row.price, row.description) == (
            "A1",
            "FOR_RENT",
            "Oak Grove",
            "$1,200/mo",
            "N/A",
        )

    def test_park_id_fallback_and_missing_values(self):
        from parkdesk.bulk_import.preview import preview_row

        row = preview_row({"nameOrNumber": "", "parkId": "3"})
        assert (row.name, row.status, row.park, row.price) == ("N/A", "N/A", "3", "N/A")

    def test_preview_is_capped(self):
        from parkdesk.bulk_import import build_preview

        records = [{"nameOrNumber": f"L{i}"} for i in range(12)]
        preview = build_preview(records, limit=10)

        assert len(preview.rows) == 10
        assert preview.total == 12
        assert preview.remaining == 2
        assert preview.remaining_caption == "... and 2 more lots"

    def test_small_preview_has_no_caption(self):
        from parkdesk.bulk_import import build_preview

        preview = build_preview([{"nameOrNumber": "A1"}], limit=10)
        assert preview.remaining == 0
        assert preview.remaining_caption is None
