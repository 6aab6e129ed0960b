"""
Tests for parkdesk.bulk_import.parsing (CSV and spreadsheet uploads).
"""

from datetime import datetime

import pandas as pd
import pytest


class TestCheckUpload:
    @pytest.mark.parametrize("filename", ["lots.pdf", "lots", "lots.csv.txt", ""])
    def test_unsupported_extension(self, filename):
        from parkdesk.bulk_import.parsing import check_upload
        from parkdesk.exceptions import UnsupportedFileError

        with pytest.raises(UnsupportedFileError):
            check_upload(filename, 10)

    def test_extension_is_case_insensitive(self):
        from parkdesk.bulk_import.parsing import check_upload

        assert check_upload("LOTS.XLSX", 10) == ".xlsx"

    def test_too_large(self):
        from parkdesk.bulk_import.parsing import check_upload
        from parkdesk.exceptions import FileTooLargeError

        with pytest.raises(FileTooLargeError):
            check_upload("lots.csv", 2048, max_bytes=1024)


class TestCellValue:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ""),
            (float("nan"), ""),
            (pd.NaT, ""),
            (pd.Timestamp("2026-01-05"), "2026-01-05"),
            (datetime(2026, 1, 5, 14, 30), "2026-01-05T14:30:00"),
            (3.0, 3),
            (2.5, 2.5),
            ("  A1  ", "A1"),
            (True, True),
        ],
    )
    def test_cell_value(self, value, expected):
        from parkdesk.bulk_import.parsing import cell_value

        assert cell_value(value) == expected

    def test_numpy_scalars(self):
        import numpy as np

        from parkdesk.bulk_import.parsing import cell_value

        assert cell_value(np.int64(7)) == 7
        assert type(cell_value(np.int64(7))) is int


class TestParseCsv:
    def test_headers_and_rows(self, lots_csv):
        from parkdesk.bulk_import.parsing import parse_upload

        upload = parse_upload("lots.csv", lots_csv)

        assert upload.headers == ["Lot", "Park Name", "Status", "Rent", "Beds", "Notes"]
        assert upload.row_count == 3
        assert upload.rows[0] == {
            "Lot": "A1",
            "Park Name": "Oak Grove",
            "Status": "FOR_RENT",
            "Rent": "1200",
            "Beds": "3",
            "Notes": "Corner lot",
        }
        assert upload.rows[1]["Rent"] == ""
        assert upload.rows[2]["Status"] == "FOR_RENT,RENT_TO_OWN"
        assert upload.rows[2]["Park Name"] == "Élan Meadows"

    def test_byte_order_mark_is_stripped(self):
        from parkdesk.bulk_import.parsing import parse_upload

        upload = parse_upload("lots.csv", "\ufeffLot,Status\nA1,FOR_SALE\n".encode("utf-8"))
        assert upload.headers == ["Lot", "Status"]

    def test_latin1_fallback(self):
        from parkdesk.bulk_import.parsing import parse_upload

        upload = parse_upload("lots.csv", b"Lot,Park Name\nA1,Caf\xe9 Park\n")
        assert upload.rows == [{"Lot": "A1", "Park Name": "Café Park"}]

    def test_empty_file(self):
        from parkdesk.bulk_import.parsing import CSV_ERROR, parse_upload
        from parkdesk.exceptions import FileParseError

        with pytest.raises(FileParseError) as exc_info:
            parse_upload("lots.csv", b"")
        assert exc_info.value.message == CSV_ERROR

    def test_header_only(self):
        from parkdesk.bulk_import.parsing import parse_upload
        from parkdesk.exceptions import FileParseError

        with pytest.raises(FileParseError) as exc_info:
            parse_upload("lots.csv", b"Lot,Park Name\n")
        assert exc_info.value.detail == "The file has no data rows"


class TestParseSpreadsheet:
    def test_xlsx_first_sheet(self, tmp_path):
        from parkdesk.bulk_import.parsing import parse_upload

        path = tmp_path / "lots.xlsx"
        frame = pd.DataFrame(
            {
                "Lot": ["A1", "A2", None],
                "Beds": [3, None, None],
                "Baths": [2.5, 1, None],
                "Available": [datetime(2026, 3, 1), None, None],
            }
        )
        frame.to_excel(path, index=False)

        upload = parse_upload("lots.xlsx", path.read_bytes())

        assert upload.headers == ["Lot", "Beds", "Baths", "Available"]
        # The all-blank third row is dropped.
        assert upload.row_count == 2
        assert upload.rows[0] == {"Lot": "A1", "Beds": 3, "Baths": 2.5, "Available": "2026-03-01"}
        assert upload.rows[1] == {"Lot": "A2", "Beds": "", "Baths": 1, "Available": ""}

    def test_blank_header_gets_a_name(self, tmp_path):
        from parkdesk.bulk_import.parsing import parse_upload

        path = tmp_path / "lots.xlsx"
        pd.DataFrame([["Lot", None], ["A1", "extra"]]).to_excel(path, index=False, header=False)

        upload = parse_upload("lots.xlsx", path.read_bytes())
        assert upload.headers == ["Lot", "Column 2"]
        assert upload.rows == [{"Lot": "A1", "Column 2": "extra"}]

    def test_corrupt_workbook(self):
        from parkdesk.bulk_import.parsing import SPREADSHEET_ERROR, SPREADSHEET_HINT, parse_upload
        from parkdesk.exceptions import FileParseError

        with pytest.raises(FileParseError) as exc_info:
            parse_upload("lots.xlsx", b"this is not a zip archive")
        assert exc_info.value.message == SPREADSHEET_ERROR
        assert exc_info.value.detail == SPREADSHEET_HINT
        assert exc_info.value.user_message == "Error parsing Excel file: Please check the file format and try again"

    def test_corrupt_xls(self):
        from parkdesk.bulk_import.parsing import SPREADSHEET_ERROR, parse_upload
        from parkdesk.exceptions import FileParseError

        with pytest.raises(FileParseError) as exc_info:
            parse_upload("lots.xls", b"\x00\x01 definitely not BIFF")
        assert exc_info.value.message == SPREADSHEET_ERROR


class TestParseLogging:
    def test_rejected_file_logged_as_warning(self, caplog):
        import logging

        from parkdesk.bulk_import.parsing import parse_upload
        from parkdesk.exceptions import FileParseError

        with caplog.at_level(logging.INFO, logger="parkdesk.bulk_import.parsing"):
            with pytest.raises(FileParseError):
                parse_upload("lots.xlsx", b"this is not a zip archive")

        failures = [r for r in caplog.records if r.getMessage() == "parse_upload_failed"]
        assert [r.levelno for r in failures] == [logging.WARNING]
        assert failures[0].error_type == "FileParseError"
        assert failures[0].exc_info is None
