"""
Upload parsing for the bulk import.

CSV files are read with their header row; spreadsheets are read from the
first sheet with row 0 as headers and every later row zipped onto them.
Both produce the same shape: a header list and one ``{column: value}``
dict per row. Values are not coerced beyond what is needed to send them
as JSON.
"""

from __future__ import annotations

import io
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import pandas as pd

from parkdesk.config import SPREADSHEET_ENGINES, UPLOAD_EXTENSIONS, settings
from parkdesk.exceptions import ConfigurationError, FileParseError, FileTooLargeError, UnsupportedFileError
from parkdesk.logging_config import get_logger, log_execution

logger = get_logger(__name__)

CSV_ERROR = "Error parsing CSV"
SPREADSHEET_ERROR = "Error parsing Excel file"
SPREADSHEET_HINT = "Please check the file format and try again"


@dataclass
class ParsedUpload:
    filename: str
    headers: list[str]
    rows: list[dict[str, Any]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def file_extension(filename: str) -> str:
    return Path(str(filename or "")).suffix.lower()


def check_upload(filename: str, size_bytes: int, *, max_bytes: int | None = None) -> str:
    """Validate extension and size before reading; returns the extension."""
    extension = file_extension(filename)
    if extension not in UPLOAD_EXTENSIONS:
        raise UnsupportedFileError(filename)
    limit = settings.max_upload_bytes if max_bytes is None else max_bytes
    if size_bytes > limit:
        raise FileTooLargeError(size_bytes, limit)
    return extension


def decode_upload_bytes(raw_bytes: bytes) -> str:
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            return raw_bytes.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise FileParseError(CSV_ERROR, detail="Could not decode upload content")


def cell_value(value: Any) -> Any:
    """Make a parsed cell JSON-friendly: blanks become "", dates ISO strings."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    if value is pd.NaT:
        return ""
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == time(0, 0) else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return value.strip()
    return value


def _is_blank_row(row: dict[str, Any]) -> bool:
    return all(str(v).strip() == "" for v in row.values())


def parse_csv(data: bytes) -> tuple[list[str], list[dict[str, Any]]]:
    text = decode_upload_bytes(data)
    try:
        frame = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as exc:
        raise FileParseError(CSV_ERROR, detail=str(exc)) from exc

    headers = [str(column).strip() for column in frame.columns]
    rows = []
    for record in frame.itertuples(index=False, name=None):
        row = {header: cell_value(value) for header, value in zip(headers, record)}
        if not _is_blank_row(row):
            rows.append(row)
    return headers, rows


def parse_spreadsheet(data: bytes, extension: str) -> tuple[list[str], list[dict[str, Any]]]:
    engine = SPREADSHEET_ENGINES[extension]
    try:
        frame = pd.read_excel(io.BytesIO(data), sheet_name=0, header=None, dtype=object, engine=engine)
    except ImportError as exc:
        raise ConfigurationError(f"Spreadsheet engine {engine!r} is not installed", setting=engine) from exc
    except Exception as exc:
        # openpyxl, xlrd and zipfile each raise their own types for corrupt files.
        raise FileParseError(SPREADSHEET_ERROR, detail=SPREADSHEET_HINT) from exc

    values = frame.values.tolist()
    if not values:
        raise FileParseError(SPREADSHEET_ERROR, detail=SPREADSHEET_HINT)

    headers = []
    for index, raw in enumerate(values[0]):
        header = str(cell_value(raw)).strip()
        headers.append(header or f"Column {index + 1}")

    rows = []
    for record in values[1:]:
        row = {header: cell_value(record[i]) if i < len(record) else "" for i, header in enumerate(headers)}
        if not _is_blank_row(row):
            rows.append(row)
    return headers, rows


@log_execution(log_exceptions=False)
def parse_upload(filename: str, data: bytes, *, max_bytes: int | None = None) -> ParsedUpload:
    """
    Parse an uploaded CSV/XLSX/XLS file.

    Raises:
        UnsupportedFileError: extension is not .csv, .xlsx or .xls.
        FileTooLargeError: upload is over the size limit.
        FileParseError: the file is corrupt, empty or has no data rows.
    """
    extension = check_upload(filename, len(data), max_bytes=max_bytes)
    if extension == ".csv":
        headers, rows = parse_csv(data)
        error = CSV_ERROR
    else:
        headers, rows = parse_spreadsheet(data, extension)
        error = SPREADSHEET_ERROR

    if not headers:
        raise FileParseError(error, filename=filename, detail="No header row found")
    if not rows:
        raise FileParseError(error, filename=filename, detail="The file has no data rows")

    logger.info(
        "upload_parsed",
        extra={"upload_name": filename, "row_count": len(rows), "column_count": len(headers), "format": extension},
    )
    return ParsedUpload(filename=filename, headers=headers, rows=rows)
