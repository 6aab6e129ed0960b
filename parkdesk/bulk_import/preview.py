"""
Capped preview of mapped import rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from parkdesk.config import settings
from parkdesk.pricing import PriceContext, display_price

NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class PreviewRow:
    name: str
    status: str
    park: str
    price: str
    description: str
    record: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ImportPreview:
    rows: list[PreviewRow]
    total: int

    @property
    def remaining(self) -> int:
        return max(0, self.total - len(self.rows))

    @property
    def remaining_caption(self) -> str | None:
        return f"... and {self.remaining} more lots" if self.remaining else None


def _text(value: Any) -> str:
    if value is None or str(value).strip() == "":
        return NOT_AVAILABLE
    return str(value)


def preview_row(record: Mapping[str, Any]) -> PreviewRow:
    park = record.get("parkName") or record.get("parkId")
    return PreviewRow(
        name=_text(record.get("nameOrNumber")),
        status=_text(record.get("status")),
        park=_text(park),
        price=display_price(record, context=PriceContext.PREVIEW),
        description=_text(record.get("description")),
        record=dict(record),
    )


def build_preview(records: Sequence[Mapping[str, Any]], *, limit: int | None = None) -> ImportPreview:
    limit = settings.preview_row_limit if limit is None else limit
    return ImportPreview(rows=[preview_row(r) for r in records[:limit]], total=len(records))
