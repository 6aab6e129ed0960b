"""
Pydantic models for API requests and responses.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


# =============================================================================
# Request Models
# =============================================================================


class MappedRowsRequest(BaseModel):
    """Parsed upload rows plus the column mapping chosen for them."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "rows": [{"Lot": "A1", "Park Name": "Oak", "Status": "FOR_RENT"}],
                    "mapping": {"nameOrNumber": "Lot", "parkName": "Park Name", "status": "Status"},
                }
            ]
        }
    )

    rows: list[dict[str, Any]] = Field(default_factory=list, description="Rows as returned by the parse endpoint")
    mapping: dict[str, str] = Field(default_factory=dict, description="Lot field to source column, or 'skip'")
    headers: list[str] | None = Field(default=None, description="Columns of the upload; derived from rows if omitted")

    def column_names(self) -> list[str]:
        if self.headers is not None:
            return list(self.headers)
        seen: dict[str, None] = {}
        for row in self.rows:
            for key in row:
                seen.setdefault(key, None)
        return list(seen)


# =============================================================================
# Response Models
# =============================================================================


class LotListResponse(BaseModel):
    """Response model for the lot list endpoint."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "query": "oak",
                    "total": 42,
                    "page": 1,
                    "page_size": 20,
                    "total_pages": 3,
                    "page_window": [1, 2, 3],
                    "items": [
                        {
                            "id": "17",
                            "nameOrNumber": "A1",
                            "status": ["FOR_RENT"],
                            "priceForRent": "1200",
                            "displayPrice": "$1,200/mo",
                        }
                    ],
                }
            ]
        }
    )

    query: str = Field(description="Free-text search used")
    total: int = Field(description="Total matching lots")
    page: int = Field(description="Current page number, clamped to the last page")
    page_size: int = Field(description="Items per page")
    total_pages: int = Field(description="Page count, at least 1")
    page_window: list[int] = Field(default_factory=list, description="Page numbers around the current page")
    items: list[dict[str, Any]] = Field(default_factory=list, description="Lots on this page")


class FilterOptionsResponse(BaseModel):
    """Distinct values per categorical lot filter; 'none' marks empty values."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "filters": {
                        "status": [{"value": "FOR_RENT", "label": "For Rent"}],
                        "park": [{"value": "3", "label": "Oak Grove"}, {"value": "none", "label": "No park"}],
                    }
                }
            ]
        }
    )

    filters: dict[str, list[dict[str, str]]] = Field(default_factory=dict)


class ParseResponse(BaseModel):
    filename: str
    headers: list[str]
    rows: list[dict[str, Any]]
    row_count: int
    suggested_mapping: dict[str, str] = Field(default_factory=dict)


class PreviewRowResponse(BaseModel):
    name: str
    status: str
    park: str
    price: str
    description: str


class PreviewResponse(BaseModel):
    total: int
    remaining: int
    rows: list[PreviewRowResponse] = Field(default_factory=list)


class SubmitResponse(BaseModel):
    """Bulk import outcome as reported by the backend."""

    summary: str
    total: int
    successful: list[dict[str, Any]] = Field(default_factory=list)
    failed: list[dict[str, Any]] = Field(default_factory=list)
    warnings: list[dict[str, Any]] = Field(default_factory=list)
