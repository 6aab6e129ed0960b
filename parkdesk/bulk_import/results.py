"""
Structured outcome of a bulk lot submission.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as SchemaError

from parkdesk.exceptions import ExternalAPIError


class ImportFailure(BaseModel):
    row: int
    error: str

    @field_validator("error", mode="before")
    @classmethod
    def _error_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class ImportWarning(BaseModel):
    row: int
    message: str

    @field_validator("message", mode="before")
    @classmethod
    def _message_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class ImportResults(BaseModel):
    """
    Server answer to ``POST /api/admin/lots/bulk``.

    ``successful`` holds the created lot records; ``failed`` and ``warnings``
    carry the 1-based row number the server reported.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "successful": [{"id": "17", "nameOrNumber": "A1"}],
                "failed": [{"row": 4, "error": "nameOrNumber is required"}],
                "warnings": [{"row": 2, "message": "Park 'Oak' not found; created"}],
                "total": 10,
            }
        }
    )

    successful: list[dict[str, Any]] = Field(default_factory=list)
    failed: list[ImportFailure] = Field(default_factory=list)
    warnings: list[ImportWarning] = Field(default_factory=list)
    total: int = 0

    @classmethod
    def from_response(cls, payload: Any, *, total: int) -> "ImportResults":
        if not isinstance(payload, dict):
            raise ExternalAPIError("Unexpected bulk import response", service="parkdesk-backend")
        try:
            return cls.model_validate(
                {
                    "successful": payload.get("successful") or [],
                    "failed": payload.get("failed") or [],
                    "warnings": payload.get("warnings") or [],
                    "total": total,
                }
            )
        except SchemaError as exc:
            raise ExternalAPIError("Unexpected bulk import response", service="parkdesk-backend") from exc

    @property
    def summary(self) -> str:
        return f"Successfully processed {len(self.successful)} of {self.total} lots"

    def failure_lines(self) -> list[str]:
        return [f"Row {f.row}: {f.error}" for f in self.failed]

    def warning_lines(self) -> list[str]:
        return [f"Row {w.row}: {w.message}" for w in self.warnings]
