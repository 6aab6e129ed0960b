"""
Bulk lot import routes.

The import is stateless on this side: the parse step returns the rows,
and the caller posts them back with its mapping for preview and submit.
"""

from __future__ import annotations

from fastapi import APIRouter, File, Request, UploadFile

from parkdesk.api.dependencies import get_client
from parkdesk.api.models import MappedRowsRequest, ParseResponse, PreviewResponse, SubmitResponse
from parkdesk.bulk_import import apply_mapping, build_preview, parse_upload, suggest_mapping, validate_mapping
from parkdesk.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/v1/imports", tags=["imports"])


def _mapped_records(payload: MappedRowsRequest) -> list[dict]:
    active = validate_mapping(payload.mapping, payload.column_names())
    return apply_mapping(payload.rows, active)


@router.post(
    "/lots/parse",
    response_model=ParseResponse,
    responses={400: {"description": "Unsupported or unreadable file"}, 413: {"description": "File too large"}},
)
def parse_lots_file(file: UploadFile = File(...)) -> dict:
    data = file.file.read()
    upload = parse_upload(file.filename or "", data)
    return {
        "filename": upload.filename,
        "headers": upload.headers,
        "rows": upload.rows,
        "row_count": upload.row_count,
        "suggested_mapping": suggest_mapping(upload.headers),
    }


@router.post(
    "/lots/preview",
    response_model=PreviewResponse,
    responses={400: {"description": "Missing required mappings"}},
)
def preview_lots(payload: MappedRowsRequest) -> dict:
    preview = build_preview(_mapped_records(payload))
    return {
        "total": preview.total,
        "remaining": preview.remaining,
        "rows": [
            {"name": r.name, "status": r.status, "park": r.park, "price": r.price, "description": r.description}
            for r in preview.rows
        ],
    }


@router.post(
    "/lots/submit",
    response_model=SubmitResponse,
    responses={400: {"description": "Missing required mappings"}, 502: {"description": "Backend rejected the batch"}},
)
def submit_lots(payload: MappedRowsRequest, request: Request) -> dict:
    records = _mapped_records(payload)
    results = get_client(request).bulk_create_lots(records)
    request.state.result_count = len(results.successful)
    return {
        "summary": results.summary,
        "total": results.total,
        "successful": results.successful,
        "failed": [f.model_dump() for f in results.failed],
        "warnings": [w.model_dump() for w in results.warnings],
    }
