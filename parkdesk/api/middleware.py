"""
Middleware and request helpers for the API.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware

from parkdesk.config import settings
from parkdesk.exceptions import FileTooLargeError

# Room for multipart boundaries and form fields around the file itself.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def get_client_ip(request: Request) -> str:
    return (request.client.host if request.client else "") or ""


def setup_compression(app: FastAPI) -> None:
    app.add_middleware(GZipMiddleware, minimum_size=800)


def setup_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted(settings.cors_allow_origins),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
        max_age=settings.cors_max_age,
    )


def setup_security_headers(app: FastAPI) -> None:
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        return response


def setup_request_size_limit(app: FastAPI) -> None:
    @app.middleware("http")
    async def limit_request_size(request: Request, call_next):
        content_length = request.headers.get("content-length")
        limit = settings.max_upload_bytes + MULTIPART_OVERHEAD_BYTES
        if content_length and content_length.isdigit() and int(content_length) > limit:
            error = FileTooLargeError(int(content_length), settings.max_upload_bytes)
            return JSONResponse(
                status_code=413,
                content=error.to_dict(),
                headers={"Cache-Control": "no-store"},
            )
        return await call_next(request)
