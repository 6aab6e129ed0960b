"""
FastAPI application factory.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from parkdesk.api.middleware import setup_compression, setup_cors, setup_request_size_limit, setup_security_headers
from parkdesk.api.observability import ObservabilityMiddleware, generate_request_id, get_request_id
from parkdesk.api.routes import imports as imports_routes
from parkdesk.api.routes import lots as lots_routes
from parkdesk.api.state import AppState
from parkdesk.client import ParkDeskClient
from parkdesk.config import settings
from parkdesk.exceptions import ParkDeskError, exception_to_http_status
from parkdesk.logging_config import get_logger

logger = get_logger(__name__)


def create_app(*, client: ParkDeskClient | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state: AppState = app.state.state
        logger.info("api_started", extra={"backend_url": state.client.base_url})
        yield
        state.client.session.close()

    app = FastAPI(
        title="ParkDesk API",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.state = AppState(client=client or ParkDeskClient())

    setup_compression(app)
    setup_cors(app)
    setup_security_headers(app)
    setup_request_size_limit(app)

    # Observability middleware (must be added last to wrap all others)
    app.add_middleware(ObservabilityMiddleware)

    @app.get("/v1/health")
    def health(response: Response) -> dict:
        response.headers["Cache-Control"] = "no-store"
        return {"ok": True}

    app.include_router(lots_routes.router)
    app.include_router(imports_routes.router)

    def _error_headers(request: Request) -> dict[str, str]:
        rid = request.headers.get("x-request-id") or get_request_id() or generate_request_id()
        return {"X-Request-ID": rid, "Cache-Control": "no-store"}

    @app.exception_handler(ParkDeskError)
    def _parkdesk_error(request: Request, exc: ParkDeskError) -> JSONResponse:
        headers = _error_headers(request)
        exc.request_id = headers["X-Request-ID"]
        return JSONResponse(status_code=exception_to_http_status(exc), content=exc.to_dict(), headers=headers)

    @app.exception_handler(Exception)
    def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        # ObservabilityMiddleware logs the exception; the envelope stays generic.
        content = {"error": "internal_error", "message": "Internal server error"}
        if settings.debug_mode:
            content["detail"] = str(exc)
        return JSONResponse(status_code=500, content=content, headers=_error_headers(request))

    return app


app = create_app()
