"""
ParkDesk - Configuration Management
===================================
Centralized configuration with environment variable support and validation.

Usage:
    from parkdesk.config import settings

    base_url = settings.api_base_url
    page_size = settings.default_page_size
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


def _env_flag(name: str) -> bool | None:
    raw = os.environ.get(name, "").strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return None


@dataclass
class Settings:
    """Application settings with environment variable overrides."""

    # Backend REST service
    api_base_url: str = "http://localhost:5000"
    request_timeout_seconds: float = 30.0

    # Lists
    list_fetch_limit: int = 10000
    server_side_search: bool = False
    default_page_size: int = 20
    page_size_options: tuple[int, ...] = (20, 50, 100)
    page_window_radius: int = 2

    # Bulk import
    preview_row_limit: int = 10
    max_upload_bytes: int = 25 * 1024 * 1024
    import_progress_step: int = 10
    import_progress_interval: float = 0.3
    import_progress_cap: int = 90
    # Earlier revisions refused imports without a park name column.
    require_park_name: bool = False

    # Query cache
    query_cache_size: int = 256
    query_cache_ttl_seconds: int = 300

    # CORS configuration
    # Example: PARKDESK_CORS_ALLOW_ORIGINS="https://admin.example.com,http://localhost:8501"
    cors_allow_origins: set[str] = field(
        default_factory=lambda: {
            "http://localhost",
            "http://localhost:8501",  # Streamlit default
            "http://127.0.0.1",
            "http://127.0.0.1:8501",
        }
    )
    cors_allow_credentials: bool = False
    cors_max_age: int = 600

    debug_mode: bool = False

    def __post_init__(self):
        """Load overrides from environment variables."""
        self._load_env_overrides()

    def _load_env_overrides(self):
        """Load configuration from environment variables."""
        if api_url := os.environ.get("PARKDESK_API_URL"):
            self.api_base_url = api_url.rstrip("/")
        if timeout := os.environ.get("PARKDESK_REQUEST_TIMEOUT"):
            self.request_timeout_seconds = float(timeout)

        # Lists
        if fetch_limit := os.environ.get("PARKDESK_LIST_FETCH_LIMIT"):
            self.list_fetch_limit = int(fetch_limit)
        if (server_search := _env_flag("PARKDESK_SERVER_SIDE_SEARCH")) is not None:
            self.server_side_search = server_search
        if page_sizes := os.environ.get("PARKDESK_PAGE_SIZE_OPTIONS", "").strip():
            self.page_size_options = tuple(int(p) for p in page_sizes.split(",") if p.strip())
        if page_size := os.environ.get("PARKDESK_DEFAULT_PAGE_SIZE"):
            self.default_page_size = int(page_size)

        # Bulk import
        if preview_rows := os.environ.get("PARKDESK_PREVIEW_ROWS"):
            self.preview_row_limit = int(preview_rows)
        if max_upload := os.environ.get("PARKDESK_MAX_UPLOAD_BYTES"):
            self.max_upload_bytes = int(max_upload)
        if (require_park := _env_flag("PARKDESK_REQUIRE_PARK_NAME")) is not None:
            self.require_park_name = require_park

        # Query cache
        if cache_size := os.environ.get("PARKDESK_QUERY_CACHE_SIZE"):
            self.query_cache_size = int(cache_size)
        if cache_ttl := os.environ.get("PARKDESK_QUERY_CACHE_TTL"):
            self.query_cache_ttl_seconds = int(cache_ttl)

        # CORS configuration - requires explicit configuration
        if cors_origins := os.environ.get("PARKDESK_CORS_ALLOW_ORIGINS", "").strip():
            if cors_origins == "*":
                logger.warning(
                    "PARKDESK_CORS_ALLOW_ORIGINS set to '*' - allowing all origins. "
                    "This should only be used in development."
                )
                self.cors_allow_origins = {"*"}
            else:
                self.cors_allow_origins = {origin.strip() for origin in cors_origins.split(",") if origin.strip()}
        if cors_max_age := os.environ.get("PARKDESK_CORS_MAX_AGE"):
            self.cors_max_age = int(cors_max_age)

        if _env_flag("DEBUG"):
            self.debug_mode = True

        if self.default_page_size not in self.page_size_options:
            logger.warning(
                "default_page_size_not_offered",
                extra={"default_page_size": self.default_page_size, "options": list(self.page_size_options)},
            )
            self.default_page_size = self.page_size_options[0]

    @property
    def api_token(self) -> str | None:
        """Get the backend bearer token from environment (never stored in config)."""
        return os.environ.get("PARKDESK_API_TOKEN")


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
        if _settings.debug_mode:
            logger.info("Settings loaded with debug mode enabled")
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings


# Convenience alias
settings = get_settings()


UPLOAD_EXTENSIONS = frozenset({".csv", ".xlsx", ".xls"})

SPREADSHEET_ENGINES = {
    ".xlsx": "openpyxl",
    ".xls": "xlrd",
}

ROLE_LABELS = {
    "ADMIN": "Platform admin",
    "COMPANY_MANAGER": "Company manager",
    "MANAGER": "Park manager",
    "TENANT": "Tenant",
    "OWNER_TENANT": "Owner",
}
