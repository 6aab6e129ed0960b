"""
Tests for parkdesk.config module.

Covers:
- Settings initialization
- Environment variable overrides
- Default values
- Constants
"""

import os
from unittest import mock


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self):
        """Test that default values are set correctly."""
        from parkdesk.config import Settings

        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.api_base_url == "http://localhost:5000"
        assert settings.list_fetch_limit == 10000
        assert settings.server_side_search is False
        assert settings.default_page_size == 20
        assert settings.page_size_options == (20, 50, 100)
        assert settings.preview_row_limit == 10
        assert settings.max_upload_bytes == 25 * 1024 * 1024
        assert settings.import_progress_step == 10
        assert settings.import_progress_cap == 90
        assert settings.require_park_name is False
        assert settings.debug_mode is False

    def test_env_override_backend(self):
        """Test environment variable overrides for the backend connection."""
        from parkdesk.config import Settings

        env = {
            "PARKDESK_API_URL": "https://api.example.com/",
            "PARKDESK_REQUEST_TIMEOUT": "12.5",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings()

        assert settings.api_base_url == "https://api.example.com"
        assert settings.request_timeout_seconds == 12.5

    def test_env_override_lists(self):
        """Test environment variable overrides for list behaviour."""
        from parkdesk.config import Settings

        env = {
            "PARKDESK_LIST_FETCH_LIMIT": "500",
            "PARKDESK_SERVER_SIDE_SEARCH": "yes",
            "PARKDESK_PAGE_SIZE_OPTIONS": "10, 25,50",
            "PARKDESK_DEFAULT_PAGE_SIZE": "25",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings()

        assert settings.list_fetch_limit == 500
        assert settings.server_side_search is True
        assert settings.page_size_options == (10, 25, 50)
        assert settings.default_page_size == 25

    def test_default_page_size_must_be_offered(self):
        """A default page size outside the options falls back to the first option."""
        from parkdesk.config import Settings

        with mock.patch.dict(os.environ, {"PARKDESK_DEFAULT_PAGE_SIZE": "30"}, clear=True):
            settings = Settings()

        assert settings.default_page_size == 20

    def test_env_override_import(self):
        """Test environment variable overrides for the bulk import."""
        from parkdesk.config import Settings

        env = {
            "PARKDESK_PREVIEW_ROWS": "5",
            "PARKDESK_MAX_UPLOAD_BYTES": "1024",
            "PARKDESK_REQUIRE_PARK_NAME": "true",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings()

        assert settings.preview_row_limit == 5
        assert settings.max_upload_bytes == 1024
        assert settings.require_park_name is True

    def test_unrecognized_flag_keeps_default(self):
        from parkdesk.config import Settings

        with mock.patch.dict(os.environ, {"PARKDESK_SERVER_SIDE_SEARCH": "maybe"}, clear=True):
            settings = Settings()

        assert settings.server_side_search is False

    def test_debug_mode(self):
        """Test debug mode can be enabled."""
        from parkdesk.config import Settings

        for value in ("true", "1", "yes"):
            with mock.patch.dict(os.environ, {"DEBUG": value}, clear=True):
                settings = Settings()
            assert settings.debug_mode is True

    def test_cors_origins(self):
        from parkdesk.config import Settings

        env = {"PARKDESK_CORS_ALLOW_ORIGINS": "https://admin.example.com, http://localhost:8501"}
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings()

        assert settings.cors_allow_origins == {"https://admin.example.com", "http://localhost:8501"}

    def test_cors_wildcard(self):
        from parkdesk.config import Settings

        with mock.patch.dict(os.environ, {"PARKDESK_CORS_ALLOW_ORIGINS": "*"}, clear=True):
            settings = Settings()

        assert settings.cors_allow_origins == {"*"}

    def test_api_token_read_from_env(self):
        """The token is read on access, not stored."""
        from parkdesk.config import Settings

        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings()
            assert settings.api_token is None
            with mock.patch.dict(os.environ, {"PARKDESK_API_TOKEN": "secret"}):
                assert settings.api_token == "secret"

    def test_reload_settings_rereads_environment(self):
        from parkdesk import config

        with mock.patch.object(config, "_settings", None):
            with mock.patch.dict(os.environ, {"PARKDESK_API_URL": "http://first.test"}, clear=True):
                first = config.get_settings()
                assert config.get_settings() is first
            with mock.patch.dict(os.environ, {"PARKDESK_API_URL": "http://second.test"}, clear=True):
                reloaded = config.reload_settings()
            assert reloaded is not first
            assert reloaded.api_base_url == "http://second.test"
            assert config.get_settings() is reloaded


class TestConstants:
    """Tests for module-level constants."""

    def test_upload_extensions(self):
        from parkdesk.config import SPREADSHEET_ENGINES, UPLOAD_EXTENSIONS

        assert UPLOAD_EXTENSIONS == {".csv", ".xlsx", ".xls"}
        assert SPREADSHEET_ENGINES == {".xlsx": "openpyxl", ".xls": "xlrd"}

    def test_role_labels_cover_roles(self):
        from parkdesk.config import ROLE_LABELS
        from parkdesk.domain import Role

        assert set(ROLE_LABELS) == {role.value for role in Role}
