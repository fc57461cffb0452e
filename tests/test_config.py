"""Tests for configuration loading."""

from pathlib import Path

import pytest

from expense_ledger.config import (
    ApiSettings,
    LedgerSettings,
    SessionSettings,
    get_settings,
    validate_all_settings,
)


class TestSettings:
    """Tests for the settings classes."""

    def test_defaults(self):
        """Test default values."""
        assert SessionSettings().ttl_seconds == 1800
        assert LedgerSettings().page_size == 5
        assert ApiSettings().records_path == "/records"

    def test_env_prefix(self, monkeypatch):
        """Test environment overrides use each section's prefix."""
        monkeypatch.setenv("LEDGER_SESSION_TTL_SECONDS", "60")
        monkeypatch.setenv("LEDGER_API_BASE_URL", "http://api.local:9000/")
        assert SessionSettings().ttl_seconds == 60
        assert ApiSettings().base_url == "http://api.local:9000"

    def test_ttl_must_be_positive(self):
        """Test a zero TTL is rejected."""
        with pytest.raises(ValueError):
            SessionSettings(ttl_seconds=0)

    def test_durable_path_expands_user(self):
        """Test ~ is expanded."""
        settings = SessionSettings(durable_path="~/ledger/session.json")
        assert "~" not in str(settings.durable_path)
        assert isinstance(settings.durable_path, Path)

    def test_get_settings_is_cached(self):
        """Test the settings object is built once."""
        get_settings.cache_clear()
        assert get_settings() is get_settings()
        get_settings.cache_clear()

    def test_validate_all_settings(self, monkeypatch):
        """Test a broken section is reported, not raised."""
        monkeypatch.setenv("LEDGER_PAGE_SIZE", "0")
        get_settings.cache_clear()
        try:
            results = validate_all_settings()
        finally:
            get_settings.cache_clear()
        assert results["session"] is True
        assert results["ledger"] is False
        assert "ledger_error" in results
