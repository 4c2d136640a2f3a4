"""Tests for configuration module."""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from pydantic import ValidationError

from catalog_search.config import Settings, get_settings, reload_settings


class TestSettingsDefaults:
    """Test default configuration values."""

    def test_defaults(self):
        """Test that defaults match the documented search behavior."""
        config = Settings(_env_file=None)

        assert config.api_base_url == "http://localhost:8000"
        assert config.search_page_size == 50
        assert config.suggestion_debounce_ms == 300
        assert config.suggestion_min_length == 2
        assert config.query_timeout_ms == 30_000
        assert config.log_level == "INFO"

    def test_derived_seconds(self):
        """Test millisecond settings are exposed in seconds."""
        config = Settings(_env_file=None, suggestion_debounce_ms=250, query_timeout_ms=1500)

        assert config.suggestion_debounce == 0.25
        assert config.query_timeout == 1.5


class TestSettingsValidation:
    """Test configuration validation."""

    def test_settings_from_environment(self, monkeypatch):
        """Test that settings load from environment variables."""
        monkeypatch.setenv("API_BASE_URL", "https://catalog.example.com/")
        monkeypatch.setenv("SEARCH_PAGE_SIZE", "25")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = Settings(_env_file=None)

        assert config.api_base_url == "https://catalog.example.com"
        assert config.search_page_size == 25
        assert config.log_level == "DEBUG"

    def test_invalid_log_level(self, monkeypatch):
        """Test that an unknown log level raises validation error."""
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None)

        assert "log_level" in str(exc_info.value)

    def test_invalid_base_url(self):
        """Test that a relative base URL is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, api_base_url="localhost:8000")

        assert "api_base_url" in str(exc_info.value)

    def test_invalid_request_timeout(self):
        """Test that a non-positive timeout is rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, request_timeout=0)


@given(page_size=st.integers(min_value=-10, max_value=600))
@settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_page_size_bounds(page_size: int):
    """Page sizes outside 1..500 fail at startup, others load unchanged."""
    if 1 <= page_size <= 500:
        assert Settings(_env_file=None, search_page_size=page_size).search_page_size == page_size
    else:
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, search_page_size=page_size)
        assert "search_page_size" in str(exc_info.value)


def test_get_settings_is_cached():
    """Test that get_settings returns one instance until reloaded."""
    first = get_settings()

    assert get_settings() is first
    assert reload_settings() is not first
