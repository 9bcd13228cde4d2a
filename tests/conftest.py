"""Pytest configuration and shared fixtures."""

import sys
from datetime import date

import httpx
import pytest

# Fix encoding for Windows
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")

TODAY = date(2026, 2, 10)


@pytest.fixture
def today() -> date:
    """Fixed reference date for windows and year inference."""
    return TODAY


@pytest.fixture
def settings():
    """Settings without an API key, ignoring any local .env file."""
    from hashtracks.config.settings import Settings

    return Settings(_env_file=None, google_calendar_api_key=None)


@pytest.fixture
def settings_with_key():
    """Settings with a Google API key."""
    from hashtracks.config.settings import Settings

    return Settings(_env_file=None, google_calendar_api_key="test-key")


@pytest.fixture
def mock_client():
    """Factory for an AsyncClient backed by httpx.MockTransport.

    Usage:
        client = mock_client(lambda request: httpx.Response(200, text="..."))
    """

    def factory(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def make_adapter(mock_client, settings, today):
    """Build an adapter class instance wired to a mock transport."""

    def factory(adapter_class, handler, settings_override=None):
        return adapter_class(
            client=mock_client(handler),
            settings=settings_override or settings,
            today=today,
        )

    return factory


@pytest.fixture(autouse=True)
def reset_source_registry():
    """Give each test a freshly loaded source catalogue."""
    from hashtracks.config.sources import SourceRegistry

    SourceRegistry.clear()
    yield
    SourceRegistry.clear()
