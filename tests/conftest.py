"""Shared pytest fixtures for airdrop-checker tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from airdrop_checker.config import AppConfig, EmailJSConfig, SupabaseConfig
from airdrop_checker.models import SuggestionInput


class FakeClock:
    """Manually advanced clock returning seconds, like time.time."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def emailjs_config():
    """EmailJS config with real-looking (non-placeholder) values."""
    return EmailJSConfig(
        service_id="service_test",
        template_id="template_test",
        public_key="test_public_key",
        admin_email="admin@example.com",
        api_base="https://emailjs.test",
    )


@pytest.fixture
def supabase_config():
    """Supabase config pointing at a non-placeholder project."""
    return SupabaseConfig(url="https://test-project.supabase.co", anon_key="test-anon-key")


@pytest.fixture
def app_config(emailjs_config, supabase_config):
    return AppConfig(emailjs=emailjs_config, supabase=supabase_config)


@pytest.fixture
def suggestion():
    """A suggestion that passes every validation rule."""
    return SuggestionInput(
        project_name="Zeta",
        description="A new layer-2 rollup project",
        official_link="https://zeta.example",
    )


@pytest.fixture
def mock_response():
    """Create a mock httpx response."""

    def _make_response(status_code=200, json_data=None, text="", headers=None):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = json_data
        response.text = text
        response.headers = headers or {}
        return response

    return _make_response


@pytest.fixture
def mock_http():
    """An AsyncMock standing in for the httpx.AsyncClient context manager."""
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = None
    return mock_client
