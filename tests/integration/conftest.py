"""Fixtures running the real clients against scripts/fake_backends.py."""

import importlib.util
import sys
from pathlib import Path

import pytest

from airdrop_checker import rate_limit
from airdrop_checker.config import AppConfig, EmailJSConfig, SupabaseConfig

FAKE_BACKENDS_PATH = Path(__file__).parents[2] / "scripts" / "fake_backends.py"

PROXY_VARS = ["HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"]


def load_fake_backends():
    spec = importlib.util.spec_from_file_location("fake_backends", FAKE_BACKENDS_PATH)
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


@pytest.fixture(scope="session")
def fake_backends():
    return load_fake_backends()


@pytest.fixture
def server(fake_backends, monkeypatch):
    """A seeded fake server on a free port, stopped after the test."""
    for name in PROXY_VARS:
        monkeypatch.delenv(name, raising=False)

    server = fake_backends.start_in_thread()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def live_config(server):
    return AppConfig(
        emailjs=EmailJSConfig(
            service_id="service_fake",
            template_id="template_fake",
            public_key="fake-public-key",
            admin_email="admin@example.com",
            api_base=server.base_url,
            timeout_seconds=5.0,
        ),
        supabase=SupabaseConfig(
            url=server.base_url,
            anon_key=server.state.anon_key,
            timeout_seconds=5.0,
        ),
    )


@pytest.fixture(autouse=True)
def fresh_rate_limiter(monkeypatch):
    """Each test gets its own process-wide limiter."""
    monkeypatch.setattr(rate_limit, "_default_limiter", None)
