"""Pytest hooks and fixtures."""

import os

import pytest

from procroute.api.server import create_app
from procroute.config import clear_config_cache
from procroute.users import InMemoryUserStore, build_user_router


def pytest_configure(config):
    """Register custom markers (also in pyproject.toml)."""
    config.addinivalue_line(
        "markers",
        "e2e: end-to-end tests through the HTTP client and the ASGI app",
    )


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    """Keep tests away from ~/.procroute and PROCROUTE_* variables."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in list(os.environ):
        if key.startswith("PROCROUTE_"):
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def user_router(user_store):
    return build_user_router(user_store)


@pytest.fixture
def user_app(user_router):
    return create_app(user_router)
