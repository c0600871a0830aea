"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from stagecraft.config import clear_secret_cache, reset_config
from tests.utils import FakeBrowserContext, FakePage, LineCollector

# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(scope="session")
def anyio_backend():
    """Set anyio backend to asyncio."""
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Keep tests independent of the host environment."""
    for var in ("STAGECRAFT_API_URL", "STAGECRAFT_MODEL", "STAGECRAFT_LOG"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    clear_secret_cache()
    yield
    reset_config()
    clear_secret_cache()


@pytest.fixture
def page() -> FakePage:
    return FakePage()


@pytest.fixture
def context(page: FakePage) -> FakeBrowserContext:
    return FakeBrowserContext(page)


@pytest.fixture
def lines() -> LineCollector:
    return LineCollector()
