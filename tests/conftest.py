"""Shared test fixtures and configuration."""

from datetime import datetime, timezone
from typing import Callable

import httpx
import pytest

from calsync.config import load_config
from calsync.fetch import Retriever
from calsync.models import ExtractContext

WIB = "+07:00"


@pytest.fixture
def config(monkeypatch) -> dict:
    """Packaged configuration with environment overrides cleared."""
    for name in ("CALSYNC_DEBUG", "CALSYNC_TIMEOUT_MS", "CALSYNC_REGISTRY"):
        monkeypatch.delenv(name, raising=False)
    return load_config()


@pytest.fixture
def ctx() -> ExtractContext:
    return ExtractContext(url="https://persebaya.id/jadwal", club_name="Persebaya")


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 8, 1, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_retriever() -> Callable[[Callable[[httpx.Request], httpx.Response]], Retriever]:
    """Build a Retriever whose HTTP traffic goes to a handler function."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> Retriever:
        return Retriever(timeout_ms=2000, transport=httpx.MockTransport(handler))

    return factory
