"""Configure the test environment for the telemetry engine."""

from __future__ import annotations
import os
from collections.abc import Iterator
import pytest
from mcp_telemetry import config
from tests._telemetry_test_helpers import RecordingTransport


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop ANALYTICS_* variables and cached settings around each test."""
    for key in list(os.environ):
        if key.startswith("ANALYTICS_"):
            monkeypatch.delenv(key, raising=False)
    config._load_settings.cache_clear()
    yield
    config._load_settings.cache_clear()


@pytest.fixture
def transport() -> RecordingTransport:
    """Return a transport that records every batch and reports success."""
    return RecordingTransport()
