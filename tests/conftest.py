"""Shared fixtures — a real local collector on an ephemeral port."""

import pytest
import pytest_asyncio

from logpost.config import CollectorConfig, LogpostConfig
from logpost.server import CollectorServer


@pytest_asyncio.fixture
async def collector():
    """Start a CollectorServer on 127.0.0.1:0, yield it, then stop it."""
    server = CollectorServer(CollectorConfig(host="127.0.0.1", port=0))
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def make_config(collector):
    """Build a LogpostConfig aimed at the test collector."""

    def _make(**overrides) -> LogpostConfig:
        defaults = {
            "host": f"127.0.0.1:{collector.port}",
            "path": "/receiver/v1/http/test-token",
            "secure": False,
            "max_messages": 10,
            "timeout_millis": 30000,
        }
        defaults.update(overrides)
        return LogpostConfig(**defaults)

    return _make
