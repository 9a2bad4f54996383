"""Pytest configuration and shared fixtures.

Organization:
    - Application Fixtures: FastAPI app and HTTP client
    - Chat Fixtures: deterministic palette, clock and relay
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterator
import os

from httpx import ASGITransport, AsyncClient
import pytest

# Ensure tests run without external infrastructure
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("WS_HEARTBEAT_INTERVAL", "0")


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Iterator[None]:
    """Drop cached settings so env patches in one test never leak into the next."""
    from chat_relay.core.settings import clear_all_caches

    clear_all_caches()
    yield
    clear_all_caches()


@pytest.fixture
async def app():
    """Create a fresh FastAPI application for testing.

    The lifespan is not run here; use ``TestClient`` as a context manager
    when the connection manager and chat relay are needed.
    """
    from chat_relay.app.main import create_app

    return create_app()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client bound to the app without a network socket."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ============================================================================
# Chat Fixtures
# ============================================================================


class CyclingRandom:
    """Deterministic ``choice``: walks the sequence in order, wrapping around."""

    def __init__(self) -> None:
        self.calls = 0

    def choice(self, seq):
        value = seq[self.calls % len(seq)]
        self.calls += 1
        return value


class FixedClock:
    """Millisecond clock that returns ``now`` until advanced."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def rng() -> CyclingRandom:
    return CyclingRandom()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def relay(rng: CyclingRandom, clock: FixedClock):
    """ChatRelay with predictable colors and timestamps."""
    from chat_relay.core.settings import ChatSettings
    from chat_relay.features.chat import ChatRelay

    return ChatRelay.create(ChatSettings(), rng=rng, clock=clock)
