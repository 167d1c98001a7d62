"""Shared test fixtures for sockunit.

Fixture tiers:
  script         — ClientScript handing out FakeClients (unit tests, no network)
  registry       — fresh ConnectionRegistry per test
  socket_server  — real Socket.IO fixture server on a free localhost port
  sockunit_*     — the package's own pytest plugin fixtures, pointed at socket_server
"""
from __future__ import annotations

from pathlib import Path
from typing import AsyncGenerator

import pytest
from aiohttp import web

from sockunit.ack import status_ack
from sockunit.config import Settings
from sockunit.factory import ConnectionFactory
from sockunit.registry import ConnectionRegistry
from tests.helpers import FAKE_URL, ClientScript, free_port
from tests.helpers.fixture_server import create_app


# ---------------------------------------------------------------------------
# Unit-level fixtures (FakeClient, no sockets)
# ---------------------------------------------------------------------------

@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def script() -> ClientScript:
    return ClientScript()


@pytest.fixture
def factory(registry: ConnectionRegistry, script: ClientScript) -> ConnectionFactory:
    """Factory over FakeClients with a short timeout and the status policy."""
    return ConnectionFactory(
        FAKE_URL,
        status_ack,
        timeout=0.2,
        registry=registry,
        client_factory=script,
    )


# ---------------------------------------------------------------------------
# Fixture server (real python-socketio over aiohttp)
# ---------------------------------------------------------------------------

@pytest.fixture
async def socket_server(tmp_path: Path) -> AsyncGenerator[str, None]:
    """Start the fixture server; yields its base URL."""
    runner = web.AppRunner(create_app(tmp_path))
    await runner.setup()
    port = free_port()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    yield f"http://127.0.0.1:{port}"
    await runner.cleanup()


@pytest.fixture
def sockunit_settings(socket_server: str) -> Settings:
    """Point the plugin's factory at the per-test fixture server."""
    return Settings(url=socket_server)


@pytest.fixture
def unreachable_url() -> str:
    """A localhost URL with nothing listening."""
    return f"http://127.0.0.1:{free_port()}"
