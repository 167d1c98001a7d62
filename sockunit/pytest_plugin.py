"""pytest fixtures: a per-test registry torn down with disconnect_all().

Enabled automatically through the ``pytest11`` entry point.

    async def test_hi(sockunit_factory):
        client = await sockunit_factory.connect()
        assert (await client.emit("sayHi"))["message"] == "hi"
"""
from __future__ import annotations

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from sockunit import logs
from sockunit.ack import status_ack
from sockunit.config import Settings, load
from sockunit.factory import ConnectionFactory
from sockunit.registry import ConnectionRegistry


def pytest_configure(config: pytest.Config) -> None:
    level = os.environ.get("SOCKUNIT_LOG_LEVEL")
    if level:
        logs.configure(level)


@pytest.fixture
def sockunit_settings() -> Settings:
    """Settings from ./sockunit.toml and SOCKET_URL / SOCKET_PORT."""
    return load()


@pytest_asyncio.fixture
async def sockunit_registry() -> AsyncGenerator[ConnectionRegistry, None]:
    """Fresh registry; every handle still registered is disconnected on teardown."""
    registry = ConnectionRegistry()
    yield registry
    await registry.disconnect_all()


@pytest.fixture
def sockunit_factory(
    sockunit_settings: Settings, sockunit_registry: ConnectionRegistry
) -> ConnectionFactory:
    """Factory bound to the per-test registry, rejecting ``status: false`` acks."""
    return ConnectionFactory.from_config(
        sockunit_settings.factory_config(status_ack),
        registry=sockunit_registry,
    )
