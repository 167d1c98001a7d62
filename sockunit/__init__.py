"""Awaitable Socket.IO client helpers for test suites."""
from sockunit.ack import apply_ack, status_ack
from sockunit.config import FactoryConfig, Settings, load
from sockunit.errors import (
    AckRejected,
    ConnectError,
    ConnectTimeout,
    InvalidConfig,
    MalformedHandler,
    ReconnectError,
    SockUnitError,
    TransportError,
)
from sockunit.factory import ConnectionFactory
from sockunit.handle import ConnectionHandle, HandleState
from sockunit.registry import ConnectionRegistry, get_registry

__all__ = [
    "AckRejected",
    "ConnectError",
    "ConnectTimeout",
    "ConnectionFactory",
    "ConnectionHandle",
    "ConnectionRegistry",
    "FactoryConfig",
    "HandleState",
    "InvalidConfig",
    "MalformedHandler",
    "ReconnectError",
    "Settings",
    "SockUnitError",
    "TransportError",
    "apply_ack",
    "get_registry",
    "load",
    "status_ack",
]
