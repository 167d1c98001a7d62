"""Exception taxonomy for sockunit.

Every failure surfaces as one of these from the awaited call; nothing is
retried internally.
"""
from __future__ import annotations

from typing import Any


class SockUnitError(Exception):
    """Base class for all sockunit errors."""


class InvalidConfig(SockUnitError, ValueError):
    """Factory configuration failed validation."""


class ConnectTimeout(SockUnitError, TimeoutError):
    """The connect handshake did not finish within the configured timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Could not establish a connection after {timeout}s")
        self.timeout = timeout


class ConnectError(SockUnitError):
    """The server refused the connection (Socket.IO ``connect_error``)."""

    def __init__(self, data: Any = None) -> None:
        super().__init__(f"Connection refused: {data!r}")
        self.data = data


class TransportError(SockUnitError):
    """The transport failed before the handshake completed."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Transport error: {cause}")
        self.cause = cause


class MalformedHandler(SockUnitError):
    """The acknowledgement handler cannot accept the acknowledgement arguments."""


class AckRejected(SockUnitError):
    """An acknowledgement policy rejected the server's reply."""

    def __init__(self, payload: Any) -> None:
        super().__init__(f"Acknowledgement rejected: {payload!r}")
        self.payload = payload


class ReconnectError(SockUnitError):
    """reconnect() was called from a state that does not allow it."""
