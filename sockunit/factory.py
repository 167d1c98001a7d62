"""Connection factory: validated config in, connected handles out."""
from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, Callable
from urllib.parse import urlsplit, urlunsplit

import socketio
import structlog

from sockunit.config import DEFAULT_TIMEOUT, FactoryConfig
from sockunit.errors import InvalidConfig
from sockunit.events import EventRelay
from sockunit.handle import ConnectionHandle
from sockunit.handshake import ConnectTarget, handshake
from sockunit.registry import ConnectionRegistry, get_registry

log = structlog.get_logger(__name__)

# AsyncClient.connect arguments the handshake drives itself.
_MANAGED_OPTIONS = ("namespaces", "wait", "wait_timeout")


def split_namespace(url: str) -> tuple[str, str]:
    """Split ``http://host:port/ns`` into ``("http://host:port", "/ns")``.

    A URL without a path connects to the default namespace ``/``.
    """
    parts = urlsplit(url)
    path = parts.path.rstrip("/")
    if not path:
        return url, "/"
    base = urlunsplit((parts.scheme, parts.netloc, "", parts.query, parts.fragment))
    return base, path


def _default_client() -> socketio.AsyncClient:
    # Reconnection is never automatic; see ConnectionHandle.reconnect().
    return socketio.AsyncClient(reconnection=False, handle_sigint=False)


class ConnectionFactory:
    """Produce connected, registered ConnectionHandles.

    ``timeout`` is in seconds. ``params`` are AsyncClient.connect keyword
    arguments overlaid on ``{"transports": ["websocket", "polling"]}``.
    """

    def __init__(
        self,
        url: str,
        ack_handler: Callable[..., Any],
        timeout: float = DEFAULT_TIMEOUT,
        params: Mapping[str, Any] | None = None,
        *,
        registry: ConnectionRegistry | None = None,
        client_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.config = FactoryConfig(
            url=url,
            ack_handler=ack_handler,
            timeout=timeout,
            params={} if params is None else params,
        )
        self.registry = registry if registry is not None else get_registry()
        self._client_factory = client_factory or _default_client

    @classmethod
    def from_config(
        cls,
        config: FactoryConfig,
        *,
        registry: ConnectionRegistry | None = None,
        client_factory: Callable[[], Any] | None = None,
    ) -> ConnectionFactory:
        return cls(
            config.url,
            config.ack_handler,
            config.timeout,
            config.params,
            registry=registry,
            client_factory=client_factory,
        )

    def _target(self, url: str) -> ConnectTarget:
        base, namespace = split_namespace(url)
        options = self.config.merged_params()
        for key in _MANAGED_OPTIONS:
            if key in options:
                log.warning("ignoring managed connect option", option=key)
                del options[key]
        return ConnectTarget(
            url=base,
            namespace=namespace,
            timeout=self.config.timeout,
            options=options,
        )

    async def connect(
        self,
        url: str | None = None,
        ack_handler: Callable[..., Any] | None = None,
    ) -> ConnectionHandle:
        """Connect one client, optionally overriding the URL or ack handler.

        Raises ConnectTimeout, ConnectError or TransportError; a failed or
        timed-out attempt never registers a handle.
        """
        target = self._target(url or self.config.url)
        handler = ack_handler if ack_handler is not None else self.config.ack_handler
        if not callable(handler):
            raise InvalidConfig("Invalid ack_handler: must be callable")
        client = self._client_factory()
        relay = EventRelay(client, target.namespace)
        sid = await handshake(client, relay, target)
        return ConnectionHandle(client, relay, sid, handler, self.registry, target)

    async def connect_many(self, n: int = 2) -> list[ConnectionHandle]:
        """Connect ``n`` clients concurrently; the first failure wins.

        Connections that already succeeded stay live and registered.
        """
        if n < 0:
            raise ValueError(f"n must be >= 0, got {n}")
        return list(await asyncio.gather(*(self.connect() for _ in range(n))))
