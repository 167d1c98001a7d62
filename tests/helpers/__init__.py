"""Test helpers for sockunit."""
from __future__ import annotations

import asyncio
import functools
import itertools
import socket
from typing import Any, Callable

import socketio

FAKE_URL = "http://fake.test:8080"

_sids = itertools.count(1)


def free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class FakeClient:
    """Scripted stand-in for socketio.AsyncClient.

    ``mode`` picks how connect() plays out:
      ok      namespace connects on the next loop iteration
      refuse  server answers with connect_error
      raise   connect_error fires, then connect() raises (refused host)
      crash   connect() raises without any connect_error
      hang    nothing ever happens
      late    namespace connects after ``late_delay`` seconds
    """

    def __init__(self, mode: str = "ok", late_delay: float = 0.05) -> None:
        self.mode = mode
        self.late_delay = late_delay
        self.handlers: dict[str, dict[str, Callable[..., Any]]] = {}
        self.connected = False
        self.namespaces: dict[str, str] = {}
        self.connect_calls: list[dict[str, Any]] = []
        self.emitted: list[tuple[str, Any, str]] = []
        self.acks: dict[str, tuple] = {}
        self.disconnect_calls = 0

    def on(self, event: str, handler: Callable[..., Any] | None = None, namespace: str | None = None):
        self.handlers.setdefault(namespace or "/", {})[event] = handler
        return handler

    def get_sid(self, namespace: str | None = None) -> str | None:
        return self.namespaces.get(namespace or "/")

    def fire(self, event: str, *args: Any, namespace: str = "/") -> None:
        """Deliver a server event to whatever handler is installed."""
        handler = self.handlers.get(namespace, {}).get(event)
        if handler is not None:
            handler(*args)

    def _namespace_up(self, namespace: str) -> None:
        self.connected = True
        self.namespaces[namespace] = f"sid-{next(_sids)}"
        self.fire("connect", namespace=namespace)

    async def connect(self, url: str, namespaces=None, wait=True, **options: Any) -> None:
        self.connect_calls.append(
            {"url": url, "namespaces": namespaces, "wait": wait, **options}
        )
        namespace = namespaces[0]
        loop = asyncio.get_running_loop()
        if self.mode == "ok":
            loop.call_soon(self._namespace_up, namespace)
        elif self.mode == "late":
            loop.call_later(self.late_delay, self._namespace_up, namespace)
        elif self.mode == "refuse":
            self.connected = True
            loop.call_soon(
                functools.partial(
                    self.fire, "connect_error", "Unable to connect", namespace=namespace
                )
            )
        elif self.mode == "raise":
            self.fire("connect_error", "Connection refused", namespace=namespace)
            raise socketio.exceptions.ConnectionError("Connection refused by the server")
        elif self.mode == "crash":
            raise OSError("transport blew up")

    async def emit(self, event: str, data: Any = None, namespace: str | None = None, callback=None) -> None:
        namespace = namespace or "/"
        if namespace not in self.namespaces:
            raise socketio.exceptions.BadNamespaceError(
                namespace + " is not a connected namespace."
            )
        self.emitted.append((event, data, namespace))
        if callback is not None and event in self.acks:
            asyncio.get_running_loop().call_soon(callback, *self.acks[event])

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        if self.connected:
            for namespace in list(self.namespaces):
                self.fire("disconnect", "client disconnect", namespace=namespace)
            self.namespaces = {}
            self.connected = False

    def drop(self, namespace: str = "/") -> None:
        """Simulate the server closing the namespace."""
        self.fire("disconnect", "server disconnect", namespace=namespace)
        self.namespaces.pop(namespace, None)
        self.connected = bool(self.namespaces)


class ClientScript:
    """client_factory that hands out FakeClients with the queued modes."""

    def __init__(self, *modes: str, default: str = "ok") -> None:
        self._modes = list(modes)
        self._default = default
        self.clients: list[FakeClient] = []

    def __call__(self) -> FakeClient:
        mode = self._modes.pop(0) if self._modes else self._default
        client = FakeClient(mode)
        self.clients.append(client)
        return client
