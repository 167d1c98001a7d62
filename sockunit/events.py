"""Listener fan-out on top of a Socket.IO client.

``socketio.AsyncClient`` keeps exactly one handler per (namespace, event).
EventRelay claims that slot once per event name and dispatches to any number
of persistent and one-shot listeners, giving callers on/once/off semantics.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import structlog

log = structlog.get_logger(__name__)


@dataclass(eq=False)
class _Listener:
    callback: Callable[..., Any]
    once: bool


class EventRelay:
    """Dispatch one namespace's events of a client to registered listeners."""

    def __init__(self, client: Any, namespace: str = "/") -> None:
        self.client = client
        self.namespace = namespace
        self._listeners: dict[str, list[_Listener]] = {}

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        self._install(event).append(_Listener(callback, once=False))

    def once(self, event: str, callback: Callable[..., Any]) -> None:
        self._install(event).append(_Listener(callback, once=True))

    def off(self, event: str, callback: Callable[..., Any] | None = None) -> None:
        """Remove ``callback`` from ``event``, or every listener when omitted.

        Removing a listener that is not registered is a no-op.
        """
        listeners = self._listeners.get(event)
        if not listeners:
            return
        if callback is None:
            listeners.clear()
            return
        listeners[:] = [l for l in listeners if l.callback is not callback]

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def _install(self, event: str) -> list[_Listener]:
        if event not in self._listeners:
            self._listeners[event] = []

            def handler(*args: Any) -> None:
                self._dispatch(event, args)

            self.client.on(event, handler, namespace=self.namespace)
        return self._listeners[event]

    def _dispatch(self, event: str, args: tuple) -> None:
        listeners = self._listeners.get(event, [])
        log.debug(
            "event received",
            event_name=event,
            namespace=self.namespace,
            listeners=len(listeners),
        )
        # Snapshot: listeners may subscribe or unsubscribe while we iterate.
        for listener in list(listeners):
            if listener not in listeners:
                continue
            if listener.once:
                listeners.remove(listener)
            try:
                listener.callback(*args)
            except Exception as e:
                log.error(
                    "event listener failed",
                    event_name=event,
                    namespace=self.namespace,
                    error=str(e),
                )
