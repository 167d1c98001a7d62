"""Bookkeeping of live connection handles."""
from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from sockunit.handle import ConnectionHandle

log = structlog.get_logger(__name__)


class ConnectionRegistry:
    """Ordered collection of live handles, keyed by session id for removal.

    Tracks existence only; disconnection is driven by the transport or the
    caller. Mutations never await, so no locking is needed.
    """

    def __init__(self) -> None:
        self._handles: list[ConnectionHandle] = []

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, handle: object) -> bool:
        handle_id = getattr(handle, "id", None)
        return any(h.id == handle_id for h in self._handles)

    def add(self, handle: ConnectionHandle) -> None:
        self._handles.append(handle)
        log.debug("handle registered", sid=handle.id, count=len(self._handles))

    def remove(self, handle_id: str) -> None:
        """Drop every handle whose session id is ``handle_id``."""
        before = len(self._handles)
        self._handles = [h for h in self._handles if h.id != handle_id]
        if len(self._handles) != before:
            log.debug("handle deregistered", sid=handle_id, count=len(self._handles))

    def get_all(self) -> list[ConnectionHandle]:
        """Snapshot of registered handles in registration order."""
        return list(self._handles)

    async def disconnect_all(self) -> None:
        """Disconnect every registered handle concurrently.

        The first failure propagates; handles that did disconnect stay removed.
        """
        handles = self.get_all()
        if not handles:
            return
        log.info("disconnecting all", count=len(handles))
        await asyncio.gather(*(h.disconnect() for h in handles))


_default = ConnectionRegistry()


def get_registry() -> ConnectionRegistry:
    """The process-wide registry used by factories not given their own."""
    return _default
