"""Awaitable wrapper around one connected Socket.IO client."""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

import structlog

from sockunit.ack import apply_ack
from sockunit.errors import ReconnectError
from sockunit.events import EventRelay
from sockunit.handshake import ConnectTarget, handshake

if TYPE_CHECKING:
    from sockunit.registry import ConnectionRegistry

log = structlog.get_logger(__name__)


class HandleState(Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"
    FAILED = "failed"


def _pack(args: tuple) -> Any:
    # python-socketio expands a tuple into separate arguments and sends
    # anything else as a single argument.
    if len(args) == 1 and not isinstance(args[0], tuple):
        return args[0]
    return args


class ConnectionHandle:
    """One live connection plus its awaitable operations.

    Registers itself in ``registry`` on creation and removes itself (by
    session id) whenever the client reports ``disconnect``.
    """

    def __init__(
        self,
        client: Any,
        relay: EventRelay,
        sid: str,
        ack_handler: Callable[..., Any],
        registry: ConnectionRegistry,
        target: ConnectTarget,
    ) -> None:
        self.client = client
        self.relay = relay
        self._id = sid
        self._ack_handler = ack_handler
        self._registry = registry
        self._target = target
        self._state = HandleState.CONNECTED
        relay.on("disconnect", self._on_disconnect)
        registry.add(self)

    def __repr__(self) -> str:
        return (
            f"<ConnectionHandle id={self._id!r} namespace={self.namespace!r} "
            f"state={self._state.value}>"
        )

    @property
    def id(self) -> str:
        return self._id

    @property
    def namespace(self) -> str:
        return self._target.namespace

    @property
    def state(self) -> HandleState:
        return self._state

    @property
    def connected(self) -> bool:
        return (
            self._state is HandleState.CONNECTED
            and bool(self.client.connected)
            and self.namespace in self.client.namespaces
        )

    def on(self, event: str) -> asyncio.Future:
        """Subscribe now to the next ``event``; the future yields its arguments.

        The listener is armed before this returns, so an event triggered
        right after the call is not missed. There is no timeout: wrap in
        ``asyncio.wait_for`` if the event may never come.
        """
        fut: asyncio.Future = asyncio.get_running_loop().create_future()

        def deliver(*args: Any) -> None:
            if not fut.done():
                fut.set_result(list(args))

        self.relay.once(event, deliver)
        fut.add_done_callback(lambda _: self.relay.off(event, deliver))
        return fut

    async def emit(self, event: str, *args: Any) -> Any:
        """Emit ``event`` and settle on the acknowledgement handler's outcome."""
        ack: asyncio.Future = asyncio.get_running_loop().create_future()

        def on_ack(*reply: Any) -> None:
            if not ack.done():
                ack.set_result(list(reply))

        log.debug("emit", event_name=event, sid=self._id, nargs=len(args))
        await self.client.emit(
            event, data=_pack(args), namespace=self.namespace, callback=on_ack
        )
        reply = await ack
        return await apply_ack(self._ack_handler, reply)

    async def disconnect(self) -> None:
        """Disconnect and return once the client reports ``disconnect``."""
        if not self.connected:
            return
        done: asyncio.Future = asyncio.get_running_loop().create_future()

        def on_disconnect(*_: Any) -> None:
            if not done.done():
                done.set_result(None)

        self.relay.once("disconnect", on_disconnect)
        await self.client.disconnect()
        await done

    async def reconnect(self) -> ConnectionHandle:
        """Re-establish a disconnected handle under a new session id.

        DISCONNECTED/FAILED -> RECONNECTING -> CONNECTED, or FAILED with the
        handshake error re-raised.
        """
        if self._state not in (HandleState.DISCONNECTED, HandleState.FAILED):
            raise ReconnectError(f"cannot reconnect from state {self._state.value}")
        self._state = HandleState.RECONNECTING
        old_id = self._id
        try:
            sid = await handshake(self.client, self.relay, self._target)
        except Exception:
            self._state = HandleState.FAILED
            raise
        self._id = sid
        self._state = HandleState.CONNECTED
        self._registry.add(self)
        log.info("reconnected", old_sid=old_id, sid=sid, namespace=self.namespace)
        return self

    def _on_disconnect(self, *reason: Any) -> None:
        if self._state is not HandleState.CONNECTED:
            return
        self._state = HandleState.DISCONNECTED
        self._registry.remove(self._id)
        log.info(
            "disconnected",
            sid=self._id,
            namespace=self.namespace,
            reason=str(reason[0]) if reason else None,
        )
