"""Bounded-time connect handshake.

Four outcomes race against one timer: ``connect``, ``connect_error``, the
connect attempt itself raising, and the timer firing. The first to settle
the outcome future wins; the rest see ``outcome.done()`` and do nothing.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import structlog

from sockunit.errors import ConnectError, ConnectTimeout, TransportError
from sockunit.events import EventRelay

log = structlog.get_logger(__name__)

# Strong refs for fire-and-forget disconnects of late connections.
_background: set[asyncio.Task] = set()


@dataclass(frozen=True)
class ConnectTarget:
    url: str
    namespace: str
    timeout: float
    options: dict[str, Any] = field(default_factory=dict)


def _error_data(args: tuple) -> Any:
    if not args:
        return None
    if len(args) == 1:
        return args[0]
    return list(args)


def _discard_late(client: Any, target: ConnectTarget) -> None:
    log.warning(
        "late connect after timeout discarded",
        url=target.url,
        namespace=target.namespace,
        timeout=target.timeout,
    )
    task = asyncio.ensure_future(client.disconnect())
    _background.add(task)
    task.add_done_callback(_background.discard)


async def handshake(client: Any, relay: EventRelay, target: ConnectTarget) -> str:
    """Connect ``client`` to ``target`` and return the namespace session id.

    The handshake owns the relay's ``connect`` and ``connect_error`` slots:
    leftovers from an earlier timed-out attempt on the same client are
    dropped first.
    """
    loop = asyncio.get_running_loop()
    outcome: asyncio.Future = loop.create_future()

    def on_connect(*_: Any) -> None:
        if not outcome.done():
            outcome.set_result(client.get_sid(target.namespace))

    def on_connect_error(*data: Any) -> None:
        if not outcome.done():
            outcome.set_exception(ConnectError(_error_data(data)))

    def on_attempt_done(task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None and not outcome.done():
            err = TransportError(exc)
            err.__cause__ = exc
            outcome.set_exception(err)

    relay.off("connect")
    relay.off("connect_error")
    relay.once("connect", on_connect)
    relay.once("connect_error", on_connect_error)

    log.debug("connecting", url=target.url, namespace=target.namespace)
    attempt = asyncio.ensure_future(
        client.connect(
            target.url,
            namespaces=[target.namespace],
            wait=False,
            **target.options,
        )
    )
    attempt.add_done_callback(on_attempt_done)

    try:
        sid = await asyncio.wait_for(outcome, timeout=target.timeout)
    except asyncio.TimeoutError:
        relay.off("connect", on_connect)
        relay.off("connect_error", on_connect_error)
        relay.once("connect", lambda *_: _discard_late(client, target))
        log.warning(
            "connect timed out",
            url=target.url,
            namespace=target.namespace,
            timeout=target.timeout,
        )
        raise ConnectTimeout(target.timeout) from None
    except (ConnectError, TransportError) as e:
        relay.off("connect", on_connect)
        relay.off("connect_error", on_connect_error)
        # Close whatever half of the connection made it up.
        await client.disconnect()
        log.warning(
            "connect failed",
            url=target.url,
            namespace=target.namespace,
            error=str(e),
        )
        raise

    relay.off("connect_error", on_connect_error)
    log.info("connected", url=target.url, namespace=target.namespace, sid=sid)
    return sid
