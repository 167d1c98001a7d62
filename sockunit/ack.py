"""Acknowledgement policy.

One contract for every handler: it may be sync or async. A raised exception
or a rejected awaitable rejects the emit; any other returned or awaited value
resolves it.
"""
from __future__ import annotations

import inspect
from collections.abc import Mapping, Sequence
from typing import Any, Callable

from sockunit.errors import AckRejected, MalformedHandler


async def apply_ack(handler: Callable[..., Any], args: Sequence[Any]) -> Any:
    """Run ``handler`` over the acknowledgement arguments and settle on its outcome."""
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        signature = None  # some builtins expose no signature
    if signature is not None:
        try:
            signature.bind(*args)
        except TypeError as e:
            raise MalformedHandler(
                f"{handler!r} cannot accept acknowledgement arguments {list(args)!r}: {e}"
            ) from e

    result = handler(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def status_ack(result: Any = None, *_rest: Any) -> Any:
    """Resolve with ``result`` when ``result["status"]`` is truthy, else reject.

    Matches servers that acknowledge with ``{"status": bool, ...}``.
    """
    if isinstance(result, Mapping) and result.get("status"):
        return result
    raise AckRejected(result)
