"""Invoke helpers — call sync or async callables uniformly.

Handlers and dispatcher hooks can be ``def`` or ``async def``. Any code
that awaits a user-provided callable goes through this helper so the
sync/async check lives in exactly one place.

Usage::

    from waypoint._internal.invoke import invoke

    result = await invoke(handler, *args)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def invoke_sync(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* on the current thread.

    Raises ``TypeError`` if it returns an awaitable: async callables need
    ``invoke()`` from inside an event loop.
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        name = getattr(func, "__qualname__", repr(func))
        msg = f"{name} returned an awaitable; use the async dispatch path."
        raise TypeError(msg)
    return result
