"""Safe invocation of caller-supplied lifecycle hooks."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from stagecraft.logging import LogSink, emit


async def invoke_hook(
    hook: Callable[[Any], Any] | None,
    info: Any,
    logger: LogSink | None = None,
) -> Any:
    """Call ``hook(info)``, awaiting it if needed.

    A raising hook is logged and treated as having returned None, so a
    broken hook can never abort a run.
    """
    if hook is None:
        return None
    try:
        result = hook(info)
        if inspect.isawaitable(result):
            result = await result
        return result
    except Exception as e:
        name = getattr(hook, "__name__", repr(hook))
        emit(logger, "agent", f"Hook {name} failed: {e}", 0)
        return None
