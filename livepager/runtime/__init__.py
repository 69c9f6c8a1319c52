"""Public runtime orchestration entry points.

This package groups the runners (`page`, `page_all`, `run_dynamic`) and the
runtime adapters producers are scheduled on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .adapters import AsyncioRuntime, CancelToken, ThreadRuntime

if TYPE_CHECKING:
    from .loop import DynamicLoop, LoopPhase
    from .runners import DynamicRunner, StaticRunner


def page(*args, **kwargs):
    """Lazily import the runner dispatch to avoid package-import cycles."""
    from .runners import page as _page

    return _page(*args, **kwargs)


def page_all(*args, **kwargs):
    from .static import page_all as _page_all

    return _page_all(*args, **kwargs)


def run_dynamic(*args, **kwargs):
    from .loop import run_dynamic as _run_dynamic

    return _run_dynamic(*args, **kwargs)


async def page_async(*args, **kwargs):
    from .runners import page_async as _page_async

    return await _page_async(*args, **kwargs)


def __getattr__(name: str):
    if name in {"DynamicLoop", "LoopPhase"}:
        from . import loop as _loop

        return getattr(_loop, name)
    if name in {"DynamicRunner", "StaticRunner"}:
        from . import runners as _runners

        return getattr(_runners, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "AsyncioRuntime",
    "CancelToken",
    "DynamicLoop",
    "DynamicRunner",
    "LoopPhase",
    "StaticRunner",
    "ThreadRuntime",
    "page",
    "page_all",
    "page_async",
    "run_dynamic",
]
