"""Public package surface for livepager.

A terminal pager whose content may still be growing while the user scrolls
and searches it. Build a ``PagerState`` (static) or a ``SharedPagerState``
(dynamic), then hand it to ``page``.
"""

from __future__ import annotations

import logging

from .coordinator import SharedPagerState, create_dynamic, default_dynamic
from .errors import (
    InvalidSearchPattern,
    LockInconsistentError,
    PagerAlreadyRunning,
    PagerError,
    ProducerTaskFailed,
    TerminalSetupFailed,
)
from .search import SearchDirection, SearchMatch
from .state import (
    ExitStrategy,
    LineNumbers,
    PagerState,
    RunMode,
    active_run_mode,
    create_static,
    default_static,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())


def page(*args, **kwargs):
    """Lazily import the runners to keep package imports lightweight."""
    from .runtime.runners import page as _page

    return _page(*args, **kwargs)


async def page_async(*args, **kwargs):
    from .runtime.runners import page_async as _page_async

    return await _page_async(*args, **kwargs)


def main(*args, **kwargs):
    """Lazily import CLI entrypoint."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = [
    "ExitStrategy",
    "InvalidSearchPattern",
    "LineNumbers",
    "LockInconsistentError",
    "PagerAlreadyRunning",
    "PagerError",
    "PagerState",
    "ProducerTaskFailed",
    "RunMode",
    "SearchDirection",
    "SearchMatch",
    "SharedPagerState",
    "TerminalSetupFailed",
    "active_run_mode",
    "create_dynamic",
    "create_static",
    "default_dynamic",
    "default_static",
    "main",
    "page",
    "page_async",
]
