"""Runner selection: one "page this content" call for both run modes."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from ..config import PagerConfig
from ..coordinator import SharedPagerState
from ..state import PagerState, RunMode
from ..terminal import TerminalControl
from .adapters import AsyncioRuntime, CancelToken, RuntimeAdapter
from .loop import run_dynamic
from .static import page_all


class Runner(Protocol):
    def run(self) -> None: ...


@dataclass
class StaticRunner:
    state: PagerState
    terminal: TerminalControl | None = None
    config: PagerConfig | None = None

    def run(self) -> None:
        page_all(self.state, terminal=self.terminal, config=self.config)


@dataclass
class DynamicRunner:
    shared: SharedPagerState
    producer: Callable[[CancelToken], object] | None = None
    runtime: RuntimeAdapter | None = None
    terminal: TerminalControl | None = None
    config: PagerConfig | None = None

    def run(self) -> None:
        run_dynamic(
            self.shared,
            self.producer,
            runtime=self.runtime,
            terminal=self.terminal,
            config=self.config,
        )


def runner_for(
    target: PagerState | SharedPagerState,
    producer: Callable[[CancelToken], object] | None = None,
    *,
    runtime: RuntimeAdapter | None = None,
    terminal: TerminalControl | None = None,
    config: PagerConfig | None = None,
) -> Runner:
    """Pick the runner matching the run mode ``target`` was created with."""
    if isinstance(target, SharedPagerState):
        return DynamicRunner(target, producer, runtime, terminal, config)
    if target.run_mode is RunMode.DYNAMIC:
        raise TypeError("dynamic pager states must be wrapped in a SharedPagerState")
    if producer is not None or runtime is not None:
        raise TypeError("static paging takes no producer")
    return StaticRunner(target, terminal, config)


def page(
    target: PagerState | SharedPagerState,
    producer: Callable[[CancelToken], object] | None = None,
    *,
    runtime: RuntimeAdapter | None = None,
    terminal: TerminalControl | None = None,
    config: PagerConfig | None = None,
) -> None:
    """Page ``target`` until the user quits."""
    runner_for(target, producer, runtime=runtime, terminal=terminal, config=config).run()


async def page_async(
    shared: SharedPagerState,
    producer: Callable[[CancelToken], Awaitable[object]] | None = None,
    *,
    terminal: TerminalControl | None = None,
    config: PagerConfig | None = None,
) -> None:
    """Page ``shared`` from inside a running event loop.

    ``producer`` is a coroutine function scheduled on the caller's loop; the
    blocking pager loop itself runs in a worker thread.
    """
    runtime = AsyncioRuntime.for_running_loop()
    await asyncio.to_thread(
        run_dynamic,
        shared,
        producer,
        runtime=runtime,
        terminal=terminal,
        config=config,
    )
