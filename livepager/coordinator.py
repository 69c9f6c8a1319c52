"""Exclusive access to a ``PagerState`` shared by a producer and the pager loop.

All reads and writes in dynamic mode go through ``SharedPagerState``. A
participant that raises while holding the lock poisons the coordinator: the
lock is released, the exception propagates, and later acquisitions fail with
``LockInconsistentError`` instead of running against half-mutated state.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Callable, Iterator
from typing import TypeVar

from .errors import LockInconsistentError
from .state import LineNumbers, PagerState, RunMode

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SharedPagerState:
    """Lock-guarded handle to one ``PagerState``."""

    def __init__(self, state: PagerState) -> None:
        self._state = state
        self._lock = threading.Lock()
        self._poisoned = False
        self._updated = threading.Event()

    @property
    def run_mode(self) -> RunMode:
        return self._state.run_mode

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    @contextlib.contextmanager
    def locked(self) -> Iterator[PagerState]:
        """Hold the lock for the duration of the block and yield the state."""
        with self._lock:
            if self._poisoned:
                raise LockInconsistentError("shared pager state was abandoned mid-operation")
            version = self._state.content_version
            try:
                yield self._state
            except BaseException:
                self._poisoned = True
                logger.error("shared pager state poisoned by a failing participant", exc_info=True)
                raise
            finally:
                if self._state.content_version != version:
                    self._updated.set()

    def with_state(self, fn: Callable[[PagerState], T]) -> T:
        """Run ``fn`` with exclusive access and return its result."""
        with self.locked() as state:
            return fn(state)

    def clear_poison(self) -> None:
        """Accept the current state as consistent again."""
        with self._lock:
            self._poisoned = False

    def wait_for_update(self, timeout: float | None = None) -> bool:
        """Block until content changes or ``timeout`` passes; consume the signal.

        The pager loop never blocks here, it polls ``consume_update`` between
        input slices. This is for callers that redraw from their own thread.
        """
        if self._updated.wait(timeout):
            self._updated.clear()
            return True
        return False

    def consume_update(self) -> bool:
        """Return whether content changed since the last check, without blocking."""
        if self._updated.is_set():
            self._updated.clear()
            return True
        return False

    def notify(self) -> None:
        """Wake the loop for a redraw that is not a content change (prompt, message)."""
        self._updated.set()

    # Producer conveniences, each a single acquisition.

    def append_content(self, text: str) -> None:
        self.with_state(lambda state: state.append_content(text))

    def set_content(self, text: str) -> None:
        self.with_state(lambda state: state.set_content(text))

    def set_line_numbers(self, mode: LineNumbers) -> None:
        self.with_state(lambda state: state.set_line_numbers(mode))
        self.notify()

    def set_prompt(self, text: str) -> None:
        self.with_state(lambda state: state.set_prompt(text))
        self.notify()

    def send_message(self, text: str) -> None:
        self.with_state(lambda state: state.send_message(text))
        self.notify()

    def line_count(self) -> int:
        return self.with_state(lambda state: state.line_count)


def create_dynamic(
    content: str = "",
    line_numbers: LineNumbers = LineNumbers.DISABLED,
) -> SharedPagerState:
    return SharedPagerState(PagerState(content, line_numbers, run_mode=RunMode.DYNAMIC))


def default_dynamic() -> SharedPagerState:
    return create_dynamic()


__all__ = ["SharedPagerState", "create_dynamic", "default_dynamic"]
