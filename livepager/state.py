"""Pager state: content, scroll position, search and display settings.

``PagerState`` is the single source of truth for one pager. Every mutator
keeps ``0 <= scroll_offset <= max(0, line_count - viewport_height)`` and marks
the search match list stale when content changes, so a later read never sees
matches computed for older content.
"""

from __future__ import annotations

import contextlib
import enum
import threading
from collections.abc import Callable, Iterator
from typing import TypeVar

from .errors import PagerAlreadyRunning
from .search import (
    SearchDirection,
    SearchMatch,
    SearchState,
    compute_matches,
    first_match_from,
    refresh_matches,
    scroll_offset_for_match,
    select_next,
    select_previous,
)

T = TypeVar("T")


class LineNumbers(enum.Enum):
    """Line-number display mode.

    ``ALWAYS_OFF`` and ``ALWAYS_ON`` behave like ``DISABLED`` and ``ENABLED``
    but cannot be flipped with the toggle key.
    """

    ALWAYS_OFF = "always_off"
    DISABLED = "disabled"
    ENABLED = "enabled"
    ALWAYS_ON = "always_on"

    @property
    def is_on(self) -> bool:
        return self in {LineNumbers.ENABLED, LineNumbers.ALWAYS_ON}

    def toggled(self) -> LineNumbers:
        if self is LineNumbers.DISABLED:
            return LineNumbers.ENABLED
        if self is LineNumbers.ENABLED:
            return LineNumbers.DISABLED
        return self


class RunMode(enum.Enum):
    UNINITIALIZED = "uninitialized"
    STATIC = "static"
    DYNAMIC = "dynamic"

    def is_uninitialized(self) -> bool:
        return self is RunMode.UNINITIALIZED


class ExitStrategy(enum.Enum):
    """What happens after the user quits: return to caller or end the process."""

    PAGER_QUIT = "pager_quit"
    PROCESS_QUIT = "process_quit"


def _close_line(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


class PagerState:
    """Mutable pager model shared by the producer and the input state machine."""

    def __init__(
        self,
        content: str = "",
        line_numbers: LineNumbers = LineNumbers.DISABLED,
        *,
        run_mode: RunMode = RunMode.STATIC,
    ) -> None:
        if run_mode is RunMode.UNINITIALIZED:
            raise ValueError("a pager state needs a concrete run mode")
        self._run_mode = run_mode
        self._lines: list[str] = []
        self._last_line_open = False
        self._scroll_offset = 0
        self._viewport_height = 1
        self._search: SearchState | None = None
        self.content_version = 0
        self.line_numbers = line_numbers
        self.prompt = ""
        self.message: str | None = None
        self.exit_strategy = ExitStrategy.PAGER_QUIT
        self.exit_callbacks: list[Callable[[], None]] = []
        self.run_no_overflow = False
        self.syntax: str | None = None
        if content:
            self.append_content(content)

    # -- read access -------------------------------------------------------

    @property
    def run_mode(self) -> RunMode:
        return self._run_mode

    @property
    def lines(self) -> list[str]:
        """Content lines. Callers must treat the list as read-only."""
        return self._lines

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line(self, index: int) -> str:
        return self._lines[index]

    @property
    def content(self) -> str:
        if not self._lines:
            return ""
        text = "\n".join(self._lines)
        return text if self._last_line_open else text + "\n"

    @property
    def scroll_offset(self) -> int:
        return self._scroll_offset

    @property
    def viewport_height(self) -> int:
        return self._viewport_height

    @property
    def max_scroll_offset(self) -> int:
        return max(0, len(self._lines) - self._viewport_height)

    @property
    def search(self) -> SearchState | None:
        """Active search, with matches brought up to date before returning."""
        if self._search is not None:
            refresh_matches(self._search, self._lines, self.content_version)
        return self._search

    def with_state(self, fn: Callable[[PagerState], T]) -> T:
        """Run ``fn`` against this state; mirrors the shared-state accessor."""
        return fn(self)

    # -- content -----------------------------------------------------------

    def set_content(self, text: str) -> None:
        self._lines = []
        self._last_line_open = False
        self._append(text)
        self._content_changed(0)

    def append_content(self, text: str) -> None:
        if not text:
            return
        first_changed = len(self._lines) - 1 if self._last_line_open else len(self._lines)
        self._append(text)
        self._content_changed(max(0, first_changed))

    def _append(self, text: str) -> None:
        if not text:
            return
        pieces = text.split("\n")
        trailing = pieces.pop()
        if pieces:
            if self._last_line_open:
                self._lines[-1] = _close_line(self._lines[-1] + pieces[0])
                pieces = pieces[1:]
            self._lines.extend(_close_line(piece) for piece in pieces)
            self._last_line_open = False
            if trailing:
                self._lines.append(trailing)
                self._last_line_open = True
            return
        if self._last_line_open:
            self._lines[-1] += trailing
        else:
            self._lines.append(trailing)
            self._last_line_open = True

    def _content_changed(self, first_changed_line: int) -> None:
        self.content_version += 1
        if self._search is not None:
            previous = self._search.dirty_from_line
            self._search.dirty_from_line = (
                first_changed_line if previous is None else min(previous, first_changed_line)
            )
        self._clamp()

    # -- scrolling ---------------------------------------------------------

    def _clamp(self) -> None:
        self._scroll_offset = max(0, min(self._scroll_offset, self.max_scroll_offset))

    def set_viewport_height(self, height: int) -> None:
        self._viewport_height = max(1, int(height))
        self._clamp()

    def scroll_to(self, offset: int) -> None:
        self._scroll_offset = int(offset)
        self._clamp()

    def scroll_by(self, delta: int) -> None:
        self.scroll_to(self._scroll_offset + int(delta))

    def scroll_to_top(self) -> None:
        self.scroll_to(0)

    def scroll_to_bottom(self) -> None:
        self.scroll_to(self.max_scroll_offset)

    # -- display settings --------------------------------------------------

    def set_line_numbers(self, mode: LineNumbers) -> None:
        self.line_numbers = mode
        self._clamp()

    def toggle_line_numbers(self) -> bool:
        """Flip line numbers unless locked; return whether the mode changed."""
        toggled = self.line_numbers.toggled()
        if toggled is self.line_numbers:
            return False
        self.set_line_numbers(toggled)
        return True

    def set_prompt(self, text: str) -> None:
        self.prompt = text

    def send_message(self, text: str) -> None:
        self.message = text

    def clear_message(self) -> bool:
        if self.message is None:
            return False
        self.message = None
        return True

    def set_exit_strategy(self, strategy: ExitStrategy) -> None:
        self.exit_strategy = strategy

    def add_exit_callback(self, callback: Callable[[], None]) -> None:
        self.exit_callbacks.append(callback)

    def set_run_no_overflow(self, value: bool) -> None:
        self.run_no_overflow = bool(value)

    def set_syntax(self, hint: str | None) -> None:
        self.syntax = hint or None

    # -- search ------------------------------------------------------------

    def start_search(
        self,
        pattern: str,
        case_sensitive: bool | None = None,
        direction: SearchDirection = SearchDirection.FORWARD,
    ) -> SearchMatch | None:
        """Compile ``pattern``, replace the active search and jump to a match.

        Raises ``InvalidSearchPattern`` before touching existing search state.
        """
        matches = compute_matches(self._lines, pattern, case_sensitive)
        self._search = SearchState(
            pattern=pattern,
            case_sensitive=case_sensitive,
            direction=direction,
            matches=matches,
            content_version=self.content_version,
        )
        return self._select_match(first_match_from(matches, self._scroll_offset, direction))

    def clear_search(self) -> None:
        self._search = None

    def next_match(self) -> SearchMatch | None:
        search = self.search
        if search is None:
            return None
        return self._select_match(select_next(search.matches, search.selected))

    def previous_match(self) -> SearchMatch | None:
        search = self.search
        if search is None:
            return None
        return self._select_match(select_previous(search.matches, search.selected))

    def _select_match(self, index: int | None) -> SearchMatch | None:
        search = self._search
        if search is None:
            return None
        search.selected = index
        match = search.current
        if match is not None:
            self.scroll_to(scroll_offset_for_match(match.line, self._viewport_height, len(self._lines)))
        return match


def create_static(content: str = "", line_numbers: LineNumbers = LineNumbers.DISABLED) -> PagerState:
    return PagerState(content, line_numbers, run_mode=RunMode.STATIC)


def default_static() -> PagerState:
    return create_static()


_ACTIVE_RUN_MODE = RunMode.UNINITIALIZED
_ACTIVE_RUN_MODE_LOCK = threading.Lock()


def active_run_mode() -> RunMode:
    """Return the mode of the pager currently running in this process."""
    with _ACTIVE_RUN_MODE_LOCK:
        return _ACTIVE_RUN_MODE


@contextlib.contextmanager
def claim_run_mode(mode: RunMode) -> Iterator[None]:
    """Mark a pager as running for the duration of the block.

    Raises ``PagerAlreadyRunning`` when another pager holds the claim.
    """
    global _ACTIVE_RUN_MODE
    with _ACTIVE_RUN_MODE_LOCK:
        if not _ACTIVE_RUN_MODE.is_uninitialized():
            raise PagerAlreadyRunning(f"a {_ACTIVE_RUN_MODE.value} pager is already running")
        _ACTIVE_RUN_MODE = mode
    try:
        yield
    finally:
        with _ACTIVE_RUN_MODE_LOCK:
            _ACTIVE_RUN_MODE = RunMode.UNINITIALIZED


__all__ = [
    "ExitStrategy",
    "LineNumbers",
    "PagerState",
    "RunMode",
    "active_run_mode",
    "claim_run_mode",
    "create_static",
    "default_static",
]
