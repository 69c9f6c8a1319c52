"""Terminal control for the pager session.

Owns raw-mode lifecycle, alternate-screen switching and mouse-wheel
reporting, and exposes the small collaborator surface the runners need:
viewport size, frame drawing, passthrough output and input polling.
"""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import termios
import tty
from collections.abc import Iterator, Sequence
from typing import Protocol

from .config import DEFAULT_SYNTAX_STYLE
from .errors import TerminalSetupFailed
from .input.reader import read_key
from .render import Frame, render_frame, render_plain
from .state import LineNumbers

logger = logging.getLogger(__name__)

_ENTER_SEQUENCE = b"\x1b[?1049h\x1b[?25l\x1b[?1000h\x1b[?1006h"
_LEAVE_SEQUENCE = b"\x1b[?1000l\x1b[?1006l\x1b[?25h\x1b[?1049l"


class TerminalControl(Protocol):
    """Collaborator interface consumed by the static and dynamic runners."""

    def enter_interactive_mode(self) -> None: ...

    def leave_interactive_mode(self) -> None: ...

    def interactive(self) -> contextlib.AbstractContextManager[None]: ...

    def viewport_height(self) -> int: ...

    def viewport_width(self) -> int: ...

    def draw(self, frame: Frame) -> None: ...

    def write_passthrough(self, lines: Sequence[str], line_numbers: LineNumbers) -> None: ...

    def poll_input(self, timeout: float | None) -> str | None: ...


class TerminalController:
    """Raw-mode terminal bound to an input and an output file descriptor."""

    def __init__(
        self,
        stdin_fd: int,
        stdout_fd: int,
        *,
        style: str = DEFAULT_SYNTAX_STYLE,
        owns_stdin: bool = False,
    ) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self.style = style
        self.owns_stdin = owns_stdin
        self._saved_tty_state: list | None = None

    def close(self) -> None:
        """Close the input descriptor when this controller opened it."""
        if not self.owns_stdin:
            return
        self.owns_stdin = False
        os.close(self.stdin_fd)
        logger.debug("closed input fd %d", self.stdin_fd)

    @property
    def active(self) -> bool:
        return self._saved_tty_state is not None

    def enter_interactive_mode(self) -> None:
        """Enter raw alternate-screen mode with mouse-wheel reporting enabled."""
        if self.active:
            return
        try:
            saved = termios.tcgetattr(self.stdin_fd)
            tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        except (termios.error, OSError) as exc:
            raise TerminalSetupFailed(f"could not enter raw mode: {exc}") from exc
        self._saved_tty_state = saved
        try:
            os.write(self.stdout_fd, _ENTER_SEQUENCE)
        except OSError as exc:
            self.leave_interactive_mode()
            raise TerminalSetupFailed(f"could not switch to the alternate screen: {exc}") from exc
        logger.debug("entered interactive mode on fd %d", self.stdin_fd)

    def leave_interactive_mode(self) -> None:
        """Restore normal terminal state; no-op when not interactive."""
        saved = self._saved_tty_state
        if saved is None:
            return
        self._saved_tty_state = None
        errors: list[BaseException] = []
        try:
            os.write(self.stdout_fd, _LEAVE_SEQUENCE)
        except OSError as exc:
            errors.append(exc)
        try:
            termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, saved)
        except (termios.error, OSError) as exc:
            errors.append(exc)
        if errors:
            raise TerminalSetupFailed(f"could not restore terminal: {errors[0]}") from errors[0]
        logger.debug("left interactive mode")

    @contextlib.contextmanager
    def interactive(self) -> Iterator[None]:
        """Context manager that brackets code with enter/leave calls."""
        self.enter_interactive_mode()
        try:
            yield
        finally:
            self.leave_interactive_mode()

    def viewport_height(self) -> int:
        """Content rows available: terminal height minus the status line."""
        return max(1, shutil.get_terminal_size((80, 24)).lines - 1)

    def viewport_width(self) -> int:
        return max(1, shutil.get_terminal_size((80, 24)).columns)

    def draw(self, frame: Frame) -> None:
        payload = render_frame(frame, self.viewport_width(), self.style)
        os.write(self.stdout_fd, payload.encode("utf-8", errors="replace"))

    def write_passthrough(self, lines: Sequence[str], line_numbers: LineNumbers) -> None:
        """Write content straight to the output, for content that needs no pager."""
        payload = render_plain(tuple(lines), line_numbers)
        os.write(self.stdout_fd, payload.encode("utf-8", errors="replace"))

    def poll_input(self, timeout: float | None) -> str | None:
        """Wait up to ``timeout`` seconds (forever when ``None``) for one key."""
        timeout_ms = None if timeout is None else max(0, int(timeout * 1000))
        key = read_key(self.stdin_fd, timeout_ms=timeout_ms)
        return key or None
