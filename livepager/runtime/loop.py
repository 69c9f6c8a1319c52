"""Render/event loop for dynamic paging.

Each tick syncs the viewport size, redraws when something changed, and waits
one input slice. State access always goes through the coordinator in short
acquisitions: one write when the terminal size changed, one read to snapshot
the frame, one write per key. Drawing and input waits happen with the lock
released, so a producer appending content is never blocked by the terminal.
"""

from __future__ import annotations

import enum
import logging
import os
import sys
from collections.abc import Callable
from typing import TypeVar

from ..config import PagerConfig, load_pager_config, save_line_numbers
from ..coordinator import SharedPagerState
from ..errors import ProducerTaskFailed
from ..input import ActionKind, InputState, KeyClassifier, Outcome, handle_key
from ..render import build_frame
from ..state import ExitStrategy, LineNumbers, PagerState, RunMode, claim_run_mode
from ..terminal import TerminalControl, TerminalController
from .adapters import CancelToken, RuntimeAdapter, TaskHandle, ThreadRuntime

logger = logging.getLogger(__name__)

T = TypeVar("T")
StateAccess = Callable[[Callable[[PagerState], T]], T]


class LoopPhase(enum.Enum):
    RUNNING = "running"
    SEARCHING = "searching"
    TERMINATING = "terminating"


def open_default_terminal(config: PagerConfig) -> TerminalController:
    """Bind to stdout, reading keys from ``/dev/tty`` when stdin is a pipe."""
    stdin_fd = sys.stdin.fileno()
    if os.isatty(stdin_fd):
        return TerminalController(stdin_fd, sys.stdout.fileno(), style=config.syntax_style)
    tty_fd = os.open("/dev/tty", os.O_RDONLY)
    return TerminalController(tty_fd, sys.stdout.fileno(), style=config.syntax_style, owns_stdin=True)


class PagerLoop:
    """Tick mechanics shared by the static and dynamic runners."""

    def __init__(
        self,
        access: StateAccess,
        terminal: TerminalControl,
        config: PagerConfig,
    ) -> None:
        self.access = access
        self.terminal = terminal
        self.config = config
        self.classifier = KeyClassifier(config.bindings)
        self.input_state = InputState()
        self.phase = LoopPhase.RUNNING
        self._last_size: tuple[int, int] | None = None

    def apply_config_defaults(self) -> None:
        """Turn line numbers on when the user made that their default."""
        if not self.config.line_numbers:
            return

        def enable(state: PagerState) -> None:
            if state.line_numbers is LineNumbers.DISABLED:
                state.set_line_numbers(LineNumbers.ENABLED)

        self.access(enable)

    def sync_viewport(self) -> bool:
        """Re-read the terminal size; clamp the state when it changed."""
        height = self.terminal.viewport_height()
        size = (height, self.terminal.viewport_width())
        if size == self._last_size:
            return False
        self._last_size = size
        self.access(lambda state: state.set_viewport_height(height))
        return True

    def redraw(self) -> None:
        frame = self.access(lambda state: build_frame(state, self.input_state))
        self.terminal.draw(frame)

    def apply_key(self, key: str) -> Outcome:
        outcome = self.access(
            lambda state: handle_key(state, self.input_state, key, self.classifier, self.config)
        )
        if outcome.action.kind is ActionKind.TOGGLE_LINE_NUMBERS and outcome.needs_redraw:
            self._remember_line_numbers()
        if outcome.quit:
            self._set_phase(LoopPhase.TERMINATING)
        elif self.input_state.searching:
            self._set_phase(LoopPhase.SEARCHING)
        else:
            self._set_phase(LoopPhase.RUNNING)
        return outcome

    def _remember_line_numbers(self) -> None:
        if not self.config.remember_line_numbers:
            return
        enabled = self.access(lambda state: state.line_numbers.is_on)
        save_line_numbers(enabled)

    def _set_phase(self, phase: LoopPhase) -> None:
        if phase is not self.phase:
            logger.debug("loop phase %s -> %s", self.phase.value, phase.value)
            self.phase = phase


def finish_pager(access: StateAccess, *, apply_strategy: bool = True) -> None:
    """Run exit callbacks, then apply the exit strategy after a clean quit."""
    callbacks, strategy = access(lambda state: (list(state.exit_callbacks), state.exit_strategy))
    for callback in callbacks:
        callback()
    if apply_strategy and strategy is ExitStrategy.PROCESS_QUIT:
        raise SystemExit(0)


class DynamicLoop(PagerLoop):
    """Page a ``SharedPagerState`` while a producer keeps updating it."""

    def __init__(
        self,
        shared: SharedPagerState,
        producer: Callable[[CancelToken], object] | None = None,
        *,
        runtime: RuntimeAdapter | None = None,
        terminal: TerminalControl | None = None,
        config: PagerConfig | None = None,
    ) -> None:
        if shared.run_mode is not RunMode.DYNAMIC:
            raise ValueError(f"dynamic loop needs a dynamic pager state, got {shared.run_mode.value}")
        config = config if config is not None else load_pager_config()
        self._owned_terminal: TerminalController | None = None
        if terminal is None:
            terminal = self._owned_terminal = open_default_terminal(config)
        super().__init__(shared.with_state, terminal, config)
        self.shared = shared
        self.producer = producer
        self.runtime = runtime if runtime is not None else ThreadRuntime()
        self.handle: TaskHandle | None = None
        self._producer_reported = False

    def run(self) -> None:
        """Run until quit, then stop the producer and surface its failure."""
        try:
            self._run()
        finally:
            if self._owned_terminal is not None:
                self._owned_terminal.close()

    def _run(self) -> None:
        with claim_run_mode(RunMode.DYNAMIC):
            if self.producer is not None:
                self.handle = self.runtime.spawn(self.producer)
            logger.debug("dynamic pager started")
            try:
                self.apply_config_defaults()
                self._drive()
            except BaseException:
                logger.error("dynamic pager loop failed", exc_info=True)
                self._stop_producer(strict=False)
                raise
            self._stop_producer(strict=True)

        error = self.handle.exception() if self.handle is not None else None
        if error is None:
            finish_pager(self.access)
            return
        finish_pager(self.access, apply_strategy=False)
        raise ProducerTaskFailed(f"producer {self.handle.name} failed: {error}") from error

    def _drive(self) -> None:
        needs_redraw = True
        with self.terminal.interactive():
            while self.phase is not LoopPhase.TERMINATING:
                self._report_producer_failure()
                if self.sync_viewport():
                    needs_redraw = True
                if self.shared.consume_update():
                    needs_redraw = True
                if needs_redraw:
                    self.redraw()
                    needs_redraw = False

                key = self.terminal.poll_input(self.config.tick_seconds)
                if key is None:
                    continue
                outcome = self.apply_key(key)
                needs_redraw = outcome.needs_redraw

    def _report_producer_failure(self) -> None:
        handle = self.handle
        if handle is None or self._producer_reported or not handle.done():
            return
        self._producer_reported = True
        error = handle.exception()
        if error is not None:
            self.shared.send_message(f"Producer failed: {error}")

    def _stop_producer(self, *, strict: bool) -> None:
        handle = self.handle
        if handle is None:
            return
        logger.debug("requesting cancellation of %s", handle.name)
        handle.request_cancellation()
        if handle.await_completion(self.config.shutdown_timeout):
            logger.debug("producer %s stopped", handle.name)
            return
        logger.error("producer %s ignored cancellation", handle.name)
        if strict:
            raise ProducerTaskFailed(f"producer {handle.name} did not stop after cancellation")


def run_dynamic(
    shared: SharedPagerState,
    producer: Callable[[CancelToken], object] | None = None,
    *,
    runtime: RuntimeAdapter | None = None,
    terminal: TerminalControl | None = None,
    config: PagerConfig | None = None,
) -> None:
    """Page ``shared`` interactively while ``producer`` updates it."""
    DynamicLoop(shared, producer, runtime=runtime, terminal=terminal, config=config).run()
