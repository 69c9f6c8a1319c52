"""Static paging: content is complete before the pager starts.

No coordinator is involved; the runner owns the ``PagerState`` for the whole
session. Content that fits the viewport is written straight to the output
unless ``run_no_overflow`` asks for the interactive pager anyway.
"""

from __future__ import annotations

import logging

from ..config import PagerConfig, load_pager_config
from ..state import PagerState, RunMode, claim_run_mode
from ..terminal import TerminalControl
from .loop import LoopPhase, PagerLoop, finish_pager, open_default_terminal

logger = logging.getLogger(__name__)


class StaticLoop(PagerLoop):
    """Interactive loop over a state nobody else mutates."""

    def __init__(self, state: PagerState, terminal: TerminalControl, config: PagerConfig) -> None:
        super().__init__(state.with_state, terminal, config)
        self.state = state

    def run(self) -> None:
        needs_redraw = True
        with self.terminal.interactive():
            while self.phase is not LoopPhase.TERMINATING:
                if self.sync_viewport():
                    needs_redraw = True
                if needs_redraw:
                    self.redraw()
                    needs_redraw = False
                # Nothing changes without input, so block until the next key.
                key = self.terminal.poll_input(None)
                if key is None:
                    logger.debug("input closed, leaving static pager")
                    break
                needs_redraw = self.apply_key(key).needs_redraw


def page_all(
    state: PagerState,
    *,
    terminal: TerminalControl | None = None,
    config: PagerConfig | None = None,
) -> None:
    """Show ``state`` to the user and return after they quit."""
    if state.run_mode is not RunMode.STATIC:
        raise ValueError(f"page_all needs a static pager state, got {state.run_mode.value}")
    config = config if config is not None else load_pager_config()
    if terminal is not None:
        _page_static(state, terminal, config)
        return
    owned = open_default_terminal(config)
    try:
        _page_static(state, owned, config)
    finally:
        owned.close()


def _page_static(state: PagerState, terminal: TerminalControl, config: PagerConfig) -> None:
    with claim_run_mode(RunMode.STATIC):
        loop = StaticLoop(state, terminal, config)
        loop.apply_config_defaults()
        height = terminal.viewport_height()
        state.set_viewport_height(height)
        if state.line_count <= height and not state.run_no_overflow:
            logger.debug("content fits in %d rows, writing without paging", height)
            terminal.write_passthrough(state.lines, state.line_numbers)
            return
        logger.debug("static pager started with %d lines", state.line_count)
        loop.run()

    finish_pager(state.with_state)
