"""Apply classified actions to a ``PagerState``.

``handle_key`` is the single entry point the runners call for each key token.
It must run while the caller holds access to the state (the coordinator lock
in dynamic mode). Invalid search patterns are absorbed here and reported to
the user as a status message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import PagerConfig
from ..errors import InvalidSearchPattern
from ..search import SearchDirection
from ..state import PagerState
from .actions import Action, ActionKind, InputMode, InputState, KeyClassifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    action: Action
    needs_redraw: bool
    quit: bool = False


def _view_signature(state: PagerState) -> tuple[object, ...]:
    search = state.search
    return (
        state.scroll_offset,
        state.line_numbers,
        state.message,
        None if search is None else (search.pattern, search.selected, len(search.matches)),
    )


def _commit_search(state: PagerState, pattern: str, direction: SearchDirection, config: PagerConfig) -> None:
    if not pattern:
        # An empty query repeats the previous search in the new direction.
        previous = state.search
        if previous is None:
            return
        pattern = previous.pattern
    try:
        match = state.start_search(pattern, config.search_case_sensitive, direction)
    except InvalidSearchPattern as exc:
        logger.warning("search pattern rejected: %s", exc)
        state.send_message(f"Invalid pattern: {exc.reason}")
        return
    if match is None:
        state.send_message(f"Pattern not found: {pattern}")


def _step_match(state: PagerState, along_direction: bool, times: int) -> None:
    search = state.search
    if search is None:
        return
    forward = (search.direction is SearchDirection.FORWARD) == along_direction
    match = None
    for _ in range(max(1, times)):
        match = state.next_match() if forward else state.previous_match()
    if match is None:
        state.send_message(f"Pattern not found: {search.pattern}")


def apply_action(
    state: PagerState,
    input_state: InputState,
    action: Action,
    config: PagerConfig | None = None,
) -> Outcome:
    """Mutate ``state``/``input_state`` for ``action`` and report redraw needs."""
    config = config if config is not None else PagerConfig()
    kind = action.kind

    if kind is ActionKind.COUNT_DIGIT:
        input_state.count_buffer += action.text
        return Outcome(action, needs_redraw=False)
    if kind is ActionKind.NONE:
        input_state.count_buffer = ""
        return Outcome(action, needs_redraw=False)
    if kind is ActionKind.QUIT:
        return Outcome(action, needs_redraw=False, quit=True)

    if kind is ActionKind.BEGIN_SEARCH:
        input_state.mode = InputMode.SEARCH
        input_state.query = ""
        input_state.direction = action.direction
        input_state.count_buffer = ""
        state.clear_message()
        return Outcome(action, needs_redraw=True)
    if kind is ActionKind.SEARCH_INPUT:
        input_state.query += action.text
        return Outcome(action, needs_redraw=True)
    if kind is ActionKind.SEARCH_BACKSPACE:
        input_state.query = input_state.query[:-1]
        return Outcome(action, needs_redraw=True)
    if kind is ActionKind.CANCEL_SEARCH:
        input_state.mode = InputMode.NORMAL
        input_state.query = ""
        return Outcome(action, needs_redraw=True)

    before = _view_signature(state)
    state.clear_message()
    count = action.count
    input_state.count_buffer = ""
    steps = 1 if count is None else max(1, count)
    height = state.viewport_height

    if kind is ActionKind.COMMIT_SEARCH:
        input_state.mode = InputMode.NORMAL
        input_state.query = ""
        _commit_search(state, action.text, action.direction, config)
        return Outcome(action, needs_redraw=True)
    if kind is ActionKind.LINE_DOWN:
        state.scroll_by(steps)
    elif kind is ActionKind.LINE_UP:
        state.scroll_by(-steps)
    elif kind is ActionKind.HALF_PAGE_DOWN:
        state.scroll_by(max(1, height // 2) * steps)
    elif kind is ActionKind.HALF_PAGE_UP:
        state.scroll_by(-max(1, height // 2) * steps)
    elif kind is ActionKind.PAGE_DOWN:
        state.scroll_by(height * steps)
    elif kind is ActionKind.PAGE_UP:
        state.scroll_by(-height * steps)
    elif kind is ActionKind.WHEEL_DOWN:
        state.scroll_by(config.mouse_wheel_lines)
    elif kind is ActionKind.WHEEL_UP:
        state.scroll_by(-config.mouse_wheel_lines)
    elif kind is ActionKind.TOP:
        state.scroll_to_top()
    elif kind is ActionKind.BOTTOM:
        if count is None:
            state.scroll_to_bottom()
        else:
            state.scroll_to(count - 1)
    elif kind is ActionKind.NEXT_MATCH:
        _step_match(state, along_direction=True, times=steps)
    elif kind is ActionKind.PREVIOUS_MATCH:
        _step_match(state, along_direction=False, times=steps)
    elif kind is ActionKind.TOGGLE_LINE_NUMBERS:
        state.toggle_line_numbers()

    return Outcome(action, needs_redraw=_view_signature(state) != before)


def handle_key(
    state: PagerState,
    input_state: InputState,
    key: str,
    classifier: KeyClassifier,
    config: PagerConfig | None = None,
) -> Outcome:
    """Classify ``key`` against ``input_state`` and apply it to ``state``."""
    return apply_action(state, input_state, classifier.classify(key, input_state), config)
