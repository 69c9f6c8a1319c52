"""Key-token classification into pager actions.

``KeyClassifier.classify`` is pure with respect to ``InputState``: it reads the
capture mode, the pending count and the search query, and returns an
``Action`` describing what should happen. Applying the action is the job of
``livepager.input.machine``.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from ..search import SearchDirection
from .registry import KeyComboBinding, KeyComboRegistry

logger = logging.getLogger(__name__)


class ActionKind(enum.Enum):
    NONE = "none"
    COUNT_DIGIT = "count_digit"
    LINE_UP = "line_up"
    LINE_DOWN = "line_down"
    HALF_PAGE_UP = "half_page_up"
    HALF_PAGE_DOWN = "half_page_down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    TOP = "top"
    BOTTOM = "bottom"
    WHEEL_UP = "wheel_up"
    WHEEL_DOWN = "wheel_down"
    BEGIN_SEARCH = "begin_search"
    SEARCH_INPUT = "search_input"
    SEARCH_BACKSPACE = "search_backspace"
    CANCEL_SEARCH = "cancel_search"
    COMMIT_SEARCH = "commit_search"
    NEXT_MATCH = "next_match"
    PREVIOUS_MATCH = "previous_match"
    TOGGLE_LINE_NUMBERS = "toggle_line_numbers"
    QUIT = "quit"


class InputMode(enum.Enum):
    NORMAL = "normal"
    SEARCH = "search"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    count: int | None = None
    text: str = ""
    direction: SearchDirection = SearchDirection.FORWARD


NO_ACTION = Action(ActionKind.NONE)


@dataclass
class InputState:
    """Transient per-loop input state: capture mode, search query, count prefix."""

    mode: InputMode = InputMode.NORMAL
    query: str = ""
    direction: SearchDirection = SearchDirection.FORWARD
    count_buffer: str = ""

    @property
    def searching(self) -> bool:
        return self.mode is InputMode.SEARCH


# Bindable action names mapped to their default key tokens.
DEFAULT_BINDINGS: dict[str, tuple[str, ...]] = {
    "quit": ("q", "Q", "CTRL_C"),
    "line_down": ("j", "DOWN", "ENTER", "CTRL_N"),
    "line_up": ("k", "UP", "CTRL_P"),
    "half_page_down": ("d", "CTRL_D"),
    "half_page_up": ("u", "CTRL_U"),
    "page_down": (" ", "f", "PAGE_DOWN", "CTRL_F"),
    "page_up": ("b", "PAGE_UP", "CTRL_B"),
    "top": ("g", "HOME"),
    "bottom": ("G", "END"),
    "wheel_up": ("MOUSE_WHEEL_UP",),
    "wheel_down": ("MOUSE_WHEEL_DOWN",),
    "search_forward": ("/",),
    "search_backward": ("?",),
    "next_match": ("n",),
    "previous_match": ("N", "p"),
    "toggle_line_numbers": ("l", "CTRL_L"),
}

_SIMPLE_KINDS: dict[str, ActionKind] = {
    "quit": ActionKind.QUIT,
    "line_down": ActionKind.LINE_DOWN,
    "line_up": ActionKind.LINE_UP,
    "half_page_down": ActionKind.HALF_PAGE_DOWN,
    "half_page_up": ActionKind.HALF_PAGE_UP,
    "page_down": ActionKind.PAGE_DOWN,
    "page_up": ActionKind.PAGE_UP,
    "top": ActionKind.TOP,
    "bottom": ActionKind.BOTTOM,
    "wheel_up": ActionKind.WHEEL_UP,
    "wheel_down": ActionKind.WHEEL_DOWN,
    "next_match": ActionKind.NEXT_MATCH,
    "previous_match": ActionKind.PREVIOUS_MATCH,
    "toggle_line_numbers": ActionKind.TOGGLE_LINE_NUMBERS,
}

_SEARCH_DIRECTIONS: dict[str, SearchDirection] = {
    "search_forward": SearchDirection.FORWARD,
    "search_backward": SearchDirection.BACKWARD,
}


@dataclass(frozen=True)
class _Template:
    kind: ActionKind
    direction: SearchDirection = SearchDirection.FORWARD


def _template_for(name: str) -> _Template | None:
    if name in _SIMPLE_KINDS:
        return _Template(_SIMPLE_KINDS[name])
    if name in _SEARCH_DIRECTIONS:
        return _Template(ActionKind.BEGIN_SEARCH, _SEARCH_DIRECTIONS[name])
    return None


@dataclass
class KeyClassifier:
    """Normal-mode key table built from defaults plus ``overrides``.

    ``overrides`` maps a key token to an action name from
    ``DEFAULT_BINDINGS``; the special name ``"none"`` unbinds the key.
    """

    overrides: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        registry: KeyComboRegistry[_Template] = KeyComboRegistry()
        registry.register_bindings(
            *(
                KeyComboBinding(combos, lambda template=_template_for(name): template)
                for name, combos in DEFAULT_BINDINGS.items()
            )
        )
        unbound = _Template(ActionKind.NONE)
        for key, name in self.overrides.items():
            template = unbound if name == "none" else _template_for(name)
            if template is None:
                logger.warning("ignoring binding %r -> unknown action %r", key, name)
                continue
            registry.register_binding(KeyComboBinding((key,), lambda template=template: template))
        self._registry = registry

    def classify(self, key: str, input_state: InputState) -> Action:
        if input_state.searching:
            return _classify_search_key(key, input_state)

        if key.isdigit() and len(key) == 1 and (key != "0" or input_state.count_buffer):
            return Action(ActionKind.COUNT_DIGIT, text=key)

        template = self._registry.dispatch(key)
        if template is None or template.kind is ActionKind.NONE:
            return NO_ACTION
        count = int(input_state.count_buffer) if input_state.count_buffer else None
        return Action(template.kind, count=count, direction=template.direction)


def _classify_search_key(key: str, input_state: InputState) -> Action:
    if key == "ENTER":
        return Action(ActionKind.COMMIT_SEARCH, text=input_state.query, direction=input_state.direction)
    if key in {"ESC", "CTRL_C"}:
        return Action(ActionKind.CANCEL_SEARCH)
    if key == "BACKSPACE":
        if not input_state.query:
            return Action(ActionKind.CANCEL_SEARCH)
        return Action(ActionKind.SEARCH_BACKSPACE)
    if key == "TAB":
        return Action(ActionKind.SEARCH_INPUT, text="\t")
    if len(key) == 1 and key.isprintable():
        return Action(ActionKind.SEARCH_INPUT, text=key)
    return NO_ACTION


def classify_key(key: str, input_state: InputState, bindings: Mapping[str, str] | None = None) -> Action:
    """One-off classification; runners keep a ``KeyClassifier`` instead."""
    return KeyClassifier(bindings or {}).classify(key, input_state)
