"""Input-layer public API for key decoding and the action state machine.

Exports are split between low-level terminal decoding (`read_key`) and the
classification/application steps used by the runners.
"""

from .actions import (
    DEFAULT_BINDINGS,
    Action,
    ActionKind,
    InputMode,
    InputState,
    KeyClassifier,
    classify_key,
)
from .machine import Outcome, apply_action, handle_key
from .reader import ESC_SEQUENCE_TIMEOUT_MS, read_key
from .registry import KeyComboBinding, KeyComboRegistry

__all__ = [
    "Action",
    "ActionKind",
    "DEFAULT_BINDINGS",
    "ESC_SEQUENCE_TIMEOUT_MS",
    "InputMode",
    "InputState",
    "KeyClassifier",
    "KeyComboBinding",
    "KeyComboRegistry",
    "Outcome",
    "apply_action",
    "classify_key",
    "handle_key",
    "read_key",
]
