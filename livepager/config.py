"""Persistent JSON config helpers.

Stores default line numbering, search case mode, loop timing, the syntax
style and keybinding overrides. Malformed or missing config falls back to
built-in defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "livepager"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

DEFAULT_TICK_SECONDS = 0.05
DEFAULT_MOUSE_WHEEL_LINES = 5
DEFAULT_SYNTAX_STYLE = "monokai"


@dataclass(frozen=True)
class PagerConfig:
    """User preferences consumed by the runners and the input state machine."""

    line_numbers: bool = False
    # ``None`` means smart case: sensitive only when the pattern has uppercase.
    search_case_sensitive: bool | None = None
    tick_seconds: float = DEFAULT_TICK_SECONDS
    mouse_wheel_lines: int = DEFAULT_MOUSE_WHEEL_LINES
    syntax_style: str = DEFAULT_SYNTAX_STYLE
    shutdown_timeout: float | None = None
    bindings: dict[str, str] = field(default_factory=dict)
    # Persist the line-number toggle as the new default.
    remember_line_numbers: bool = False


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are logged and otherwise ignored so a read-only config
    directory never breaks paging.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not write config %s: %s", CONFIG_PATH, exc)


def _coerce_case_mode(value: object) -> bool | None:
    if isinstance(value, bool):
        return value
    return None


def _coerce_positive_float(value: object, default: float | None) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value) if value > 0 else default


def _coerce_positive_int(value: object, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value if value > 0 else default


def _coerce_bindings(value: object) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {
        key: action
        for key, action in value.items()
        if isinstance(key, str) and key and isinstance(action, str) and action
    }


def load_pager_config() -> PagerConfig:
    """Build a ``PagerConfig`` from the config file with strict validation.

    Unknown keys are ignored and invalid values fall back to defaults.
    ``search_case_sensitive`` accepts ``true``, ``false`` or ``"smart"``.
    """
    data = load_config()
    style = data.get("syntax_style")
    line_numbers = data.get("line_numbers")
    return PagerConfig(
        line_numbers=line_numbers if isinstance(line_numbers, bool) else False,
        search_case_sensitive=_coerce_case_mode(data.get("search_case_sensitive")),
        tick_seconds=_coerce_positive_float(data.get("tick_seconds"), DEFAULT_TICK_SECONDS) or DEFAULT_TICK_SECONDS,
        mouse_wheel_lines=_coerce_positive_int(data.get("mouse_wheel_lines"), DEFAULT_MOUSE_WHEEL_LINES),
        syntax_style=style.strip() if isinstance(style, str) and style.strip() else DEFAULT_SYNTAX_STYLE,
        shutdown_timeout=_coerce_positive_float(data.get("shutdown_timeout"), None),
        bindings=_coerce_bindings(data.get("bindings")),
        remember_line_numbers=data.get("remember_line_numbers", True) is not False,
    )


def save_line_numbers(enabled: bool) -> None:
    """Persist the default line-number preference."""
    config = load_config()
    config["line_numbers"] = bool(enabled)
    save_config(config)
