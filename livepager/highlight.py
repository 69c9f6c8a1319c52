"""Optional syntax highlighting of the visible window with Pygments.

The pager highlights only the lines it is about to draw, so producers can keep
appending without the whole buffer being re-lexed. Lines that already carry
ANSI styling are left alone.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Sequence

from pygments import highlight as pygments_highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .config import DEFAULT_SYNTAX_STYLE

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=32)
def lexer_for(hint: str) -> Lexer | None:
    """Resolve a lexer from a language alias (``python``) or a file name (``x.py``)."""
    options = {"stripnl": False, "ensurenl": True}
    try:
        return get_lexer_by_name(hint, **options)
    except ClassNotFound:
        pass
    try:
        return get_lexer_for_filename(hint, **options)
    except ClassNotFound:
        logger.debug("no pygments lexer for %r", hint)
        return None


@functools.lru_cache(maxsize=8)
def formatter_for(style: str) -> Terminal256Formatter:
    """Return cached Pygments terminal formatter for style name."""
    try:
        get_style_by_name(style)
    except ClassNotFound:
        logger.warning("unknown pygments style %r, using %s", style, DEFAULT_SYNTAX_STYLE)
        style = DEFAULT_SYNTAX_STYLE
    return Terminal256Formatter(style=style)


def highlight_lines(lines: Sequence[str], hint: str | None, style: str = DEFAULT_SYNTAX_STYLE) -> list[str]:
    """Return ``lines`` colored for ``hint``, or unchanged when not applicable."""
    if not hint or not lines or any("\x1b" in line for line in lines):
        return list(lines)
    lexer = lexer_for(hint)
    if lexer is None:
        return list(lines)

    rendered = pygments_highlight("\n".join(lines) + "\n", lexer, formatter_for(style))
    out = rendered.split("\n")
    if out and out[-1] == "":
        out.pop()
    if len(out) != len(lines):
        return list(lines)
    return out
