"""ANSI-aware text measurement and clipping.

Content pushed into the pager may already carry SGR color sequences. These
helpers measure and clip lines by display columns while keeping escapes
intact, and escape any other control bytes before they reach the terminal.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8
_CONTROL_RE = re.compile(r"[\x00-\x08\x0a-\x1a\x1c-\x1f\x7f-\x9f]")


def strip_ansi(text: str) -> str:
    """Return ``text`` without ANSI escape sequences."""
    if "\x1b" not in text:
        return text
    return ANSI_ESCAPE_RE.sub("", text)


def char_display_width(ch: str, col: int) -> int:
    """Columns ``ch`` occupies when drawn starting at column ``col``.

    A tab runs to the next multiple of ``TAB_STOP``; combining marks take no
    space; wide and fullwidth East Asian characters take two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def display_width(text: str) -> int:
    """Return the display width of ``text`` ignoring escape sequences."""
    col = 0
    for ch in strip_ansi(text):
        col += char_display_width(ch, col)
    return col


def sanitize_line(text: str) -> str:
    """Escape control bytes other than tab and ESC.

    Bare ESC bytes that do not start a CSI sequence are escaped too, so
    content cannot move the cursor or switch screens behind the pager's back.
    """
    if _CONTROL_RE.search(text) is None and "\x1b" not in text:
        return text

    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match and match.group(0).endswith("m"):
                out.append(match.group(0))
                i = match.end()
                continue
            out.append("\\x1b")
            i += 1
            continue
        code = ord(ch)
        if ch != "\t" and (code < 32 or code == 127 or 0x80 <= code <= 0x9F):
            out.append(f"\\x{code:02x}")
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def rendered_offsets(text: str) -> list[int]:
    """Map each character of ``strip_ansi(text)`` to its rendered position.

    Positions count visible characters of ``text`` after ``sanitize_line``
    and the tab expansion done by ``clip_ansi_line``. The list has one extra
    entry holding the rendered length, so a span ``(start, end)`` maps to
    ``(offsets[start], offsets[end])``.
    """
    offsets: list[int] = []
    pos = 0
    col = 0
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                if not match.group(0).endswith("m"):
                    # Shown as literal text after sanitizing, absent from the search text.
                    shown = 4 + len(match.group(0)) - 1
                    pos += shown
                    col += shown
                i = match.end()
                continue
        offsets.append(pos)
        code = ord(ch)
        if ch == "\t":
            w = char_display_width(ch, col)
            pos += w
            col += w
        elif code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            pos += 4
            col += 4
        else:
            pos += 1
            col += char_display_width(ch, col)
        i += 1
    offsets.append(pos)
    return offsets


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Cut ``text`` down to ``max_cols`` visible columns.

    Escape sequences are copied through at zero width. Tabs become spaces so
    the cut lands on the same cell the terminal would draw.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch, col)
        if ch == "\t":
            if col + w > max_cols:
                break
            out.append(" " * w)
            col += w
            i += 1
            continue
        if col + w > max_cols:
            break
        out.append(ch)
        col += w
        i += 1

    return "".join(out)
