"""Screen composition for one pager frame.

``build_frame`` snapshots everything a redraw needs while the caller holds
access to the state; ``render_frame`` turns that snapshot into a terminal
payload without touching the state again, so drawing never happens under the
coordinator lock.
"""

from __future__ import annotations

from dataclasses import dataclass

from .ansi import ANSI_ESCAPE_RE, clip_ansi_line, display_width, rendered_offsets, sanitize_line
from .config import DEFAULT_SYNTAX_STYLE
from .highlight import highlight_lines
from .input.actions import InputState
from .search import SearchDirection, SearchMatch
from .state import LineNumbers, PagerState


@dataclass(frozen=True)
class Frame:
    """Immutable view of the visible window plus status-line data."""

    lines: tuple[str, ...]
    first_line: int
    line_count: int
    viewport_height: int
    line_numbers: LineNumbers = LineNumbers.DISABLED
    prompt: str = ""
    message: str | None = None
    matches: tuple[SearchMatch, ...] = ()
    current_match: SearchMatch | None = None
    match_index: int | None = None
    match_total: int = 0
    capturing_search: bool = False
    query: str = ""
    direction: SearchDirection = SearchDirection.FORWARD
    syntax: str | None = None


def build_frame(state: PagerState, input_state: InputState | None = None) -> Frame:
    """Snapshot the visible window of ``state``."""
    first = state.scroll_offset
    last = min(state.line_count, first + state.viewport_height)
    window = tuple(state.lines[first:last])

    search = state.search
    matches: tuple[SearchMatch, ...] = ()
    current = None
    index = None
    total = 0
    if search is not None:
        matches = tuple(match for match in search.matches if first <= match.line < last)
        current = search.current
        index = search.selected
        total = len(search.matches)

    capturing = input_state is not None and input_state.searching
    return Frame(
        lines=window,
        first_line=first,
        line_count=state.line_count,
        viewport_height=state.viewport_height,
        line_numbers=state.line_numbers,
        prompt=state.prompt,
        message=state.message,
        matches=matches,
        current_match=current,
        match_index=index,
        match_total=total,
        capturing_search=capturing,
        query=input_state.query if capturing and input_state is not None else "",
        direction=input_state.direction if capturing and input_state is not None else SearchDirection.FORWARD,
        syntax=state.syntax,
    )


def line_number_width(line_count: int) -> int:
    return len(str(max(1, line_count)))


def format_line_number(index: int, line_count: int) -> str:
    return f"{index + 1:>{line_number_width(line_count)}}. "


def _highlight_spans(
    text: str,
    spans: list[tuple[int, int]],
    current: tuple[int, int] | None,
) -> str:
    """Wrap visible-character ``spans`` of a styled line in highlight escapes.

    Span offsets count visible characters only; escape sequences already in
    ``text`` are skipped when mapping offsets back to raw positions.
    """
    if not text or not spans:
        return text

    visible_start: list[int] = []
    visible_end: list[int] = []
    i = 0
    n = len(text)
    while i < n:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                i = match.end()
                continue
        visible_start.append(i)
        i += 1
        visible_end.append(i)
    if not visible_start:
        return text

    primary_start = "\033[7;1m"
    primary_end = "\033[27;22m"
    secondary_start = "\033[7m"
    secondary_end = "\033[27m"

    out: list[str] = []
    raw_cursor = 0
    for start_vis, end_vis in sorted(spans):
        if start_vis >= len(visible_start) or end_vis <= start_vis:
            continue
        start_raw = max(raw_cursor, visible_start[start_vis])
        end_raw = visible_end[min(len(visible_end), end_vis) - 1]
        if end_raw <= start_raw:
            continue
        is_current = current == (start_vis, end_vis)
        out.append(text[raw_cursor:start_raw])
        out.append(primary_start if is_current else secondary_start)
        out.append(text[start_raw:end_raw])
        out.append(primary_end if is_current else secondary_end)
        raw_cursor = end_raw
    out.append(text[raw_cursor:])
    return "".join(out)


def _rendered_span(offsets: list[int], match: SearchMatch) -> tuple[int, int]:
    last = len(offsets) - 1
    start = min(match.column, last)
    end = min(match.column + match.length, last)
    return offsets[start], offsets[end]


def build_status_line(left_text: str, width: int, right_text: str) -> str:
    usable = max(1, width - 1)
    if usable <= len(right_text):
        return right_text[-usable:]
    left_limit = max(0, usable - len(right_text) - 1)
    left = left_text[:left_limit]
    gap = " " * (usable - len(left) - len(right_text))
    return f"{left}{gap}{right_text}"


def status_texts(frame: Frame) -> tuple[str, str]:
    """Return the left and right halves of the status line."""
    if frame.capturing_search:
        marker = "/" if frame.direction is SearchDirection.FORWARD else "?"
        left = f"{marker}{frame.query}"
    elif frame.message is not None:
        left = frame.message
    else:
        left = frame.prompt

    if frame.line_count == 0:
        position = "(empty)"
    else:
        last = frame.first_line + len(frame.lines)
        position = f"{frame.first_line + 1}-{last}/{frame.line_count}"
    if frame.match_total and frame.match_index is not None:
        position = f"[{frame.match_index + 1}/{frame.match_total}] {position}"
    return left, position


def render_rows(frame: Frame, width: int, style: str = DEFAULT_SYNTAX_STYLE) -> list[str]:
    """Render content rows (without the status line), clipped to ``width``."""
    numbered = frame.line_numbers.is_on
    bodies = [sanitize_line(line) for line in frame.lines]
    bodies = highlight_lines(bodies, frame.syntax, style)

    rows: list[str] = []
    for offset, body in enumerate(bodies):
        line_idx = frame.first_line + offset
        prefix = ""
        if numbered:
            prefix = f"\033[2m{format_line_number(line_idx, frame.line_count)}\033[0m"
        body_width = max(0, width - display_width(prefix))
        body = clip_ansi_line(body, body_width)
        line_matches = [m for m in frame.matches if m.line == line_idx]
        current_match = frame.current_match if frame.current_match in line_matches else None
        if line_matches:
            offsets = rendered_offsets(frame.lines[offset])
            spans = [_rendered_span(offsets, m) for m in line_matches]
            current = _rendered_span(offsets, current_match) if current_match is not None else None
            body = _highlight_spans(body, spans, current)
        if "\033" in body:
            body += "\033[0m"
        rows.append(prefix + body)
    return rows


def render_frame(frame: Frame, width: int, style: str = DEFAULT_SYNTAX_STYLE) -> str:
    """Return the full-screen payload for ``frame``."""
    out: list[str] = ["\033[H\033[J"]
    rows = render_rows(frame, width, style)
    for row in range(frame.viewport_height):
        if row < len(rows):
            out.append(rows[row])
        out.append("\r\n")

    left, right = status_texts(frame)
    out.append("\033[7m")
    out.append(build_status_line(sanitize_line(left), width, right))
    out.append("\033[0m")
    return "".join(out)


def render_plain(lines: list[str] | tuple[str, ...], line_numbers: LineNumbers) -> str:
    """Render ``lines`` for direct output when no interactive pager is needed."""
    total = len(lines)
    out: list[str] = []
    for idx, line in enumerate(lines):
        if line_numbers.is_on:
            out.append(format_line_number(idx, total))
        out.append(sanitize_line(line))
        out.append("\n")
    return "".join(out)
