"""Search over pager content.

Matches are computed against ANSI-stripped lines so columns line up with what
the user sees. Navigation is cyclic, and selecting a match yields the scroll
offset that centers its line in the viewport.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from .ansi import strip_ansi
from .errors import InvalidSearchPattern


class SearchDirection(enum.Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True, order=True)
class SearchMatch:
    line: int  # 0-based
    column: int  # 0-based, in visible characters
    length: int


@dataclass
class SearchState:
    """Active pattern plus the match list computed for one content version."""

    pattern: str
    case_sensitive: bool | None = None
    direction: SearchDirection = SearchDirection.FORWARD
    matches: list[SearchMatch] = field(default_factory=list)
    selected: int | None = None
    content_version: int = -1
    dirty_from_line: int | None = None

    @property
    def current(self) -> SearchMatch | None:
        if self.selected is None or not (0 <= self.selected < len(self.matches)):
            return None
        return self.matches[self.selected]


def resolve_case_sensitivity(pattern: str, case_sensitive: bool | None) -> bool:
    """Apply smart case when ``case_sensitive`` is ``None``."""
    if case_sensitive is not None:
        return case_sensitive
    return any(ch.isupper() for ch in pattern)


def compile_pattern(pattern: str, case_sensitive: bool | None = None) -> re.Pattern[str]:
    flags = 0 if resolve_case_sensitivity(pattern, case_sensitive) else re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise InvalidSearchPattern(pattern, str(exc)) from exc


def _line_matches(regex: re.Pattern[str], line_idx: int, text: str) -> list[SearchMatch]:
    out: list[SearchMatch] = []
    for found in regex.finditer(strip_ansi(text)):
        start, end = found.span()
        if end <= start:
            continue
        out.append(SearchMatch(line=line_idx, column=start, length=end - start))
    return out


def compute_matches(
    lines: Sequence[str],
    pattern: str,
    case_sensitive: bool | None = None,
    *,
    start_line: int = 0,
) -> list[SearchMatch]:
    """Return ordered matches of ``pattern`` in ``lines[start_line:]``.

    An empty pattern yields no matches. Zero-width matches are skipped.
    Raises ``InvalidSearchPattern`` when the pattern does not compile.
    """
    if not pattern:
        return []
    regex = compile_pattern(pattern, case_sensitive)
    out: list[SearchMatch] = []
    for line_idx in range(max(0, start_line), len(lines)):
        out.extend(_line_matches(regex, line_idx, lines[line_idx]))
    return out


def select_next(matches: Sequence[SearchMatch], current: int | None) -> int | None:
    if not matches:
        return None
    if current is None:
        return 0
    return (current + 1) % len(matches)


def select_previous(matches: Sequence[SearchMatch], current: int | None) -> int | None:
    if not matches:
        return None
    if current is None:
        return len(matches) - 1
    return (current - 1) % len(matches)


def first_match_from(
    matches: Sequence[SearchMatch],
    line: int,
    direction: SearchDirection = SearchDirection.FORWARD,
) -> int | None:
    """Pick the match a freshly committed search should land on.

    Forward searches take the first match at or after ``line``; backward
    searches take the last match at or before it. Both wrap around when no
    such match exists.
    """
    if not matches:
        return None
    if direction is SearchDirection.FORWARD:
        for idx, match in enumerate(matches):
            if match.line >= line:
                return idx
        return 0
    for idx in range(len(matches) - 1, -1, -1):
        if matches[idx].line <= line:
            return idx
    return len(matches) - 1


def scroll_offset_for_match(match_line: int, viewport_height: int, line_count: int) -> int:
    """Return the scroll offset that centers ``match_line``, clamped to bounds."""
    height = max(1, viewport_height)
    max_offset = max(0, line_count - height)
    return max(0, min(match_line - height // 2, max_offset))


def refresh_matches(
    search: SearchState,
    lines: Sequence[str],
    content_version: int,
) -> None:
    """Bring ``search.matches`` up to date with ``lines`` if they are stale.

    Only lines at or after ``search.dirty_from_line`` are rescanned. The
    selected match is kept when a match at the same position still exists,
    otherwise the selection moves to the next match at or after it.
    """
    if search.content_version == content_version:
        return
    start = 0 if search.dirty_from_line is None else max(0, search.dirty_from_line)
    previous = search.current
    kept = [match for match in search.matches if match.line < start]
    kept.extend(compute_matches(lines, search.pattern, search.case_sensitive, start_line=start))
    search.matches = kept
    search.content_version = content_version
    search.dirty_from_line = None

    if previous is None or not kept:
        search.selected = None
        return
    for idx, match in enumerate(kept):
        if (match.line, match.column) >= (previous.line, previous.column):
            search.selected = idx
            return
    search.selected = len(kept) - 1


__all__ = [
    "SearchDirection",
    "SearchMatch",
    "SearchState",
    "compile_pattern",
    "compute_matches",
    "first_match_from",
    "refresh_matches",
    "resolve_case_sensitivity",
    "scroll_offset_for_match",
    "select_next",
    "select_previous",
]
