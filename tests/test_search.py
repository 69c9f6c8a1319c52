"""Search engine tests.

Covers match computation, smart case, cyclic navigation, match centering and
match-list recomputation after content changes.
"""

from __future__ import annotations

import unittest

from livepager.errors import InvalidSearchPattern
from livepager.search import (
    SearchDirection,
    SearchMatch,
    compute_matches,
    first_match_from,
    scroll_offset_for_match,
    select_next,
    select_previous,
)
from livepager.state import create_static


class ComputeMatchesTests(unittest.TestCase):
    def test_matches_are_ordered_by_line_then_column(self) -> None:
        matches = compute_matches(["a", "b", "ab"], "a")

        self.assertEqual(matches, [SearchMatch(0, 0, 1), SearchMatch(2, 0, 1)])

    def test_multiple_matches_on_one_line(self) -> None:
        matches = compute_matches(["foo bar foo"], "foo")

        self.assertEqual(matches, [SearchMatch(0, 0, 3), SearchMatch(0, 8, 3)])

    def test_smart_case_ignores_case_for_lowercase_patterns(self) -> None:
        self.assertEqual(len(compute_matches(["Foo", "foo"], "foo")), 2)
        self.assertEqual(compute_matches(["Foo", "foo"], "Foo"), [SearchMatch(0, 0, 3)])

    def test_explicit_case_mode_overrides_smart_case(self) -> None:
        self.assertEqual(compute_matches(["Foo", "foo"], "foo", True), [SearchMatch(1, 0, 3)])
        self.assertEqual(len(compute_matches(["Foo", "foo"], "Foo", False)), 2)

    def test_invalid_pattern_raises_with_pattern_attached(self) -> None:
        with self.assertRaises(InvalidSearchPattern) as ctx:
            compute_matches(["x"], "(")

        self.assertEqual(ctx.exception.pattern, "(")
        self.assertTrue(ctx.exception.reason)

    def test_empty_pattern_and_zero_width_matches_yield_nothing(self) -> None:
        self.assertEqual(compute_matches(["abc"], ""), [])
        self.assertEqual(compute_matches(["abc"], "x*"), [])

    def test_columns_ignore_ansi_styling(self) -> None:
        matches = compute_matches(["\x1b[31mred\x1b[0m alert"], "alert")

        self.assertEqual(matches, [SearchMatch(0, 4, 5)])


class NavigationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.matches = [SearchMatch(0, 0, 1), SearchMatch(3, 0, 1), SearchMatch(7, 0, 1)]

    def test_next_then_previous_returns_to_start(self) -> None:
        self.assertEqual(select_previous(self.matches, select_next(self.matches, 1)), 1)

    def test_navigation_wraps_at_both_ends(self) -> None:
        self.assertEqual(select_next(self.matches, 2), 0)
        self.assertEqual(select_previous(self.matches, 0), 2)

    def test_first_step_without_selection(self) -> None:
        self.assertEqual(select_next(self.matches, None), 0)
        self.assertEqual(select_previous(self.matches, None), 2)

    def test_empty_match_list_selects_nothing(self) -> None:
        self.assertIsNone(select_next([], 0))
        self.assertIsNone(select_previous([], None))

    def test_first_match_from_respects_direction_and_wraps(self) -> None:
        self.assertEqual(first_match_from(self.matches, 2, SearchDirection.FORWARD), 1)
        self.assertEqual(first_match_from(self.matches, 8, SearchDirection.FORWARD), 0)
        self.assertEqual(first_match_from(self.matches, 5, SearchDirection.BACKWARD), 1)
        self.assertEqual(first_match_from([SearchMatch(4, 0, 1)], 2, SearchDirection.BACKWARD), 0)

    def test_match_line_is_centered_and_clamped(self) -> None:
        self.assertEqual(scroll_offset_for_match(50, 20, 100), 40)
        self.assertEqual(scroll_offset_for_match(3, 20, 100), 0)
        self.assertEqual(scroll_offset_for_match(98, 20, 100), 80)


class StateSearchTests(unittest.TestCase):
    def test_selection_cycles_through_all_matches(self) -> None:
        state = create_static("a\nb\nab\n")

        self.assertEqual(state.start_search("a"), SearchMatch(0, 0, 1))
        self.assertEqual(state.next_match(), SearchMatch(2, 0, 1))
        self.assertEqual(state.next_match(), SearchMatch(0, 0, 1))
        self.assertEqual(state.previous_match(), SearchMatch(2, 0, 1))

    def test_jump_centers_the_match_in_the_viewport(self) -> None:
        state = create_static("".join(f"line {idx}\n" for idx in range(100)))
        state.set_viewport_height(20)
        state.start_search("^line 50$")

        self.assertEqual(state.scroll_offset, 40)

    def test_matches_follow_appended_content(self) -> None:
        state = create_static("a\nb\n")
        state.start_search("a")
        state.append_content("a\n")

        self.assertEqual(state.search.matches, [SearchMatch(0, 0, 1), SearchMatch(2, 0, 1)])
        self.assertEqual(state.search.current, SearchMatch(0, 0, 1))

    def test_append_to_open_line_rescans_that_line(self) -> None:
        state = create_static("xa")
        state.start_search("a")
        state.append_content("a\n")

        self.assertEqual(state.search.matches, [SearchMatch(0, 1, 1), SearchMatch(0, 2, 1)])
        self.assertEqual(state.search.current, SearchMatch(0, 1, 1))

    def test_replaced_content_drops_stale_matches(self) -> None:
        state = create_static("a\nb\nab\n")
        state.start_search("a")
        state.set_content("zzz\n")

        self.assertEqual(state.search.matches, [])
        self.assertIsNone(state.search.current)

    def test_invalid_pattern_leaves_previous_search_in_place(self) -> None:
        state = create_static("a\nb\n")
        state.start_search("a")

        with self.assertRaises(InvalidSearchPattern):
            state.start_search("(")

        self.assertEqual(state.search.pattern, "a")

    def test_navigation_without_search_is_a_no_op(self) -> None:
        state = create_static("a\n")

        self.assertIsNone(state.next_match())
        self.assertIsNone(state.previous_match())


if __name__ == "__main__":
    unittest.main()
