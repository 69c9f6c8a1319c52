"""Pager state model tests.

Covers the line model, scroll clamping across every mutator, display toggles
and the one-active-pager guard.
"""

from __future__ import annotations

import random
import unittest

from livepager.errors import PagerAlreadyRunning
from livepager.state import (
    LineNumbers,
    PagerState,
    RunMode,
    active_run_mode,
    claim_run_mode,
    create_static,
    default_static,
)


def _numbered(count: int) -> str:
    return "".join(f"line {idx}\n" for idx in range(count))


class LineModelTests(unittest.TestCase):
    def test_trailing_newline_does_not_create_an_empty_line(self) -> None:
        state = create_static("a\nb\nab\n")

        self.assertEqual(state.lines, ["a", "b", "ab"])
        self.assertEqual(state.content, "a\nb\nab\n")

    def test_carriage_returns_are_stripped_from_line_endings(self) -> None:
        state = create_static("a\r\nb\r\n")

        self.assertEqual(state.lines, ["a", "b"])

    def test_append_continues_an_unterminated_last_line(self) -> None:
        state = create_static("ab")
        state.append_content("c\nd")

        self.assertEqual(state.lines, ["abc", "d"])
        self.assertEqual(state.content, "abc\nd")

    def test_empty_append_leaves_version_untouched(self) -> None:
        state = create_static("a\n")
        version = state.content_version
        state.append_content("")

        self.assertEqual(state.content_version, version)

    def test_set_content_replaces_all_lines(self) -> None:
        state = create_static("old\nlines\n")
        state.set_content("new\n")

        self.assertEqual(state.lines, ["new"])

    def test_defaults_are_empty_and_static(self) -> None:
        state = default_static()

        self.assertEqual(state.line_count, 0)
        self.assertEqual(state.content, "")
        self.assertIs(state.run_mode, RunMode.STATIC)
        self.assertIs(state.line_numbers, LineNumbers.DISABLED)


class ScrollClampTests(unittest.TestCase):
    def test_scroll_past_end_clamps_to_last_full_page(self) -> None:
        state = create_static(_numbered(100))
        state.set_viewport_height(20)
        state.scroll_to(90)

        self.assertEqual(state.scroll_offset, 80)

    def test_negative_scroll_clamps_to_top(self) -> None:
        state = create_static(_numbered(100))
        state.set_viewport_height(20)
        state.scroll_by(-5)

        self.assertEqual(state.scroll_offset, 0)

    def test_empty_content_pins_offset_at_zero(self) -> None:
        state = create_static()
        state.set_viewport_height(20)
        state.scroll_to(10)
        state.scroll_to_bottom()

        self.assertEqual(state.scroll_offset, 0)
        self.assertEqual(state.max_scroll_offset, 0)

    def test_content_shrinking_reclamps_offset(self) -> None:
        state = create_static(_numbered(100))
        state.set_viewport_height(20)
        state.scroll_to_bottom()
        state.set_content(_numbered(10))

        self.assertEqual(state.scroll_offset, 0)

    def test_viewport_growth_reclamps_offset(self) -> None:
        state = create_static(_numbered(100))
        state.set_viewport_height(20)
        state.scroll_to_bottom()
        state.set_viewport_height(50)

        self.assertEqual(state.scroll_offset, 50)

    def test_viewport_height_is_at_least_one(self) -> None:
        state = create_static(_numbered(5))
        state.set_viewport_height(0)

        self.assertEqual(state.viewport_height, 1)

    def test_appending_keeps_offset_in_bounds(self) -> None:
        state = create_static(_numbered(30))
        state.set_viewport_height(10)
        state.scroll_to(15)
        state.append_content(_numbered(30))

        self.assertEqual(state.scroll_offset, 15)
        self.assertLessEqual(state.scroll_offset, state.max_scroll_offset)

    def test_offset_stays_in_bounds_across_random_operations(self) -> None:
        rng = random.Random(1234)
        state = create_static(_numbered(rng.randint(0, 50)))
        operations = [
            lambda: state.scroll_to(rng.randint(-100, 200)),
            lambda: state.scroll_by(rng.randint(-60, 60)),
            lambda: state.set_viewport_height(rng.randint(-5, 80)),
            lambda: state.append_content(_numbered(rng.randint(0, 10))),
            lambda: state.set_content(_numbered(rng.randint(0, 40))),
            lambda: state.toggle_line_numbers(),
            state.scroll_to_top,
            state.scroll_to_bottom,
        ]

        for _ in range(2000):
            rng.choice(operations)()
            self.assertLessEqual(0, state.scroll_offset)
            self.assertLessEqual(state.scroll_offset, max(0, state.line_count - state.viewport_height))


class DisplaySettingTests(unittest.TestCase):
    def test_toggle_flips_between_enabled_and_disabled(self) -> None:
        state = create_static("a\n")

        self.assertTrue(state.toggle_line_numbers())
        self.assertIs(state.line_numbers, LineNumbers.ENABLED)
        self.assertTrue(state.toggle_line_numbers())
        self.assertIs(state.line_numbers, LineNumbers.DISABLED)

    def test_locked_modes_ignore_toggle(self) -> None:
        for mode in (LineNumbers.ALWAYS_ON, LineNumbers.ALWAYS_OFF):
            state = create_static("a\n", mode)

            self.assertFalse(state.toggle_line_numbers())
            self.assertIs(state.line_numbers, mode)

    def test_clear_message_reports_whether_anything_was_shown(self) -> None:
        state = create_static()

        self.assertFalse(state.clear_message())
        state.send_message("hello")
        self.assertTrue(state.clear_message())
        self.assertIsNone(state.message)


class RunModeTests(unittest.TestCase):
    def test_uninitialized_mode_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            PagerState(run_mode=RunMode.UNINITIALIZED)

    def test_only_one_pager_can_be_claimed_at_a_time(self) -> None:
        with claim_run_mode(RunMode.STATIC):
            self.assertIs(active_run_mode(), RunMode.STATIC)
            with self.assertRaises(PagerAlreadyRunning):
                with claim_run_mode(RunMode.DYNAMIC):
                    pass

        self.assertIs(active_run_mode(), RunMode.UNINITIALIZED)

    def test_claim_is_released_when_the_pager_fails(self) -> None:
        with self.assertRaises(RuntimeError):
            with claim_run_mode(RunMode.DYNAMIC):
                raise RuntimeError("boom")

        self.assertIs(active_run_mode(), RunMode.UNINITIALIZED)


if __name__ == "__main__":
    unittest.main()
