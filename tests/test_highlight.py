"""Tests for optional Pygments highlighting of the visible window."""

import unittest

from livepager import highlight as highlight_mod


class HighlightLinesTests(unittest.TestCase):
    def test_known_lexer_colors_each_line(self) -> None:
        lines = ["x = 1", "def f():", "    return x"]

        rendered = highlight_mod.highlight_lines(lines, "python")

        self.assertEqual(len(rendered), 3)
        self.assertTrue(any("\x1b[" in line for line in rendered))

    def test_file_name_hint_resolves_lexer(self) -> None:
        self.assertIsNotNone(highlight_mod.lexer_for("script.py"))
        self.assertIsNone(highlight_mod.lexer_for("no-such-language-zz"))

    def test_lines_pass_through_without_usable_hint(self) -> None:
        lines = ["x = 1"]

        self.assertEqual(highlight_mod.highlight_lines(lines, None), lines)
        self.assertEqual(highlight_mod.highlight_lines(lines, "no-such-language-zz"), lines)

    def test_prestyled_lines_are_left_alone(self) -> None:
        lines = ["\x1b[31mx = 1\x1b[0m"]

        self.assertEqual(highlight_mod.highlight_lines(lines, "python"), lines)

    def test_unknown_style_falls_back_with_warning(self) -> None:
        with self.assertLogs("livepager.highlight", level="WARNING"):
            formatter = highlight_mod.formatter_for("no-such-style-zz")

        self.assertIsNotNone(formatter)


if __name__ == "__main__":
    unittest.main()
