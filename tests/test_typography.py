"""Tests for headline segmentation and wrapping."""

import pytest
from PIL import ImageFont

from aso_forge.typography import (
    TextSegment,
    find_highlight,
    load_font,
    segment_headline,
    split_words,
    wrap_text,
    wrap_words,
)


def measure(text):
    return float(len(text))


class TestHighlight:
    """Tests for highlight span selection."""

    def test_case_insensitive_first_match(self):
        assert find_highlight("Save tabs, save time", "SAVE") == (0, 4)

    @pytest.mark.parametrize("highlight", [None, "", "   ", "missing"])
    def test_nothing_to_highlight(self, highlight):
        assert find_highlight("Save Every Tab", highlight) is None
        assert segment_headline("Save Every Tab", highlight) == [TextSegment("Save Every Tab")]

    def test_segments(self):
        segments = segment_headline("Save Every Tab", "every")
        assert segments == [
            TextSegment("Save "),
            TextSegment("Every", True),
            TextSegment(" Tab"),
        ]

    @pytest.mark.parametrize(
        "headline,highlight",
        [
            ("Focus Mode On", "Focus"),
            ("Focus Mode On", "mode on"),
            ("Tabs tabs TABS", "tabs"),
            ("Go (fast) now", "(fast)"),
        ],
    )
    def test_exactly_one_highlighted_run(self, headline, highlight):
        """Test the highlight covers exactly the first match and the text is preserved."""
        segments = segment_headline(headline, highlight)
        highlighted = [s for s in segments if s.highlighted]
        start, end = find_highlight(headline, highlight)
        assert len(highlighted) == 1
        assert highlighted[0].text == headline[start:end]
        assert "".join(s.text for s in segments) == headline

    def test_empty_headline(self):
        assert segment_headline("", "x") == []


class TestWrapping:
    """Tests for greedy line breaking."""

    def test_split_words_keeps_flags(self):
        words = split_words(segment_headline("Save Every Tab", "ve Ev"))
        assert words == [
            [TextSegment("Sa"), TextSegment("ve", True)],
            [TextSegment("Ev", True), TextSegment("ery")],
            [TextSegment("Tab")],
        ]

    def test_wrap_text(self):
        assert wrap_text("one two three four", measure, 9) == ["one two", "three", "four"]

    def test_long_word_gets_own_line(self):
        words = split_words([TextSegment("a extraordinarily b")])
        lines = wrap_words(words, measure, 5)
        assert len(lines) == 3

    def test_everything_fits(self):
        assert wrap_text("one two", measure, 100) == ["one two"]


class TestLoadFont:
    def test_unknown_family_still_returns_font(self):
        font = load_font("Definitely Not A Font", 24, bold=True)
        assert isinstance(font, (ImageFont.FreeTypeFont, ImageFont.ImageFont))
        assert font.getlength("Hi") > 0
