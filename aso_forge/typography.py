"""Text layout for store graphics: highlight spans, font lookup and line wrapping."""

import logging
import re
from functools import lru_cache
from typing import Callable, List, NamedTuple, Optional, Tuple

from PIL import ImageFont

logger = logging.getLogger(__name__)

FALLBACK_FONT_PATHS = {
    False: "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    True: "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
}


class TextSegment(NamedTuple):
    """A run of headline text and whether it is the highlighted span."""

    text: str
    highlighted: bool = False


Word = List[TextSegment]


def find_highlight(headline: str, highlight: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    Locate the first case-insensitive occurrence of ``highlight`` in ``headline``.

    Returns:
        ``(start, end)`` character offsets, or None when there is nothing to
        highlight (blank highlight or not a substring)
    """
    if not headline or not highlight or not highlight.strip():
        return None
    match = re.search(re.escape(highlight.strip()), headline, re.IGNORECASE)
    if match is None:
        return None
    return match.start(), match.end()


def segment_headline(headline: str, highlight: Optional[str]) -> List[TextSegment]:
    """Split a headline into plain and highlighted runs.

    The highlight covers exactly the first match; a highlight that is not
    part of the headline leaves it as a single plain run.
    """
    span = find_highlight(headline, highlight)
    if span is None:
        return [TextSegment(headline)] if headline else []

    start, end = span
    segments = [
        TextSegment(headline[:start]),
        TextSegment(headline[start:end], True),
        TextSegment(headline[end:]),
    ]
    return [s for s in segments if s.text]


def split_words(segments: List[TextSegment]) -> List[Word]:
    """Break segments at whitespace into words, keeping highlight flags per piece."""
    words: List[Word] = []
    current: Word = []

    for segment in segments:
        for i, piece in enumerate(re.split(r"(\s+)", segment.text)):
            if i % 2 == 1:
                if current:
                    words.append(current)
                    current = []
            elif piece:
                current.append(TextSegment(piece, segment.highlighted))

    if current:
        words.append(current)
    return words


def wrap_words(
    words: List[Word], measure: Callable[[str], float], max_width: float
) -> List[List[Word]]:
    """Greedy line breaking; a word wider than ``max_width`` gets its own line."""
    space = measure(" ")
    lines: List[List[Word]] = []
    line: List[Word] = []
    line_width = 0.0

    for word in words:
        width = sum(measure(piece.text) for piece in word)
        needed = width if not line else line_width + space + width
        if line and needed > max_width:
            lines.append(line)
            line, line_width = [word], width
        else:
            line.append(word)
            line_width = needed

    if line:
        lines.append(line)
    return lines


def wrap_text(text: str, measure: Callable[[str], float], max_width: float) -> List[str]:
    """Wrap plain text into lines no wider than ``max_width`` where possible."""
    words = split_words([TextSegment(text)])
    return [" ".join(piece.text for word in line for piece in word) for line in wrap_words(words, measure, max_width)]


@lru_cache(maxsize=64)
def load_font(family: str, size: int, bold: bool = False) -> ImageFont.ImageFont:
    """
    Find a TrueType font by family name.

    Tries the family (bold variant first when ``bold``), then DejaVu Sans,
    then Pillow's built-in scalable font.
    """
    size = max(1, int(round(size)))
    candidates = []
    if family:
        compact = family.replace(" ", "")
        if bold:
            candidates += [f"{compact}-Bold.ttf", f"{family}-Bold.ttf", f"{compact}-Black.ttf"]
        candidates += [f"{compact}.ttf", f"{compact}-Regular.ttf", f"{family}.ttf"]
    candidates.append(FALLBACK_FONT_PATHS[bold])

    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue

    logger.debug(f"No TrueType font found for {family!r}; using Pillow default")
    return ImageFont.load_default(size=size)
