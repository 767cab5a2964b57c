"""Repair and parse semi-structured JSON returned by the generative model.

The model occasionally wraps its JSON in Markdown fences, emits trailing
commas, glitches into long runs of repeated hex digits after a colour code,
or stops mid-object when it runs out of tokens. Each repair below is a pure
``str -> str`` transform that leaves well-formed JSON untouched; they run in
a fixed order before a single strict parse, followed by one salvage attempt.
"""

import json
import logging
import re
from typing import Any, List, Optional, Tuple

from .exceptions import EmptyResponseError, MalformedResponseError

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^\s*```[a-zA-Z]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?```\s*$")
_HEX_RUN = re.compile(r'"(#[0-9A-Fa-f]{6})[0-9A-Fa-f]{2,}')
_STRING_OR_TRAILING_COMMA = re.compile(r'"(?:\\.|[^"\\])*"|,(\s*[\]}])')
_TRAILING_HEX_TOKEN = re.compile(r"#?[0-9A-Fa-f]{6}$")

_CLOSERS = {"{": "}", "[": "]"}


def strip_code_fence(text: str) -> str:
    """Remove a Markdown code-fence wrapper (```json ... ```) if present."""
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def collapse_hex_runs(text: str) -> str:
    """Truncate glitched colour values such as ``"#FF5733333333"`` to ``"#FF5733"``.

    Only a string value that starts with the colour is touched, and only when
    at least two extra hex digits follow it.
    """
    return _HEX_RUN.sub(r'"\1', text)


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing bracket or brace.

    String literals are matched first and passed through unchanged, so a
    comma inside a quoted value is never touched.
    """
    def _replace(match: re.Match) -> str:
        closer = match.group(1)
        if closer is None:
            return match.group(0)
        return closer

    return _STRING_OR_TRAILING_COMMA.sub(_replace, text)


def _scan_open_containers(text: str) -> Tuple[List[str], bool]:
    """Return the stack of unclosed ``{``/``[`` and whether the text ends inside a string."""
    stack: List[str] = []
    in_string = False
    escaped = False

    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(char)
        elif char in ("}", "]") and stack and _CLOSERS[stack[-1]] == char:
            stack.pop()

    return stack, in_string


def salvage_truncated_json(text: str) -> str:
    """Close a response that was cut off mid-structure.

    A dangling colour token (``"#A1B2C3``) gets its closing quote, then every
    unclosed object/array is closed innermost first.
    """
    stack, in_string = _scan_open_containers(text)

    if in_string and _TRAILING_HEX_TOKEN.search(text):
        text += '"'

    if stack:
        text += "".join(_CLOSERS[opener] for opener in reversed(stack))

    return remove_trailing_commas(text)


def clean_json_text(text: str) -> str:
    """Apply the ordered, parse-free repair steps."""
    text = strip_code_fence(text)
    text = collapse_hex_runs(text)
    text = remove_trailing_commas(text)
    return text


def normalize_json_response(text: Optional[str]) -> Any:
    """
    Repair and parse raw model output into a Python value.

    Args:
        text: Raw text returned by the model

    Returns:
        The parsed JSON value (dict, list, ...)

    Raises:
        EmptyResponseError: If there is no output to parse
        MalformedResponseError: If the output cannot be repaired
    """
    if text is None or not text.strip():
        raise EmptyResponseError()

    clean = clean_json_text(text)

    try:
        return json.loads(clean)
    except json.JSONDecodeError as first_error:
        logger.debug(f"Strict parse failed ({first_error}), attempting salvage")

    salvaged = salvage_truncated_json(clean)
    try:
        return json.loads(salvaged)
    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error. Raw text: {text}")
        raise MalformedResponseError(raw_text=text) from e
