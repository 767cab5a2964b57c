"""Tests for the response normalizer."""

import json

import pytest

from aso_forge.exceptions import EmptyResponseError, MalformedResponseError
from aso_forge.response_normalizer import (
    clean_json_text,
    collapse_hex_runs,
    normalize_json_response,
    remove_trailing_commas,
    salvage_truncated_json,
    strip_code_fence,
)


VALID_DOCUMENTS = [
    '{"category": "Productivity", "isJunk": false}',
    '[{"name": "TabFlow", "score": 92}, {"name": "Tabby", "score": 81}]',
    '{"text": "Commas, inside strings, stay", "list": [1, 2, 3]}',
    '{"nested": {"deep": {"colors": ["#FF5733", "#112233"]}}}',
    '{"quote": "He said \\"hi\\", then left", "n": null}',
    '{"note": "see issue #1234567", "ref": "commit #abcdef12 landed"}',
    '"just a string"',
    "42",
]


class TestRepairSteps:
    """Tests for the individual string transforms."""

    def test_strip_code_fence_with_language(self):
        """Test a ```json fence is removed."""
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strip_code_fence_without_language(self):
        """Test a bare ``` fence is removed."""
        assert strip_code_fence('```\n[1, 2]\n```') == "[1, 2]"

    def test_strip_code_fence_leaves_plain_text(self):
        """Test text without a fence is only trimmed."""
        assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'

    def test_collapse_hex_runs(self):
        """Test a glitched colour is cut back to six digits."""
        assert collapse_hex_runs('"#FF5733333333"') == '"#FF5733"'
        assert collapse_hex_runs('"#A1B2C3"') == '"#A1B2C3"'

    def test_collapse_hex_runs_leaves_other_text(self):
        """Test hex-looking text that is not a glitched colour value is kept."""
        assert collapse_hex_runs('"#A1B2C3D"') == '"#A1B2C3D"'
        assert collapse_hex_runs('"issue #12345678"') == '"issue #12345678"'

    def test_remove_trailing_commas(self):
        """Test commas before closers are dropped."""
        assert remove_trailing_commas('{"a": [1, 2,], }') == '{"a": [1, 2] }'

    def test_remove_trailing_commas_ignores_strings(self):
        """Test a comma-bracket sequence inside a string is preserved."""
        text = '{"a": "x,]"}'
        assert remove_trailing_commas(text) == text

    def test_salvage_closes_dangling_colour(self):
        """Test a cut-off colour value gets its quote and closers."""
        salvaged = salvage_truncated_json('{"primary1": "#A1B2C3')
        assert json.loads(salvaged) == {"primary1": "#A1B2C3"}


class TestNormalizeJsonResponse:
    """Tests for the full repair-and-parse pipeline."""

    @pytest.mark.parametrize("document", VALID_DOCUMENTS)
    def test_valid_json_is_untouched(self, document):
        """Test well-formed input parses exactly as json.loads would."""
        assert clean_json_text(document) == document.strip()
        assert normalize_json_response(document) == json.loads(document)

    @pytest.mark.parametrize(
        "truncated, expected",
        [
            ('{"name": "TabFlow", "score": 92', {"name": "TabFlow", "score": 92}),
            ('{"names": [{"name": "TabFlow"}', {"names": [{"name": "TabFlow"}]}),
            ('{"a": {"b": [1, 2', {"a": {"b": [1, 2]}}),
        ],
    )
    def test_salvages_missing_closers(self, truncated, expected):
        """Test one, two and three missing closers are recovered."""
        assert normalize_json_response(truncated) == expected

    def test_hex_glitch_is_truncated(self):
        """Test a repeated-hex glitch yields the six-digit colour."""
        data = normalize_json_response('{"colors": {"accent1": "#FF5733333333"}}')
        assert data["colors"]["accent1"] == "#FF5733"

    def test_fenced_json_with_trailing_comma(self):
        """Test fence and trailing comma are both repaired."""
        data = normalize_json_response('```json\n{"headline": "Save Tabs", "subheadline": "Fast",}\n```')
        assert data == {"headline": "Save Tabs", "subheadline": "Fast"}

    @pytest.mark.parametrize("text", [None, "", "   \n"])
    def test_empty_output(self, text):
        """Test empty output fails fast with its own error."""
        with pytest.raises(EmptyResponseError):
            normalize_json_response(text)

    def test_unrepairable_output(self):
        """Test prose is reported as malformed with the raw text attached."""
        with pytest.raises(MalformedResponseError) as exc_info:
            normalize_json_response("Sorry, I cannot help with that.")
        assert exc_info.value.raw_text == "Sorry, I cannot help with that."
