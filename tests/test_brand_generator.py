"""Tests for brand identity generation."""

import pytest

from aso_forge.brand_generator import BrandGenerator, brand_identity_from_raw
from aso_forge.exceptions import MalformedResponseError

from conftest import chat_response


class TestBrandIdentityFromRaw:
    """Tests for per-field brand defaults."""

    def test_malformed_colours_default_per_slot(self):
        """Test two bad slots default while every valid slot is kept."""
        identity = brand_identity_from_raw(
            {
                "colors": {
                    "primary1": "#FF5733",
                    "primary2": "#FFF",
                    "accent1": "#FF5733AA",
                    "accent2": "#112233",
                    "neutral_white": "#fefefe",
                    "neutral_black": "#0a0a0a",
                    "neutral_gray": "#777777",
                    "highlight_neon": "#00ff88",
                },
                "typography": {"headingFont": "Montserrat", "bodyFont": "Lato"},
                "visualStyleDescription": "Warm and punchy",
            }
        )
        colors = identity.colors
        assert colors.primary1 == "#FF5733"
        assert colors.primary2 == "#a3d615"
        assert colors.accent1 == "#ffffff"
        assert colors.accent2 == "#112233"
        assert colors.highlight_neon == "#00ff88"
        assert identity.typography.heading_font == "Montserrat"
        assert identity.visual_style_description == "Warm and punchy"

    def test_non_object_sections_are_ignored(self):
        identity = brand_identity_from_raw({"colors": ["#123456"], "typography": "Inter"})
        assert identity.colors.primary1 == "#c0f425"
        assert identity.typography.body_font == "Roboto"


class TestBrandGenerator:
    """Tests for the brand generation call."""

    @pytest.mark.asyncio
    async def test_generate(self, generation_client, openai_client, analysis):
        openai_client.chat.completions.create.return_value = chat_response(
            '```json\n{"colors": {"primary1": "#1e3a8a333333", "accent1": "#f97316",}, '
            '"typography": {"headingFont": "Poppins"}}\n```'
        )

        identity = await BrandGenerator(generation_client).generate(analysis, "TabFlow", guidance="ocean blues")

        assert identity.colors.primary1 == "#1e3a8a"
        assert identity.colors.accent1 == "#f97316"
        assert identity.typography.heading_font == "Poppins"
        message = openai_client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert "ocean blues" in message

    @pytest.mark.asyncio
    async def test_non_object_response(self, generation_client, openai_client, analysis):
        openai_client.chat.completions.create.return_value = chat_response("[1, 2]")
        with pytest.raises(MalformedResponseError):
            await BrandGenerator(generation_client).generate(analysis, "TabFlow")
