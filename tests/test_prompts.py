"""Tests for request builders and prompt assembly."""

from datetime import date

import pytest

from aso_forge.ai_client import InlineImage
from aso_forge.config import load_icon_styles
from aso_forge.models import AssetType, BrandColors, BrandIdentity
from aso_forge.prompts import (
    ANALYSIS_RETRY_HINT,
    REFERENCE_PRIORITY,
    analysis_request,
    brand_identity_request,
    color_context,
    enhance_privacy_policy_request,
    format_policy_date,
    image_prompt_request,
    manifest_permissions,
    names_request,
    privacy_policy_request,
    screenshot_copy_request,
    short_descriptions_request,
    style_instruction,
)


class TestTextRequests:
    """Tests for the text-step request builders."""

    def test_analysis_request(self):
        request = analysis_request("A tab manager for researchers")
        assert "A tab manager for researchers" in request.user_message
        assert ANALYSIS_RETRY_HINT not in request.user_message
        assert request.temperature == 0.1
        assert request.response_schema["required"] == ["isJunk"]

    def test_analysis_retry_hint(self):
        request = analysis_request("A tab manager", retry_hint=True)
        assert ANALYSIS_RETRY_HINT in request.user_message

    def test_names_request_counts(self, analysis):
        request = names_request(analysis, per_type=4)
        assert "generate 4 SEO-optimized names and 4 Creative" in request.user_message
        assert "is_junk" not in request.user_message
        assert request.response_schema["required"] == ["names"]

    def test_short_descriptions_request_lists_keywords(self, analysis):
        request = short_descriptions_request(analysis, "TabFlow")
        assert "App Name: TabFlow" in request.user_message
        assert "tab manager, session saver, tab groups" in request.user_message
        assert "under 132 chars" in request.user_message

    def test_brand_guidance_is_included(self, analysis):
        plain = brand_identity_request(analysis, "TabFlow")
        guided = brand_identity_request(analysis, "TabFlow", guidance="earthy greens")
        assert "USER GUIDANCE" not in plain.user_message
        assert '"earthy greens"' in guided.user_message

    def test_screenshot_copy_request_carries_image(self):
        image = InlineImage("image/png", b"\x89PNG")
        request = screenshot_copy_request(image, "TabFlow", "Calm")
        assert request.image is image
        assert "TabFlow" in request.user_message


class TestPrivacyRequests:
    """Tests for privacy policy requests."""

    def test_format_policy_date(self):
        assert format_policy_date(date(2025, 3, 5)) == "March 5, 2025"
        assert format_policy_date(date(2024, 12, 31)) == "December 31, 2024"

    def test_manifest_permissions(self):
        assert manifest_permissions(None) == {"permissions": [], "host_permissions": []}
        perms = manifest_permissions({"permissions": ["storage", "tabs"], "name": "x"})
        assert perms == {"permissions": ["storage", "tabs"], "host_permissions": []}

    def test_privacy_policy_request(self, analysis):
        manifest = {"permissions": ["storage"], "host_permissions": ["https://*/*"]}
        request = privacy_policy_request("TabFlow", analysis, manifest, date(2025, 3, 5))
        assert '["storage"]' in request.user_message
        assert '["https://*/*"]' in request.user_message
        assert "March 5, 2025" in request.user_message
        assert request.response_schema is None

    def test_enhance_request(self):
        request = enhance_privacy_policy_request("# Policy", "TabFlow", date(2025, 1, 2))
        assert "# Policy" in request.user_message
        assert "January 2, 2025" in request.user_message


class TestColorContext:
    """Tests for image prompt colour guidance."""

    def setup_method(self):
        """Set up test fixtures."""
        self.brand = BrandIdentity(colors=BrandColors(primary1="#112233"))

    def test_no_brand(self):
        assert color_context(None) == ""
        assert color_context(None, "#000000", "#ffffff") == ""

    def test_palette(self):
        text = color_context(self.brand)
        assert text.startswith("STRICT COLOR PALETTE: [#112233, ")
        assert "SOLID COLOR" in text

    def test_both_overrides(self):
        text = color_context(self.brand, "#101010", "#fafafa")
        assert "Background MUST be exactly #101010" in text
        assert "MUST be exactly #fafafa" in text

    def test_single_override_uses_palette(self):
        assert color_context(self.brand, background_override="#101010").startswith("STRICT COLOR PALETTE")


class TestStyleInstruction:
    """Tests for style recipe filling."""

    def setup_method(self):
        """Set up test fixtures."""
        self.styles = load_icon_styles()

    def test_letter_style_uses_initial(self, analysis):
        text = style_instruction(self.styles, "3D Letter", AssetType.ICON, "tabFlow", analysis)
        assert 'letter "T"' in text

    def test_subject_style(self, analysis):
        text = style_instruction(
            self.styles, "Modern Mascot", AssetType.ICON, "TabFlow", analysis, subject="origami owl"
        )
        assert "mascot of a origami owl" in text

    def test_user_subject_overrides_brainstorm(self, analysis):
        text = style_instruction(
            self.styles,
            "Modern Mascot",
            AssetType.ICON,
            "TabFlow",
            analysis,
            subject="origami owl",
            user_subject="paper crane",
        )
        assert "Premium icon of a paper crane" in text
        assert text.endswith(" Friendly, rounded, cute features.")
        assert "owl" not in text

    def test_user_subject_with_own_recipe(self, analysis):
        text = style_instruction(
            self.styles, "Modern Minimalist", AssetType.ICON, "TabFlow", analysis, user_subject="leaf"
        )
        assert text.startswith("STYLE: CLEAN HIGH-IMPACT SWISS VECTOR. Simplified symbol of a leaf.")

    def test_category_style(self, analysis):
        text = style_instruction(self.styles, "Modern Minimalist", AssetType.ICON, "TabFlow", analysis)
        assert "symbol for Productivity" in text

    def test_unknown_style_uses_default(self, analysis):
        text = style_instruction(self.styles, "Vaporwave", AssetType.ICON, "TabFlow", analysis)
        assert text == "STYLE: MODERN APP ICON. central logo mark."

    def test_banner_uses_brand_colours(self, analysis):
        brand = BrandIdentity(colors=BrandColors(primary1="#112233", primary2="#445566"))
        text = style_instruction(self.styles, "Abstract", AssetType.BANNER, "TabFlow", analysis, brand=brand)
        assert "#112233" in text and "#445566" in text


class TestImagePromptRequest:
    """Tests for the designer prompt request."""

    @pytest.mark.parametrize("reference", [None, "glossy clay render, soft rim light"])
    def test_reference_priority(self, reference):
        request = image_prompt_request(AssetType.ICON, "TabFlow", "PALETTE", "STYLE: x", reference)
        assert request.user_message.startswith("Role: Expert App Icon Designer.")
        assert request.user_message.endswith("OUTPUT RAW PROMPT ONLY.")
        assert (REFERENCE_PRIORITY in request.user_message) == bool(reference)
        if reference:
            assert reference in request.user_message

    def test_empty_colour_context_is_skipped(self):
        request = image_prompt_request(AssetType.ICON, "TabFlow", "", "STYLE: x")
        assert "  " not in request.user_message
