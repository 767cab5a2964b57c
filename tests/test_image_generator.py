"""Tests for icon and banner image generation."""

import pytest

from aso_forge.ai_client import InlineImage
from aso_forge.exceptions import NoImageProducedError
from aso_forge.image_generator import STYLE_REFERENCE_FALLBACK, ImageGenerator
from aso_forge.models import AssetType, BrandIdentity
from aso_forge.prompts import REFERENCE_PRIORITY

from conftest import chat_response, image_response


def _user_messages(openai_client):
    return [call.kwargs["messages"][1]["content"] for call in openai_client.chat.completions.create.call_args_list]


class TestBrainstormSubject:
    """Tests for icon subject brainstorming."""

    @pytest.fixture
    def generator(self, generation_client):
        return ImageGenerator(generation_client)

    @pytest.mark.asyncio
    async def test_subject_is_unquoted(self, generator, openai_client, analysis):
        openai_client.chat.completions.create.return_value = chat_response('"origami owl"')
        assert await generator.brainstorm_subject(analysis, "TabFlow", "Modern Mascot") == "origami owl"

    @pytest.mark.asyncio
    async def test_empty_answer_uses_empty_fallback(self, generator, openai_client, analysis):
        openai_client.chat.completions.create.return_value = chat_response("  ")
        assert await generator.brainstorm_subject(analysis, "TabFlow", "Modern Mascot") == "friendly creature"

    @pytest.mark.asyncio
    async def test_failure_uses_error_fallback(self, generator, openai_client, analysis):
        openai_client.chat.completions.create.side_effect = RuntimeError("boom")
        assert await generator.brainstorm_subject(analysis, "TabFlow", "3D Shapes") == "modern shape"

    @pytest.mark.asyncio
    async def test_style_without_subject(self, generator, openai_client, analysis):
        assert await generator.brainstorm_subject(analysis, "TabFlow", "3D Letter") is None
        openai_client.chat.completions.create.assert_not_called()


class TestDraftImagePrompt:
    """Tests for image prompt drafting."""

    @pytest.fixture
    def generator(self, generation_client):
        return ImageGenerator(generation_client)

    @pytest.mark.asyncio
    async def test_mascot_prompt_uses_brainstormed_subject(self, generator, openai_client, analysis):
        openai_client.chat.completions.create.side_effect = [
            chat_response("origami owl"),
            chat_response("A glossy origami owl icon"),
        ]

        prompt = await generator.draft_image_prompt(
            "Modern Mascot", analysis, "TabFlow", brand=BrandIdentity()
        )

        assert prompt == "A glossy origami owl icon"
        designer_message = _user_messages(openai_client)[1]
        assert "origami owl" in designer_message
        assert "STRICT COLOR PALETTE" in designer_message

    @pytest.mark.asyncio
    async def test_user_subject_skips_brainstorm(self, generator, openai_client, analysis):
        openai_client.chat.completions.create.return_value = chat_response("prompt")

        await generator.draft_image_prompt(
            "Modern Mascot", analysis, "TabFlow", user_subject="paper crane", style_reference="clay"
        )

        assert openai_client.chat.completions.create.call_count == 1
        message = _user_messages(openai_client)[0]
        assert "paper crane" in message
        assert REFERENCE_PRIORITY in message

    @pytest.mark.asyncio
    async def test_banner_skips_brainstorm(self, generator, openai_client, analysis):
        openai_client.chat.completions.create.return_value = chat_response("wide banner")
        prompt = await generator.draft_image_prompt(
            "Modern Mascot", analysis, "TabFlow", asset_type=AssetType.BANNER, brand=BrandIdentity()
        )
        assert prompt == "wide banner"
        assert openai_client.chat.completions.create.call_count == 1

    @pytest.mark.asyncio
    async def test_empty_prompt_falls_back(self, generator, openai_client, analysis):
        openai_client.chat.completions.create.return_value = chat_response("")
        prompt = await generator.draft_image_prompt("3D Letter", analysis, "TabFlow")
        assert prompt == "A 3D Letter icon for TabFlow"


class TestImageRendering:
    """Tests for image and variant rendering."""

    @pytest.fixture
    def generator(self, generation_client):
        return ImageGenerator(generation_client)

    @pytest.mark.asyncio
    async def test_logo_variants(self, generator, openai_client):
        openai_client.images.generate.return_value = image_response(b"logo")

        variants = await generator.generate_logo_variants("a fox")

        assert len(variants) == 4
        assert all(v == InlineImage("image/png", b"logo") for v in variants)
        assert openai_client.images.generate.call_count == 4

    @pytest.mark.asyncio
    async def test_no_image_is_an_error(self, generator, openai_client):
        openai_client.images.generate.return_value = image_response()
        with pytest.raises(NoImageProducedError):
            await generator.generate_image("a fox")

    @pytest.mark.asyncio
    async def test_one_failed_variant_fails_batch(self, generator, openai_client):
        openai_client.images.generate.side_effect = [
            image_response(b"a"),
            image_response(),
            image_response(b"c"),
            image_response(b"d"),
        ]
        with pytest.raises(NoImageProducedError):
            await generator.generate_logo_variants("a fox")

    @pytest.mark.asyncio
    async def test_style_reference_fallback(self, generator, openai_client):
        openai_client.chat.completions.create.return_value = chat_response(None)
        description = await generator.analyze_style_reference(InlineImage("image/png", b"png"))
        assert description == STYLE_REFERENCE_FALLBACK
