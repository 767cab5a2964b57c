"""Icon and banner imagery: prompt drafting, subject brainstorming and rendering."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from . import prompts
from .ai_client import GenerationClient, InlineImage
from .config import load_icon_styles
from .exceptions import NoImageProducedError
from .models import AnalysisResult, AssetType, BrandIdentity

logger = logging.getLogger(__name__)

LOGO_VARIANT_COUNT = 4
STYLE_REFERENCE_FALLBACK = "Clean, modern style."


class ImageGenerator:
    """Drafts image prompts with the text model and renders them with the image model."""

    def __init__(self, client: GenerationClient, styles: Optional[Dict[str, Any]] = None):
        """
        Initialize the image generator.

        Args:
            client: Generation client
            styles: Icon style recipes; loaded from the bundled YAML when omitted
        """
        self.client = client
        self.styles = styles if styles is not None else load_icon_styles()

    def _brainstorm_recipe(self, style: str) -> Optional[Dict[str, str]]:
        entry = self.styles.get("styles", {}).get(style) or {}
        kind = entry.get("brainstorm")
        if not kind:
            return None
        return self.styles.get("brainstorm", {}).get(kind)

    async def brainstorm_subject(
        self, analysis: AnalysisResult, app_name: str, style: str
    ) -> Optional[str]:
        """
        Brainstorm a non-cliché icon subject for styles that need one.

        Never raises: a failed request yields the style's fallback subject.

        Returns:
            The subject, or None when ``style`` does not use a subject
        """
        recipe = self._brainstorm_recipe(style)
        if recipe is None:
            return None

        request = prompts.subject_brainstorm_request(
            analysis, app_name, recipe["subject_type"], recipe.get("noun", "shape")
        )
        try:
            response = await self.client.generate_text(request)
        except Exception as e:
            logger.warning(f"Icon subject brainstorming failed, using fallback: {e}")
            return recipe["error_fallback"]

        subject = (response.text or "").strip().strip('"')
        if not subject:
            return recipe["empty_fallback"]
        logger.info(f"Brainstormed icon subject: {subject}")
        return subject

    async def draft_image_prompt(
        self,
        style: str,
        analysis: AnalysisResult,
        app_name: str,
        asset_type: AssetType = AssetType.ICON,
        brand: Optional[BrandIdentity] = None,
        style_reference: Optional[str] = None,
        user_subject: Optional[str] = None,
        background_override: Optional[str] = None,
        subject_override: Optional[str] = None,
    ) -> str:
        """
        Draft a finished image prompt.

        Args:
            style: Visual style name (e.g. "Modern Mascot")
            analysis: Project analysis
            app_name: Extension name
            asset_type: ICON or BANNER
            brand: Brand identity providing the palette
            style_reference: Description of an uploaded style reference
            user_subject: Subject chosen by the user; skips brainstorming
            background_override: Exact background colour
            subject_override: Exact subject colour

        Returns:
            Prompt text for the image model
        """
        subject = None
        if asset_type == AssetType.ICON and not user_subject:
            subject = await self.brainstorm_subject(analysis, app_name, style)

        style_text = prompts.style_instruction(
            self.styles, style, asset_type, app_name, analysis,
            brand=brand, subject=subject, user_subject=user_subject,
        )
        colors = prompts.color_context(brand, background_override, subject_override)
        request = prompts.image_prompt_request(asset_type, app_name, colors, style_text, style_reference)

        response = await self.client.generate_text(request)
        prompt = (response.text or "").strip()
        return prompt or f"A {style} icon for {app_name}"

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str = "1:1",
        reference_image: Optional[InlineImage] = None,
    ) -> InlineImage:
        """
        Render ``prompt`` and return the first inline image.

        Raises:
            NoImageProducedError: If the response carries no image
        """
        response = await self.client.generate_image(prompt, aspect_ratio, reference_image)
        image = response.first_image()
        if image is None:
            raise NoImageProducedError()
        return image

    async def generate_logo_variants(
        self,
        prompt: str,
        count: int = LOGO_VARIANT_COUNT,
        reference_image: Optional[InlineImage] = None,
    ) -> List[InlineImage]:
        """Render ``count`` variants concurrently; any failure fails the batch."""
        logger.info(f"Generating {count} logo variants")
        return list(
            await asyncio.gather(
                *(self.generate_image(prompt, "1:1", reference_image) for _ in range(count))
            )
        )

    async def analyze_style_reference(self, image: InlineImage) -> str:
        """Describe a reference image's visual style (no colours) for prompt reuse."""
        response = await self.client.generate_text(prompts.style_reference_request(image))
        return (response.text or "").strip() or STYLE_REFERENCE_FALLBACK
