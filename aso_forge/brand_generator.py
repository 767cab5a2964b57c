"""Brand identity (palette, typography, style) generation."""

import logging
from typing import Any, Dict, Optional

from . import prompts
from .ai_client import GenerationClient
from .exceptions import MalformedResponseError
from .models import AnalysisResult, BrandIdentity
from .response_normalizer import normalize_json_response

logger = logging.getLogger(__name__)


def brand_identity_from_raw(data: Dict[str, Any]) -> BrandIdentity:
    """
    Build a brand identity, defaulting each missing or invalid field on its own.

    A malformed colour falls back to that slot's default, blank fonts fall
    back to Inter/Roboto, and non-object sections are treated as absent.
    """
    colors = data.get("colors")
    typography = data.get("typography")
    return BrandIdentity.model_validate(
        {
            "colors": colors if isinstance(colors, dict) else {},
            "typography": typography if isinstance(typography, dict) else {},
            "visual_style_description": data.get("visualStyleDescription")
            or data.get("visual_style_description"),
        }
    )


class BrandGenerator:
    """Generates a brand identity from the project analysis."""

    def __init__(self, client: GenerationClient):
        self.client = client

    async def generate(
        self, analysis: AnalysisResult, name: str, guidance: Optional[str] = None
    ) -> BrandIdentity:
        """
        Generate a brand identity.

        Args:
            analysis: Project analysis (tone and psychology)
            name: Selected extension name
            guidance: Optional user direction for the palette

        Returns:
            Brand identity with every slot filled
        """
        request = prompts.brand_identity_request(analysis, name, guidance)
        response = await self.client.generate_text(request)
        data = normalize_json_response(response.text)
        if not isinstance(data, dict):
            raise MalformedResponseError("Brand identity is not a JSON object", raw_text=response.text)

        identity = brand_identity_from_raw(data)
        logger.info(
            f"Generated brand identity: primary={identity.colors.primary1}, "
            f"fonts={identity.typography.heading_font}/{identity.typography.body_font}"
        )
        return identity
