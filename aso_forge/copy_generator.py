"""Listing copy: name and short-description candidates, long description,
privacy policy and per-slide headlines."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from . import prompts
from .ai_client import GenerationClient, InlineImage
from .exceptions import EmptyResponseError, MalformedResponseError
from .models import AnalysisResult, GeneratedName, NameType, ScoredDescription, SlideCopy
from .response_normalizer import normalize_json_response, strip_code_fence

logger = logging.getLogger(__name__)

TOP_PICK_THRESHOLD = 90.0
LONG_DESCRIPTION_FALLBACK = "Failed to generate description."

C = TypeVar("C", GeneratedName, ScoredDescription)
M = TypeVar("M", bound=BaseModel)


def rank_candidates(candidates: Sequence[C]) -> List[C]:
    """Sort candidates by score, highest first; ties keep their generated order."""
    return sorted(candidates, key=lambda c: c.score, reverse=True)


def top_pick(candidates: Sequence[C]) -> Optional[C]:
    """The highest-ranked candidate if it scores above the top-pick threshold."""
    ranked = rank_candidates(candidates)
    if ranked and ranked[0].score > TOP_PICK_THRESHOLD:
        return ranked[0]
    return None


def group_names_by_type(names: Sequence[GeneratedName]) -> Dict[NameType, List[GeneratedName]]:
    """Split name candidates into ranked SEO and CREATIVE groups."""
    return {
        name_type: rank_candidates([n for n in names if n.type == name_type])
        for name_type in NameType
    }


def _candidate_items(data: Any, key: str) -> List[Any]:
    """Accept either ``{key: [...]}`` or a bare array."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get(key), list):
        return data[key]
    raise MalformedResponseError(f"Expected a list of {key}")


def _parse_candidates(data: Any, key: str, model: Type[M]) -> List[M]:
    items = []
    for raw in _candidate_items(data, key):
        try:
            items.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping invalid {key} candidate: {e}")

    if not items:
        raise MalformedResponseError(f"No valid {key} candidates in response")
    return items


class CopyGenerator:
    """Generates every piece of listing text."""

    def __init__(self, client: GenerationClient):
        self.client = client

    async def generate_names(self, analysis: AnalysisResult) -> List[GeneratedName]:
        """
        Generate SEO and creative name candidates.

        Args:
            analysis: Validated project analysis

        Returns:
            Name candidates in generated order (unranked, not deduplicated)
        """
        response = await self.client.generate_text(prompts.names_request(analysis))
        data = normalize_json_response(response.text)
        names = _parse_candidates(data, "names", GeneratedName)
        logger.info(f"Generated {len(names)} name candidates")
        return names

    async def generate_short_descriptions(
        self, analysis: AnalysisResult, name: str
    ) -> List[ScoredDescription]:
        """Generate scored short-description candidates for ``name``."""
        response = await self.client.generate_text(prompts.short_descriptions_request(analysis, name))
        data = normalize_json_response(response.text)
        descriptions = _parse_candidates(data, "descriptions", ScoredDescription)

        too_long = [d for d in descriptions if len(d.text) >= prompts.SHORT_DESCRIPTION_MAX_CHARS]
        if too_long:
            logger.warning(
                f"{len(too_long)} short description(s) exceed "
                f"{prompts.SHORT_DESCRIPTION_MAX_CHARS - 1} characters"
            )

        logger.info(f"Generated {len(descriptions)} short description candidates")
        return descriptions

    async def generate_long_description(
        self, analysis: AnalysisResult, name: str, short_description: str
    ) -> str:
        """Generate the plain-text store listing body."""
        request = prompts.long_description_request(analysis, name, short_description)
        response = await self.client.generate_text(request)
        text = strip_code_fence(response.text or "")
        if not text:
            logger.warning("Long description generation returned no text")
            return LONG_DESCRIPTION_FALLBACK
        return text

    async def generate_privacy_policy(
        self,
        app_name: str,
        analysis: AnalysisResult,
        manifest: Optional[Dict[str, Any]] = None,
        today: Optional[date] = None,
    ) -> str:
        """
        Generate a Markdown privacy policy justifying the manifest permissions.

        Args:
            app_name: Extension name
            analysis: Project analysis (core features)
            manifest: Parsed manifest.json; missing means no permissions
            today: Policy date (defaults to today)

        Raises:
            EmptyResponseError: If the model returned no policy text
        """
        request = prompts.privacy_policy_request(app_name, analysis, manifest, today or date.today())
        response = await self.client.generate_text(request)
        return self._policy_text(response.text)

    async def enhance_privacy_policy(
        self, current_text: str, app_name: str, today: Optional[date] = None
    ) -> str:
        """Refine an existing privacy policy."""
        request = prompts.enhance_privacy_policy_request(current_text, app_name, today or date.today())
        response = await self.client.generate_text(request)
        return self._policy_text(response.text)

    def _policy_text(self, text: Optional[str]) -> str:
        policy = strip_code_fence(text or "")
        if not policy:
            raise EmptyResponseError("Privacy policy generation returned no text")
        return policy

    async def generate_screenshot_copy(
        self, image: InlineImage, app_name: str, tone: str
    ) -> SlideCopy:
        """Write slide copy by looking at a screenshot (or the logo in icon mode)."""
        response = await self.client.generate_text(
            prompts.screenshot_copy_request(image, app_name, tone)
        )
        return self._slide_copy(response.text)

    async def generate_small_tile_copy(
        self, analysis: AnalysisResult, app_name: str, short_description: str
    ) -> SlideCopy:
        response = await self.client.generate_text(
            prompts.small_tile_copy_request(analysis, app_name, short_description)
        )
        return self._slide_copy(response.text)

    def _slide_copy(self, text: Optional[str]) -> SlideCopy:
        data = normalize_json_response(text)
        if not isinstance(data, dict):
            raise MalformedResponseError("Slide copy is not a JSON object", raw_text=text)
        return SlideCopy.model_validate(data)
