"""Market analysis of a free-text extension idea."""

import logging

from pydantic import ValidationError

from . import prompts
from .ai_client import GenerationClient
from .exceptions import (
    EmptyResponseError,
    IncompleteAnalysisError,
    JunkInputError,
    MalformedResponseError,
)
from .models import AnalysisResult, RawAnalysisResponse
from .response_normalizer import normalize_json_response
from .retry import RetryPolicy, retry_attempts

logger = logging.getLogger(__name__)

MAX_INPUT_CHARS = 25000
TRUNCATION_MARKER = "...[truncated]"
MAX_ANALYSIS_ATTEMPTS = 3

_INVALID_OUTPUT_ERRORS = (EmptyResponseError, MalformedResponseError, IncompleteAnalysisError)


def truncate_input(text: str, limit: int = MAX_INPUT_CHARS) -> str:
    """Cut oversized input to ``limit`` characters and append a truncation marker."""
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


def is_complete_analysis(raw: RawAnalysisResponse) -> bool:
    """
    Decide whether a raw analysis payload can be used.

    A payload must say whether the input is junk. Junk payloads need nothing
    else; real ones need every narrative field and non-empty feature and
    keyword lists.
    """
    if raw.is_junk is None:
        return False
    if raw.is_junk:
        return True
    return bool(
        raw.category
        and raw.target_audience
        and raw.core_features
        and raw.primary_keywords
        and raw.seo_strategy
        and raw.market_analysis
        and raw.customer_psychology
    )


def to_analysis_result(raw: RawAnalysisResponse) -> AnalysisResult:
    """Map a complete, non-junk raw payload into the domain model."""
    return AnalysisResult(
        category=raw.category or "Productivity",
        target_audience=raw.target_audience or "General Users",
        core_features=list(raw.core_features or []),
        primary_keywords=list(raw.primary_keywords or []),
        tone=raw.tone_text() or "Professional",
        seo_strategy=raw.seo_strategy or "",
        market_analysis=raw.market_analysis or "",
        customer_psychology=raw.customer_psychology or "",
    )


class IdeaAnalyzer:
    """Turns an idea description into a validated ``AnalysisResult``."""

    def __init__(self, client: GenerationClient, max_attempts: int = MAX_ANALYSIS_ATTEMPTS):
        """
        Initialize the analyzer.

        Args:
            client: Generation client used for the analysis requests
            max_attempts: Total analysis requests allowed for incomplete output
        """
        self.client = client
        self.max_attempts = max_attempts

    async def analyze(self, idea_text: str) -> AnalysisResult:
        """
        Analyze an extension idea.

        Args:
            idea_text: Free-text description of the extension

        Returns:
            The validated analysis

        Raises:
            ValueError: If the input is empty
            JunkInputError: If the model classified the input as not a real project
            IncompleteAnalysisError: If no complete analysis was obtained
        """
        if not idea_text or not idea_text.strip():
            raise ValueError("Input text cannot be empty")

        text = truncate_input(idea_text)
        if len(text) != len(idea_text):
            logger.info(f"Input truncated from {len(idea_text)} to {MAX_INPUT_CHARS} characters")

        async def attempt(n: int) -> RawAnalysisResponse:
            logger.debug(f"Analysis attempt {n + 1}/{self.max_attempts}")
            request = prompts.analysis_request(text, retry_hint=n > 0)
            response = await self.client.generate_text(request)
            return self._parse(response.text, n + 1)

        policy = RetryPolicy(
            retries=self.max_attempts - 1,
            base_delay=0.0,
            retry_on=lambda e: isinstance(e, _INVALID_OUTPUT_ERRORS),
            label="Analysis output incomplete or malformed",
        )

        try:
            raw = await retry_attempts(attempt, policy)
        except _INVALID_OUTPUT_ERRORS as e:
            logger.error(f"Analysis failed after {self.max_attempts} attempts: {e}")
            raise IncompleteAnalysisError(attempts=self.max_attempts) from e

        if raw.is_junk:
            logger.info("Input classified as junk")
            raise JunkInputError()

        analysis = to_analysis_result(raw)
        logger.info(f"Analysis complete: category={analysis.category}")
        return analysis

    def _parse(self, text, attempt: int) -> RawAnalysisResponse:
        data = normalize_json_response(text)
        if not isinstance(data, dict):
            raise MalformedResponseError("Analysis output is not a JSON object", raw_text=text)

        try:
            raw = RawAnalysisResponse.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(f"Analysis output has wrong field types: {e}", raw_text=text) from e

        if not is_complete_analysis(raw):
            raise IncompleteAnalysisError("Analysis output is missing required fields", attempts=attempt)
        return raw
