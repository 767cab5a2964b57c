"""ASO Forge - AI-assisted browser-extension store listing generator."""

__version__ = "0.1.0"

from .exceptions import (
    AsoForgeError,
    EmptyResponseError,
    IncompleteAnalysisError,
    JunkInputError,
    MalformedResponseError,
    NoImageProducedError,
)
from .response_normalizer import normalize_json_response
from .retry import RetryPolicy, is_rate_limit_error, with_retry
