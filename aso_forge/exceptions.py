"""Exceptions for the ASO Forge listing generator."""

from typing import Optional


class AsoForgeError(Exception):
    """Base class for all ASO Forge errors."""
    pass


class EmptyResponseError(AsoForgeError):
    """Raised when the model returned no output at all."""

    def __init__(self, message: str = "Empty response from AI"):
        super().__init__(message)


class MalformedResponseError(AsoForgeError):
    """Raised when model output cannot be repaired into valid JSON."""

    def __init__(
        self,
        message: str = "Failed to parse AI response. The model output was malformed.",
        raw_text: Optional[str] = None
    ):
        """
        Initialize MalformedResponseError.

        Args:
            message: Human-readable error message
            raw_text: The raw model output that failed to parse
        """
        super().__init__(message)
        self.raw_text = raw_text


class IncompleteAnalysisError(AsoForgeError):
    """Raised when the analysis flow cannot obtain a complete result."""

    def __init__(self, message: str = "Unable to obtain analysis data.", attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts

    def __str__(self) -> str:
        msg = super().__str__()
        if self.attempts:
            msg = f"{msg} (after {self.attempts} attempts)"
        return msg


JUNK_INPUT_GUIDANCE = (
    "Add a real project please! Our AI needs a clear description of your "
    "extension's purpose to perform its magic."
)


class JunkInputError(AsoForgeError):
    """Raised when the model classifies the input as not a real project idea.

    This is a user-facing rejection rather than a system failure; callers
    should show ``guidance`` instead of an error trace.
    """

    def __init__(self, message: str = "Junk input detected.", guidance: str = JUNK_INPUT_GUIDANCE):
        super().__init__(message)
        self.guidance = guidance


class NoImageProducedError(AsoForgeError):
    """Raised when an image response carries no inline image payload."""

    def __init__(self, message: str = "No image generated"):
        super().__init__(message)


class ProjectStoreError(AsoForgeError):
    """Raised when the remote project store cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        msg = super().__str__()
        if self.status_code is not None:
            msg = f"{msg} (HTTP {self.status_code})"
        return msg
