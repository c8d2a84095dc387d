"""Domain-specific errors for plan generation.

Every failure that can abort a generation or adaptation request inherits
from PlanGenerationError so callers can surface it as a single kind.
Field-level drift during coercion is never raised: it is defaulted.
"""

SNIPPET_MAX_CHARS = 300
DIAGNOSTIC_MAX_CHARS = 700


def truncate(text: str, limit: int) -> str:
    """Cut a diagnostic string to at most `limit` characters."""
    return text if len(text) <= limit else text[:limit]


class PlanGenerationError(Exception):
    """Base exception for all plan generation errors."""

    pass


class ConfigurationError(PlanGenerationError):
    """Raised when the text-generation credential or endpoint is missing."""

    pass


class UpstreamError(PlanGenerationError):
    """Raised when the text-generation backend answers with a non-success response.

    Attributes:
        status_code: HTTP status returned by the backend (None on transport failure)
        detail: Backend diagnostic, truncated
    """

    def __init__(self, message: str, status_code: int | None = None, detail: str = ""):
        self.status_code = status_code
        self.detail = truncate(detail, DIAGNOSTIC_MAX_CHARS)
        super().__init__(message)


class ContextTooLargeError(UpstreamError):
    """Raised when the backend rejects a prompt that exceeds its context window."""

    pass


class ParseError(PlanGenerationError):
    """Raised when no JSON object can be recovered from backend output.

    Attributes:
        reason: "no_object" when the text holds no brace, "malformed" otherwise
        snippet: Leading part of the offending text
    """

    def __init__(self, reason: str, snippet: str):
        self.reason = reason
        self.snippet = truncate(snippet, SNIPPET_MAX_CHARS)
        label = "no JSON object found" if reason == "no_object" else "JSON object could not be decoded"
        super().__init__(f"Backend output unusable ({label}): {self.snippet}")


class PlanRequestError(PlanGenerationError):
    """Raised when a request cannot be served (race too close, race session adapt)."""

    pass
