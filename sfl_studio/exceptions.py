"""
Custom Exception Types for SFL Studio

Every external call converts its failure into one of these, so services can
surface a single human-readable message plus a stable error code.
"""

from typing import Optional


class StudioError(Exception):
    """Base exception for all SFL Studio errors."""

    def __init__(self, message: str, error_code: str = "STUDIO_ERROR"):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class EmptyResponseError(StudioError):
    """Raised when the generative model returns no usable text."""

    def __init__(self, context: str, model: str = None):
        message = (
            f"Failed to get a valid response from the AI for {context}. "
            "The response was empty, which could be due to content safety filters."
        )
        super().__init__(message, error_code="EMPTY_RESPONSE")
        self.context = context
        self.model = model


class MalformedResponseError(StudioError):
    """Raised when text that must be JSON does not parse or validate."""

    def __init__(self, context: str, detail: str = None):
        message = f"Failed to parse the {context} from the AI. The model returned malformed JSON."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, error_code="MALFORMED_RESPONSE")
        self.context = context
        self.detail = detail


class InvalidFormatError(StudioError):
    """Raised when a generated line lacks the 'Speaker: text' shape."""

    def __init__(self, raw_text: str, message: str = "AI returned an invalid format for the next line."):
        super().__init__(message, error_code="INVALID_FORMAT")
        self.raw_text = raw_text


class MissingCredentialsError(StudioError):
    """Raised when search is not configured."""

    def __init__(self):
        super().__init__(
            "Search keys are missing. Please configure them in the Persona/Model settings step.",
            error_code="MISSING_CREDENTIALS",
        )


class ProviderError(StudioError):
    """Raised on a non-success status or explicit error payload from a provider."""

    def __init__(self, message: str, provider: str = None, status: Optional[int] = None):
        super().__init__(message, error_code="PROVIDER_ERROR")
        self.provider = provider
        self.status = status


class SessionNotFoundError(StudioError):
    """Raised when a session id is unknown."""

    def __init__(self, session_id: str):
        super().__init__(f"Session '{session_id}' not found", error_code="SESSION_NOT_FOUND")
        self.session_id = session_id


class PersonaNotFoundError(StudioError):
    """Raised when a persona cannot be found."""

    def __init__(self, persona_id: str):
        super().__init__(f"Persona '{persona_id}' not found", error_code="PERSONA_NOT_FOUND")
        self.persona_id = persona_id


class LineNotFoundError(StudioError):
    """Raised when a dialogue line cannot be found."""

    def __init__(self, line_id: str):
        super().__init__(f"Dialogue line '{line_id}' not found", error_code="LINE_NOT_FOUND")
        self.line_id = line_id


class ValidationError(StudioError):
    """Raised when a step gate or input check fails."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message, error_code="VALIDATION_ERROR")
        self.field = field


class ConfigurationError(StudioError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(message, error_code="CONFIGURATION_ERROR")
        self.config_key = config_key


NOT_FOUND_ERRORS = (SessionNotFoundError, PersonaNotFoundError, LineNotFoundError)


def create_error_response(error: Exception, include_traceback: bool = False) -> dict:
    """
    Create a consistent error response dict from an exception.

    Args:
        error: The exception to convert
        include_traceback: Whether to include traceback info (for debugging)

    Returns:
        Dict with error details
    """
    if isinstance(error, StudioError):
        response = {
            "success": False,
            "error": error.message,
            "error_code": error.error_code
        }
    else:
        response = {
            "success": False,
            "error": str(error),
            "error_code": "UNKNOWN_ERROR"
        }

    if include_traceback:
        import traceback
        response["traceback"] = traceback.format_exc()

    return response
