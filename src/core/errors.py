"""Error classification utilities for AI service and authentication errors."""

from enum import Enum
from typing import Literal

from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior


HTTP_TOO_MANY_REQUESTS = 429
HTTP_PAYMENT_REQUIRED = 402
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403


class ErrorCategory(Enum):
    """Categories of errors that can occur when calling the AI services."""

    THROTTLED = "throttled"
    SERVICE_QUOTA_EXCEEDED = "service_quota_exceeded"
    AUTHENTICATION_FAILED = "authentication_failed"
    NETWORK_ERROR = "network_error"
    INVALID_OUTPUT = "invalid_output"
    UNKNOWN = "unknown"


class AuthError(Exception):
    """Raised when sign-up or sign-in cannot be completed."""


_ERROR_PATTERNS: dict[
    Literal["quota", "throttled", "auth", "network"],
    dict[str, list[str] | set[str]],
] = {
    "quota": {
        "phrases": [
            "quota exceeded",
            "insufficient credits",
            "credit limit",
            "out of credits",
        ],
        "exception_types": set(),
    },
    "throttled": {
        "phrases": [
            "too many",
            "rate limit",
            "rate_limit_exceeded",
            "throttled",
        ],
        "exception_types": set(),
    },
    "auth": {
        "phrases": [
            "authentication failed",
            "invalid api key",
            "unauthorized",
            "credential not configured",
        ],
        "exception_types": {"AuthenticationError", "PermissionError"},
    },
    "network": {
        "phrases": [
            "connection",
            "timeout",
            "network",
            "unreachable",
        ],
        "exception_types": {"ConnectionError", "TimeoutError", "ConnectError", "ReadTimeout"},
    },
}

_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.THROTTLED: "Hai fatto troppe richieste (limite API). Aspetta {seconds} secondi e riprova.",
    ErrorCategory.SERVICE_QUOTA_EXCEEDED: "Il servizio AI ha esaurito la quota disponibile. Riprova più tardi.",
    ErrorCategory.AUTHENTICATION_FAILED: "Lo Chef AI non è configurato correttamente.",
    ErrorCategory.NETWORK_ERROR: "Impossibile connettersi allo Chef AI. Riprova più tardi.",
    ErrorCategory.INVALID_OUTPUT: "Lo Chef AI ha restituito una risposta non valida. Riprova.",
    ErrorCategory.UNKNOWN: "Impossibile connettersi allo Chef AI. Riprova più tardi.",
}


def _match_error_pattern(
    *,
    error_str: str,
    exception_type: str,
    pattern_type: Literal["quota", "throttled", "auth", "network"],
) -> bool:
    """Return True if the error matches the configured pattern type."""
    patterns = _ERROR_PATTERNS[pattern_type]
    return any(phrase in error_str for phrase in patterns["phrases"]) or exception_type in patterns["exception_types"]


def _classify_status_code(status_code: int) -> ErrorCategory | None:
    """Map a provider HTTP status code onto an error category."""
    if status_code == HTTP_TOO_MANY_REQUESTS:
        return ErrorCategory.THROTTLED
    if status_code == HTTP_PAYMENT_REQUIRED:
        return ErrorCategory.SERVICE_QUOTA_EXCEEDED
    if status_code in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
        return ErrorCategory.AUTHENTICATION_FAILED
    return None


def _classify(exception: Exception) -> ErrorCategory:
    """Classify an AI service error.

    The provider status code decides first. Exceptions that carry no status
    code (transport wrappers, proxies that only forward text) fall back to
    exception type and message phrases.

    Args:
        exception: The exception raised by the AI call

    Returns:
        The ErrorCategory for the exception
    """
    if isinstance(exception, ModelHTTPError):
        category = _classify_status_code(exception.status_code)
        if category is not None:
            return category

    if isinstance(exception, UnexpectedModelBehavior):
        return ErrorCategory.INVALID_OUTPUT

    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    if "429" in error_str or _match_error_pattern(
        error_str=error_str, exception_type=exception_type, pattern_type="throttled"
    ):
        return ErrorCategory.THROTTLED

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="quota"):
        return ErrorCategory.SERVICE_QUOTA_EXCEEDED

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="auth"):
        return ErrorCategory.AUTHENTICATION_FAILED

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="network"):
        return ErrorCategory.NETWORK_ERROR

    return ErrorCategory.UNKNOWN


def user_message_for(category: ErrorCategory, *, cooldown_seconds: int = 0) -> str:
    """Return the short, non-blocking message shown to the user for an error category."""
    return _MESSAGES[category].format(seconds=cooldown_seconds)


def classify_ai_error(exception: Exception, *, cooldown_seconds: int = 0) -> tuple[ErrorCategory, str]:
    """Classify an AI service error and return a user-friendly message.

    Args:
        exception: The exception raised by the AI call
        cooldown_seconds: Lockout length quoted in the throttle message

    Returns:
        Tuple of (ErrorCategory, user_friendly_message)
    """
    category = _classify(exception)
    return category, user_message_for(category, cooldown_seconds=cooldown_seconds)
