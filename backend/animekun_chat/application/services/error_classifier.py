"""Maps failures of a chat request to an HTTP status and a French message.

Classification is a case-insensitive substring match over
``"<ExceptionType>: <message>"``, checked category by category in the order
below; the first match wins. Anything unmatched is an internal error.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    QUOTA = "quota"
    AUTH = "auth"
    CONTEXT = "context"
    NETWORK = "network"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ClassifiedError:
    category: ErrorCategory
    status_code: int
    error: str
    message: str


_RULES: list[tuple[ErrorCategory, tuple[str, ...], int, str, str]] = [
    (
        ErrorCategory.QUOTA,
        ("quota_exceeded", "resource_exhausted", "quota", "billing", "insufficient credits"),
        503,
        "AI quota exceeded",
        "Le quota du service IA est atteint. Réessayez plus tard ou contactez un administrateur.",
    ),
    (
        ErrorCategory.AUTH,
        ("permission_denied", "api_key_invalid", "invalid api key", "unauthorized", "forbidden"),
        403,
        "AI authorization error",
        "Erreur d'autorisation auprès du service IA. Vérifiez la clé API configurée.",
    ),
    (
        ErrorCategory.CONTEXT,
        ("context length", "context_length", "maximum context", "too many tokens", "token limit"),
        413,
        "Conversation too long",
        "La conversation est trop longue. Commencez une nouvelle conversation.",
    ),
    (
        ErrorCategory.NETWORK,
        (
            "econnrefused", "etimedout", "enotfound", "timeout", "timed out",
            "connecterror", "network", "fetch failed",
        ),
        503,
        "Service unavailable",
        "Le service est momentanément injoignable. Vérifiez la connexion et réessayez.",
    ),
    (
        ErrorCategory.UPSTREAM,
        ("backendapierror", "api error", "chatprovidererror", "bad gateway", "upstream"),
        502,
        "Upstream error",
        "Le service distant a renvoyé une erreur. Réessayez dans quelques instants.",
    ),
]

_INTERNAL = ClassifiedError(
    ErrorCategory.INTERNAL,
    500,
    "Internal server error",
    "Une erreur interne est survenue. Réessayez ou contactez un administrateur.",
)


def classify_error(exc: BaseException) -> ClassifiedError:
    """Classify ``exc``; never raises."""
    haystack = f"{type(exc).__name__}: {exc}".lower()
    for category, needles, status_code, error, message in _RULES:
        if any(needle in haystack for needle in needles):
            return ClassifiedError(category, status_code, error, message)
    return _INTERNAL


def stream_error_line(classified: ClassifiedError) -> str:
    """Text appended to a response whose stream already started."""
    return f"\n\n⚠️ {classified.message}"
