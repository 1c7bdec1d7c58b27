from .chat_orchestrator import ChatOrchestrator, check_completion
from .error_classifier import ClassifiedError, ErrorCategory, classify_error, stream_error_line
from .rate_limiter import RateLimiter
from .response_formatter import ensure_user_friendly_response, process_stream_chunk

__all__ = [
    "ChatOrchestrator",
    "check_completion",
    "ClassifiedError",
    "ErrorCategory",
    "classify_error",
    "stream_error_line",
    "RateLimiter",
    "ensure_user_friendly_response",
    "process_stream_chunk",
]
