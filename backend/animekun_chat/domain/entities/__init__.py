from .auth_context import ANONYMOUS_USER_ID, AuthContext
from .chat_message import ChatMessage, StreamEvent, TokenUsage, ToolCall, ToolCallFunction
from .rate_limit import RateLimitResult
from .tool_result import ToolResult

__all__ = [
    "ANONYMOUS_USER_ID",
    "AuthContext",
    "ChatMessage",
    "StreamEvent",
    "TokenUsage",
    "ToolCall",
    "ToolCallFunction",
    "RateLimitResult",
    "ToolResult",
]
