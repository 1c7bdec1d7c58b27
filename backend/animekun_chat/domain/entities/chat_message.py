"""Domain entities for chat messages and the tool-calling stream — framework-independent."""

from dataclasses import dataclass, field
from typing import Any

from .tool_result import ToolResult


@dataclass
class ToolCallFunction:
    """The function invocation details within a tool call."""

    name: str
    arguments: str  # JSON-encoded arguments string


@dataclass
class ToolCall:
    """A tool call requested by the LLM in its response."""

    id: str
    type: str  # "function"
    function: ToolCallFunction


@dataclass
class ChatMessage:
    """A single message in a chat conversation.

    For tool responses, set role="tool", provide tool_call_id, and
    set content to the JSON result string.
    """

    role: str  # "system" | "user" | "assistant" | "tool"
    content: str = ""
    tool_call_id: str | None = None  # Required when role == "tool"
    name: str | None = None  # Tool function name (for role == "tool")
    tool_calls: list[ToolCall] | None = None  # For assistant messages requesting tool calls


@dataclass
class TokenUsage:
    """Token usage statistics from a completion."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost: float | None = None  # Cost in USD, if available from provider


@dataclass
class StreamEvent:
    """One event emitted by the multi-step generation loop.

    type:
        "text"       : a text delta from the model (``text`` is set)
        "tool_result": a tool finished (``tool_call`` and ``tool_result`` are set)
        "step_finish": a model step ended (``finish_reason`` and ``step`` are set)
        "finish"     : the loop ended (``finish_reason``, ``step`` and ``usage`` are set)
    """

    type: str
    text: str = ""
    tool_call: ToolCall | None = None
    tool_result: ToolResult | None = None
    finish_reason: str | None = None
    step: int = 0
    usage: TokenUsage = field(default_factory=TokenUsage)
    metadata: dict[str, Any] = field(default_factory=dict)
