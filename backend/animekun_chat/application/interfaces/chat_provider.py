"""Abstract chat provider interface — port for AI provider adapters.

This interface enables multi-provider support. Each AI provider
(OpenRouter, Groq, OpenAI, etc.) implements this interface.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from animekun_chat.domain.entities import ChatMessage, StreamEvent, ToolResult

# Type alias for tool handler callbacks: (tool_name, parsed_args) -> ToolResult
ToolHandler = Callable[[str, dict[str, Any]], Awaitable[ToolResult]]


class ChatProvider(ABC):
    """Port — defines what the application layer needs from any chat provider."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this provider (e.g. 'openrouter', 'groq')."""
        ...

    @abstractmethod
    def stream_with_tools(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        tools: list[dict],
        tool_handler: ToolHandler,
        temperature: float | None = None,
        max_tokens: int | None = None,
        max_steps: int = 5,
    ) -> AsyncIterator[StreamEvent]:
        """Run the multi-step tool-calling loop as a stream of events.

        Each step is one streaming completion. Text deltas are yielded as
        ``text`` events while they arrive. When the model finishes a step
        with tool calls, the calls are executed through ``tool_handler``,
        their results are appended to the conversation and the next step
        starts. The loop ends on any other finish reason or after
        ``max_steps`` steps, with a final ``finish`` event.

        Args:
            messages: The conversation, system prompt included.
            model: The model identifier.
            tools: Tool definitions in OpenAI function-calling format.
            tool_handler: Async callback (name, args) -> ToolResult.
            temperature: Sampling temperature (0.0–2.0).
            max_tokens: Maximum tokens per step.
            max_steps: Safety limit on model rounds.

        Raises:
            ChatProviderError: If the provider returns an error.
        """
        ...
