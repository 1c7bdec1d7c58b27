"""Chat orchestration use case: system prompt, tool loop, deadline and completion check.

The orchestrator is provider-agnostic: it receives a ChatProvider via
dependency injection and a ToolRegistry bound to the current request.
It turns the provider's event stream into the plain text stream sent to
the admin, bounded by a wall-clock ceiling.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing

from animekun_chat.application.interfaces import ChatProvider
from animekun_chat.application.prompts import SYSTEM_PROMPT, build_image_message
from animekun_chat.application.schemas import ChatMessageSchema, ImageAttachment
from animekun_chat.application.tools import ToolRegistry
from animekun_chat.domain.entities import ChatMessage
from animekun_chat.infrastructure.logging.colored_logger import ChatPipelineLogger, ChatStage

logger = logging.getLogger(__name__)
plog = ChatPipelineLogger("ChatOrchestrator")


def check_completion(text: str, tool_results: int) -> bool:
    """Return True when the final answer respects the formatting contract.

    A turn that used tools must end with some text, and that text must not
    be the raw ``{"success": ...}`` envelope of a tool result.
    """
    stripped = text.strip()
    if tool_results and not stripped:
        plog.step_warning(
            ChatStage.FORMAT,
            "Formatting contract violated: tools ran but no final text was produced",
            tool_results=tool_results,
        )
        return False
    if stripped.startswith("{") and '"success"' in stripped:
        plog.step_warning(
            ChatStage.FORMAT,
            "Formatting contract violated: final text is raw tool JSON",
            chars=len(stripped),
        )
        return False
    return True


class ChatOrchestrator:
    """Application service — runs one chat turn against the model and the tools."""

    def __init__(
        self,
        provider: ChatProvider,
        *,
        model: str,
        temperature: float = 0.7,
        max_steps: int = 5,
        max_tokens: int | None = 4096,
        max_duration_s: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._provider = provider
        self._model = model
        self._temperature = temperature
        self._max_steps = max_steps
        self._max_tokens = max_tokens
        self._max_duration_s = max_duration_s
        self._clock = clock

    @staticmethod
    def build_messages(
        history: list[ChatMessageSchema], image: ImageAttachment | None = None
    ) -> list[ChatMessage]:
        """System prompt + conversation + optional attached-image note (new list)."""
        messages = [ChatMessage(role="system", content=SYSTEM_PROMPT)]
        messages.extend(ChatMessage(role=m.role, content=m.content) for m in history)
        if image is not None:
            messages.append(ChatMessage(role="system", content=build_image_message(image)))
        return messages

    async def stream(
        self,
        history: list[ChatMessageSchema],
        registry: ToolRegistry,
        *,
        image: ImageAttachment | None = None,
    ) -> AsyncIterator[str]:
        """Yield the answer text as it is generated.

        Provider errors propagate to the caller. Reaching the deadline is not
        an error: the stream simply ends with whatever text was already sent.
        """
        messages = self.build_messages(history, image)
        deadline = self._clock() + self._max_duration_s
        text_parts: list[str] = []
        tool_results = 0
        start = time.perf_counter()

        plog.step_start(
            ChatStage.MODEL,
            "Generating answer",
            model=self._model,
            messages=len(messages),
            tools=len(registry),
        )

        events = self._provider.stream_with_tools(
            messages,
            self._model,
            tools=registry.openai_definitions(),
            tool_handler=registry.execute,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            max_steps=self._max_steps,
        )

        async with aclosing(events):
            while True:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    self._log_deadline(len(text_parts))
                    break
                try:
                    event = await asyncio.wait_for(anext(events), timeout=remaining)
                except StopAsyncIteration:
                    break
                except TimeoutError:
                    self._log_deadline(len(text_parts))
                    break

                if event.type == "text":
                    text_parts.append(event.text)
                    yield event.text
                elif event.type == "tool_result":
                    tool_results += 1
                    result = event.tool_result
                    name = event.tool_call.function.name if event.tool_call else "?"
                    if result is not None and result.success:
                        plog.step_complete(ChatStage.TOOL, name, step=event.step)
                    else:
                        plog.step_warning(
                            ChatStage.TOOL,
                            f"{name} failed",
                            step=event.step,
                            error=result.error if result else None,
                        )
                elif event.type == "step_finish":
                    plog.detail(
                        f"Step {event.step} finished",
                        finish_reason=event.finish_reason,
                        tool_calls=event.metadata.get("tool_calls", 0),
                    )
                elif event.type == "finish":
                    if event.metadata.get("max_steps_reached"):
                        plog.step_warning(
                            ChatStage.MODEL,
                            "Step ceiling reached while the model still requested tools",
                            max_steps=self._max_steps,
                        )
                    plog.stats(
                        steps=event.step,
                        prompt_tokens=event.usage.prompt_tokens,
                        completion_tokens=event.usage.completion_tokens,
                    )

        check_completion("".join(text_parts), tool_results)
        plog.step_complete(
            ChatStage.COMPLETE,
            "Answer streamed",
            chars=sum(len(part) for part in text_parts),
            tool_results=tool_results,
            duration=f"{time.perf_counter() - start:.2f}s",
        )

    def _log_deadline(self, chunks: int) -> None:
        plog.step_warning(
            ChatStage.MODEL,
            f"Wall-clock ceiling of {self._max_duration_s:.0f}s reached, closing the stream",
            chunks_sent=chunks,
        )
