"""OpenRouter API client — implements the ChatProvider interface.

Communicates with the OpenRouter API (https://openrouter.ai/api/v1)
using httpx SSE streaming chat completions, and runs the multi-step
tool-calling loop on top of it: text deltas are forwarded as they arrive,
tool-call deltas are accumulated until the step ends, then the requested
tools run concurrently and their results start the next step.
"""

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator
from typing import Any

import httpx

from animekun_chat.application.interfaces import ChatProvider, ToolHandler
from animekun_chat.domain.entities import (
    ChatMessage,
    StreamEvent,
    TokenUsage,
    ToolCall,
    ToolCallFunction,
    ToolResult,
)
from animekun_chat.domain.exceptions import ChatProviderError

logger = logging.getLogger(__name__)


class OpenRouterClient(ChatProvider):
    """Infrastructure adapter — connects to the OpenRouter API.

    Uses httpx with connection pooling for high-performance async requests.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        app_name: str = "Anime-Kun AI Chat",
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._app_name = app_name
        self._http_client = http_client

    @property
    def provider_name(self) -> str:
        return "openrouter"

    def _get_headers(self) -> dict[str, str]:
        """Standard headers for OpenRouter requests."""
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_name,
        }

    def _build_payload(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        stream: bool = False,
        temperature: float | None = None,
        max_tokens: int | None = None,
        tools: list[dict] | None = None,
    ) -> dict:
        """Build the request payload for the OpenRouter API."""
        payload: dict = {
            "model": model,
            "messages": [self._serialize_message(m) for m in messages],
        }
        if stream:
            payload["stream"] = True
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if tools:
            payload["tools"] = tools
        return payload

    @staticmethod
    def _serialize_message(msg: ChatMessage) -> dict:
        """Convert a domain ChatMessage to an API-compatible dict."""
        # Tool response message
        if msg.role == "tool":
            result: dict = {
                "role": "tool",
                "content": msg.content,
                "tool_call_id": msg.tool_call_id or "",
            }
            if msg.name:
                result["name"] = msg.name
            return result

        # Assistant message with tool calls
        if msg.role == "assistant" and msg.tool_calls:
            return {
                "role": "assistant",
                "content": msg.content or None,
                "tool_calls": [
                    {
                        "id": tc.id,
                        "type": tc.type,
                        "function": {
                            "name": tc.function.name,
                            "arguments": tc.function.arguments,
                        },
                    }
                    for tc in msg.tool_calls
                ],
            }

        return {"role": msg.role, "content": msg.content}

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=120.0)

    async def stream_with_tools(
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
        """Run the streaming tool-calling loop (see ``ChatProvider``)."""
        conversation = list(messages)  # Don't mutate the original
        total_usage = TokenUsage()
        url = f"{self._base_url}/chat/completions"
        finish_reason: str | None = None
        step = 0

        client = await self._get_client()
        should_close = self._http_client is None

        try:
            for step in range(1, max_steps + 1):
                payload = self._build_payload(
                    conversation,
                    model,
                    stream=True,
                    tools=tools,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
                text_parts: list[str] = []
                pending: dict[int, dict[str, str]] = {}
                finish_reason = None

                async with client.stream(
                    "POST", url, headers=self._get_headers(), json=payload
                ) as response:
                    if response.status_code != 200:
                        body = await response.aread()
                        self._raise_provider_error_from_bytes(response.status_code, body)

                    async for chunk in self._iter_chunks(response):
                        self._accumulate_usage(chunk.get("usage"), total_usage)
                        for choice in chunk.get("choices") or []:
                            delta = choice.get("delta") or {}
                            if delta.get("content"):
                                text_parts.append(delta["content"])
                                yield StreamEvent(type="text", text=delta["content"], step=step)
                            for tc_delta in delta.get("tool_calls") or []:
                                self._merge_tool_call_delta(pending, tc_delta)
                            if choice.get("finish_reason"):
                                finish_reason = choice["finish_reason"]

                tool_calls = self._build_tool_calls(pending, step)
                if tool_calls:
                    finish_reason = "tool_calls"
                finish_reason = finish_reason or "stop"
                yield StreamEvent(
                    type="step_finish",
                    finish_reason=finish_reason,
                    step=step,
                    metadata={"tool_calls": len(tool_calls)},
                )
                if not tool_calls:
                    break

                logger.info("Tool-calling step %d: %d tool call(s)", step, len(tool_calls))
                conversation.append(
                    ChatMessage(role="assistant", content="".join(text_parts), tool_calls=tool_calls)
                )

                # Run the batch concurrently, then feed results back in call order
                results = await asyncio.gather(
                    *(self._run_tool(tc, tool_handler) for tc in tool_calls)
                )
                results_by_id = {tc.id: result for tc, result in zip(tool_calls, results)}
                for tc in tool_calls:
                    result = results_by_id[tc.id]
                    conversation.append(
                        ChatMessage(
                            role="tool",
                            content=json.dumps(result.to_dict(), ensure_ascii=False, default=str),
                            tool_call_id=tc.id,
                            name=tc.function.name,
                        )
                    )
                    yield StreamEvent(type="tool_result", tool_call=tc, tool_result=result, step=step)
            else:
                if finish_reason == "tool_calls":
                    logger.warning(
                        "Tool-calling loop reached max steps (%d) while the model still requested tools",
                        max_steps,
                    )

            yield StreamEvent(
                type="finish",
                finish_reason=finish_reason or "stop",
                step=step,
                usage=total_usage,
                metadata={"max_steps_reached": finish_reason == "tool_calls"},
            )

        finally:
            if should_close:
                await client.aclose()

    async def _iter_chunks(self, response: httpx.Response) -> AsyncIterator[dict[str, Any]]:
        """Yield decoded SSE ``data:`` payloads, skipping keepalive comments."""
        async for line in response.aiter_lines():
            # Skip empty lines and OpenRouter keepalive comments
            if not line or line.startswith(":") or not line.startswith("data: "):
                continue
            data = line[6:].strip()
            if data == "[DONE]":
                break
            try:
                chunk = json.loads(data)
            except json.JSONDecodeError:
                logger.debug("Skipping malformed SSE line: %s", data[:200])
                continue
            if "error" in chunk:
                error = chunk["error"] or {}
                raise ChatProviderError(
                    provider=self.provider_name,
                    status_code=error.get("code", 500),
                    message=error.get("message", "Unknown error"),
                )
            yield chunk

    @staticmethod
    def _merge_tool_call_delta(pending: dict[int, dict[str, str]], delta: dict) -> None:
        """Accumulate one streamed tool-call fragment, keyed by its index."""
        entry = pending.setdefault(delta.get("index", 0), {"id": "", "name": "", "arguments": ""})
        if delta.get("id"):
            entry["id"] = delta["id"]
        function = delta.get("function") or {}
        if function.get("name"):
            entry["name"] += function["name"]
        if function.get("arguments"):
            entry["arguments"] += function["arguments"]

    @staticmethod
    def _build_tool_calls(pending: dict[int, dict[str, str]], step: int) -> list[ToolCall]:
        tool_calls: list[ToolCall] = []
        seen: set[str] = set()
        for index in sorted(pending):
            entry = pending[index]
            if not entry["name"]:
                continue
            call_id = entry["id"] or f"call_{step}_{index}"
            if call_id in seen:
                call_id = f"{call_id}_{index}"
            seen.add(call_id)
            tool_calls.append(
                ToolCall(
                    id=call_id,
                    type="function",
                    function=ToolCallFunction(name=entry["name"], arguments=entry["arguments"] or "{}"),
                )
            )
        return tool_calls

    @staticmethod
    async def _run_tool(tc: ToolCall, tool_handler: ToolHandler) -> ToolResult:
        """Execute one tool call; any failure becomes a failed ToolResult."""
        name = tc.function.name
        try:
            args = json.loads(tc.function.arguments)
        except json.JSONDecodeError as e:
            return ToolResult.fail(f"Invalid JSON arguments for tool '{name}': {e}")
        if not isinstance(args, dict):
            return ToolResult.fail(f"Arguments for tool '{name}' must be a JSON object")

        logger.info("Executing tool '%s' (call_id=%s)", name, tc.id)
        start = time.perf_counter()
        try:
            result = await tool_handler(name, args)
        except Exception as e:
            logger.exception("Tool '%s' failed", name)
            result = ToolResult.fail(str(e))
        logger.info(
            "Tool '%s' (call_id=%s) done in %.0fms — success=%s",
            name, tc.id, (time.perf_counter() - start) * 1000, result.success,
        )
        return result

    @staticmethod
    def _accumulate_usage(usage: dict | None, total: TokenUsage) -> None:
        if not usage:
            return
        total.prompt_tokens += usage.get("prompt_tokens", 0)
        total.completion_tokens += usage.get("completion_tokens", 0)
        total.total_tokens += usage.get("total_tokens", 0)
        if usage.get("cost") is not None:
            total.cost = (total.cost or 0.0) + usage["cost"]

    def _raise_provider_error_from_bytes(
        self, status_code: int, body: bytes
    ) -> None:
        """Raise ChatProviderError from raw response bytes."""
        try:
            data = json.loads(body)
            error = data.get("error", {})
            message = error.get("message", body.decode())
        except Exception:
            message = body.decode(errors="replace")

        raise ChatProviderError(
            provider=self.provider_name,
            status_code=status_code,
            message=message,
        )
