"""Tool registry: definitions, JSON schemas and guarded execution.

Every tool is a ``ToolDefinition``: a name, a description, a pydantic
input model and an async handler. The registry exposes the definitions in
OpenAI function-calling format and executes calls by name: arguments are
validated before the handler runs, and failures local to one call come back
as a failed ``ToolResult`` rather than an exception, so the model can react
to them.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx
from pydantic import BaseModel, ValidationError

from animekun_chat.application.interfaces import BackendClient, WebSearchClient
from animekun_chat.application.schemas import ImageAttachment
from animekun_chat.domain.entities import ToolResult
from animekun_chat.domain.exceptions import (
    BackendAPIError,
    DuplicateEntityError,
    ToolNotFoundError,
    ToolValidationError,
    WebSearchError,
)

logger = logging.getLogger(__name__)


@dataclass
class ToolContext:
    """Per-request collaborators available to tool handlers."""

    backend: BackendClient
    web_search: WebSearchClient | None = None
    attachment: ImageAttachment | None = None


ToolFn = Callable[[Any, ToolContext], Awaitable[ToolResult]]


@dataclass
class ToolDefinition:
    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolFn

    def validate(self, arguments: dict[str, Any] | None) -> BaseModel:
        try:
            return self.input_model.model_validate(arguments or {})
        except ValidationError as exc:
            raise ToolValidationError(self.name, _format_validation_errors(exc)) from exc

    def to_openai(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": _clean_schema(self.input_model.model_json_schema()),
            },
        }


def _format_validation_errors(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
        messages.append(f"{location}: {error.get('msg', 'invalid value')}")
    return messages


def _clean_schema(schema: Any) -> Any:
    """Drop pydantic ``title`` keys, which only add noise to the prompt."""
    if isinstance(schema, dict):
        return {
            key: _clean_schema(value)
            for key, value in schema.items()
            if not (key == "title" and isinstance(value, str))
        }
    if isinstance(schema, list):
        return [_clean_schema(item) for item in schema]
    return schema


class ToolRegistry:
    """Named collection of tools bound to one request's ``ToolContext``."""

    def __init__(self, context: ToolContext) -> None:
        self._context = context
        self._tools: dict[str, ToolDefinition] = {}

    def register(self, definition: ToolDefinition) -> None:
        if definition.name in self._tools:
            raise ValueError(f"Tool '{definition.name}' is already registered")
        self._tools[definition.name] = definition

    def tool(
        self, name: str, description: str, input_model: type[BaseModel]
    ) -> Callable[[ToolFn], ToolFn]:
        """Decorator form of ``register``."""

        def decorator(fn: ToolFn) -> ToolFn:
            self.register(ToolDefinition(name, description, input_model, fn))
            return fn

        return decorator

    def get(self, name: str) -> ToolDefinition:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def openai_definitions(self) -> list[dict[str, Any]]:
        return [definition.to_openai() for definition in self._tools.values()]

    async def execute(self, name: str, arguments: dict[str, Any] | None) -> ToolResult:
        """Validate and run one tool call; never raises for per-call failures."""
        try:
            definition = self.get(name)
            params = definition.validate(arguments)
        except (ToolNotFoundError, ToolValidationError) as exc:
            logger.warning("Rejected tool call: %s", exc)
            return ToolResult.fail(str(exc))

        start = time.perf_counter()
        try:
            result = await definition.handler(params, self._context)
        except DuplicateEntityError as exc:
            logger.info("Tool %s skipped duplicate: %s", name, exc)
            return ToolResult.fail(str(exc), data={"existingId": exc.existing_id})
        except BackendAPIError as exc:
            logger.warning("Tool %s backend error: %s", name, exc)
            return ToolResult.fail(str(exc))
        except httpx.TimeoutException as exc:
            logger.warning("Tool %s timed out: %s", name, exc)
            return ToolResult.fail(f"Request timed out: {exc.__class__.__name__}")
        except httpx.HTTPError as exc:
            logger.warning("Tool %s transport error: %s", name, exc)
            return ToolResult.fail(f"{exc.__class__.__name__}: {exc}")
        except WebSearchError as exc:
            logger.warning("Tool %s web search error: %s", name, exc)
            return ToolResult.fail(str(exc))

        logger.debug(
            "Tool %s finished in %.0fms (success=%s)",
            name, (time.perf_counter() - start) * 1000, result.success,
        )
        return result
