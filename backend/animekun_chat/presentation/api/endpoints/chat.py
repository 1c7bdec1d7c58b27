"""Admin chat endpoint: auth check, rate limiting, streamed answer."""

import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from animekun_chat.application.schemas import ChatRequest, ErrorResponse
from animekun_chat.application.services import (
    ChatOrchestrator,
    RateLimiter,
    classify_error,
    stream_error_line,
)
from animekun_chat.config import Settings, get_settings
from animekun_chat.domain.entities import ANONYMOUS_USER_ID, AuthContext, RateLimitResult
from animekun_chat.infrastructure.dependencies import (
    ToolRegistryFactory,
    get_chat_orchestrator,
    get_rate_limiter,
    get_tool_registry_factory,
)
from animekun_chat.infrastructure.logging.colored_logger import ChatPipelineLogger, ChatStage
from animekun_chat.presentation.api.cors import cors_headers

logger = logging.getLogger(__name__)
plog = ChatPipelineLogger("ChatEndpoint")

router = APIRouter(tags=["Chat"])


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def _error_response(
    status_code: int,
    error: str,
    message: str,
    headers: dict[str, str],
    details: str | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def _quota_message(result: RateLimitResult) -> str:
    limit = "Infinity" if result.limit is None else result.limit
    return f"Quota exceeded: {limit} requests. Try again after {result.reset.isoformat()}."


async def _relay(first: str | None, stream: AsyncIterator[str]) -> AsyncIterator[str]:
    """Forward the primed stream; late failures become a trailing error line."""
    try:
        if first is not None:
            yield first
        async for chunk in stream:
            yield chunk
    except Exception as exc:
        plog.step_error(ChatStage.ERROR, "Chat stream failed after it started", error=exc)
        yield stream_error_line(classify_error(exc))
    finally:
        await stream.aclose()


@router.options("/chat")
async def chat_preflight(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Response:
    """CORS preflight."""
    return Response(
        status_code=200,
        headers=cors_headers(request.headers.get("origin"), settings.cors_origins),
    )


@router.post("/chat")
async def chat(
    request: Request,
    settings: Settings = Depends(get_settings),
    limiter: RateLimiter = Depends(get_rate_limiter),
    orchestrator: ChatOrchestrator = Depends(get_chat_orchestrator),
    registry_factory: ToolRegistryFactory = Depends(get_tool_registry_factory),
) -> Response:
    """Run one admin chat turn and stream the answer as plain text.

    The bearer token is checked before the body is read. The first chunk
    of the answer is awaited before the response starts, so failures while
    connecting to the model still produce a proper HTTP error.
    """
    headers = cors_headers(request.headers.get("origin"), settings.cors_origins)

    token = _bearer_token(request.headers.get("authorization"))
    if token is None:
        return _error_response(401, "Unauthorized", "Missing or invalid bearer token.", headers)

    try:
        body = ChatRequest.model_validate_json(await request.body())
    except ValidationError as exc:
        return _error_response(
            422,
            "Invalid request",
            "Le corps de la requête est invalide.",
            headers,
            details=str(exc) if settings.is_development else None,
        )

    user_id = request.headers.get("x-user-id") or ANONYMOUS_USER_ID
    auth = AuthContext(token=token, user_id=user_id)
    plog.step_start(
        ChatStage.REQUEST,
        "Chat request accepted",
        messages=len(body.messages),
        user_id=user_id,
        image=body.image is not None,
    )

    rate = await limiter.check(user_id)
    headers.update(rate.to_headers())
    if not rate.success:
        plog.step_warning(ChatStage.RATE_LIMIT, "Request rejected", user_id=user_id, error=rate.error)
        return _error_response(429, "Rate limit exceeded", _quota_message(rate), headers)
    plog.detail("Rate limit ok", remaining=rate.remaining)

    if not settings.openrouter_api_key:
        plog.step_error(ChatStage.ERROR, "OPENROUTER_API_KEY is not configured")
        return _error_response(
            500, "Missing API key", "La clé API du service IA n'est pas configurée.", headers
        )

    registry = registry_factory(auth, body.image)
    stream = orchestrator.stream(body.messages, registry, image=body.image)
    try:
        first = await anext(stream, None)
    except Exception as exc:
        await stream.aclose()
        classified = classify_error(exc)
        plog.step_error(
            ChatStage.ERROR, f"Chat failed ({classified.category.value})", error=exc
        )
        return _error_response(
            classified.status_code,
            classified.error,
            classified.message,
            headers,
            details=str(exc) if settings.is_development else None,
        )

    return StreamingResponse(
        _relay(first, stream),
        media_type="text/plain; charset=utf-8",
        headers=headers,
    )
