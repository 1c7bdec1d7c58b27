"""FastAPI dependency injection — wires infrastructure to application layer.

Process-wide resources (the shared httpx client, the rate limiter and its
Redis store) are created in the lifespan and kept on ``app.state``; when
the lifespan did not run (tests, scripts) they are created on first use.
Everything bound to the caller (bearer token, attached image) is built
per request.
"""

import logging
from collections.abc import AsyncGenerator, Callable

import httpx
from fastapi import Depends, Request

from animekun_chat.application.schemas import ImageAttachment
from animekun_chat.application.services import ChatOrchestrator, RateLimiter
from animekun_chat.application.tools import ToolContext, ToolRegistry, build_tool_registry
from animekun_chat.config import Settings, get_settings
from animekun_chat.domain.entities import AuthContext
from animekun_chat.infrastructure.backend_api import NestApiClient
from animekun_chat.infrastructure.openrouter import OpenRouterClient
from animekun_chat.infrastructure.ratelimit import RedisRateLimitStore
from animekun_chat.infrastructure.web_search import TavilyClient

logger = logging.getLogger(__name__)

ToolRegistryFactory = Callable[[AuthContext, ImageAttachment | None], ToolRegistry]


def build_http_client() -> httpx.AsyncClient:
    """Shared pooled client; per-call timeouts are set by each adapter."""
    return httpx.AsyncClient(timeout=httpx.Timeout(120.0, connect=10.0))


def build_rate_limit_store(settings: Settings) -> RedisRateLimitStore | None:
    if not settings.redis_url:
        return None
    return RedisRateLimitStore.from_url(settings.redis_url)


def build_rate_limiter(settings: Settings, store: RedisRateLimitStore | None) -> RateLimiter:
    return RateLimiter(
        store,
        max_requests=settings.rate_limit_max,
        window_seconds=settings.rate_limit_window_s,
        prefix=settings.rate_limit_prefix,
        on_unavailable=settings.on_limiter_unavailable,
        on_error=settings.on_limiter_error,
    )


def _shared_http_client(request: Request) -> httpx.AsyncClient | None:
    return getattr(request.app.state, "http_client", None)


async def get_rate_limiter(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> RateLimiter:
    """Provides the process-wide RateLimiter."""
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        store = build_rate_limit_store(settings)
        limiter = build_rate_limiter(settings, store)
        request.app.state.rate_limit_store = store
        request.app.state.rate_limiter = limiter
    return limiter


async def get_chat_orchestrator(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[ChatOrchestrator, None]:
    """Provides a ChatOrchestrator with OpenRouter as the chat provider."""
    provider = OpenRouterClient(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        app_name=settings.openrouter_app_name,
        http_client=_shared_http_client(request),
    )
    yield ChatOrchestrator(
        provider,
        model=settings.chat_model,
        temperature=settings.chat_temperature,
        max_steps=settings.chat_max_steps,
        max_tokens=settings.chat_max_tokens,
        max_duration_s=settings.chat_max_duration_s,
    )


async def get_tool_registry_factory(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> ToolRegistryFactory:
    """Provides a factory building the tool catalog for one caller."""
    http_client = _shared_http_client(request)
    web_search = None
    if settings.tavily_api_key:
        web_search = TavilyClient(
            api_key=settings.tavily_api_key,
            base_url=settings.tavily_base_url,
            http_client=http_client,
        )

    def factory(auth: AuthContext, attachment: ImageAttachment | None) -> ToolRegistry:
        backend = NestApiClient(
            settings.backend_api_base,
            auth,
            timeout_s=settings.backend_timeout_s,
            http_client=http_client,
        )
        return build_tool_registry(
            ToolContext(backend=backend, web_search=web_search, attachment=attachment)
        )

    return factory
