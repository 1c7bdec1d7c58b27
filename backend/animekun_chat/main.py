"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from animekun_chat.config import get_settings
from animekun_chat.infrastructure.dependencies import (
    build_http_client,
    build_rate_limit_store,
    build_rate_limiter,
)
from animekun_chat.infrastructure.logging.log_config import setup_logging
from animekun_chat.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: logging, shared HTTP pool, rate-limit store."""
    settings = get_settings()
    setup_logging(settings)

    # 1. Shared connection pool for OpenRouter, the backend and web search
    app.state.http_client = build_http_client()

    # 2. Rate limiter (Redis store when REDIS_URL is set)
    store = build_rate_limit_store(settings)
    if store is not None and not await store.ping():
        logger.warning(
            "Redis at %s is not reachable yet; limiter policy on error is '%s'",
            settings.redis_url, settings.on_limiter_error,
        )
    app.state.rate_limit_store = store
    app.state.rate_limiter = build_rate_limiter(settings, store)

    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY is not configured; /api/chat will answer 500")
    logger.info(
        "%s %s started (env=%s, model=%s, backend=%s)",
        settings.app_title, settings.app_version, settings.app_env,
        settings.chat_model, settings.backend_api_base,
    )

    yield

    # Shutdown
    await app.state.http_client.aclose()
    if store is not None:
        await store.close()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS headers are set by the endpoints themselves (see presentation.api.cors)
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "animekun_chat.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
