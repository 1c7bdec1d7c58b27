"""Health check endpoint — no dependencies on external services, always available."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from animekun_chat.application.services import RateLimiter
from animekun_chat.config import Settings, get_settings
from animekun_chat.infrastructure.dependencies import get_rate_limiter
from animekun_chat.presentation.api.cors import cors_headers

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(
    request: Request,
    settings: Settings = Depends(get_settings),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> JSONResponse:
    """Returns the current application health status."""
    return JSONResponse(
        {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.app_env,
            "rate_limiter": "enabled" if limiter.enabled else "disabled",
        },
        headers=cors_headers(request.headers.get("origin"), settings.cors_origins),
    )
