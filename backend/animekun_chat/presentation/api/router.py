"""Top-level API router: mounts every endpoint under ``/api``."""

from fastapi import APIRouter

from animekun_chat.presentation.api.endpoints.chat import router as chat_router
from animekun_chat.presentation.api.endpoints.health import router as health_router

router = APIRouter(prefix="/api")
router.include_router(health_router)
router.include_router(chat_router)
