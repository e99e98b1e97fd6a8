"""
Main API router. Mounts all sub-routers under /api.
"""

from fastapi import APIRouter

router = APIRouter()


# ── Health (no auth) ─────────────────────────────────────────────────

@router.get("/health")
async def health():
    return {"status": "ok", "service": "helpai"}


# ── Auth config (no auth) ───────────────────────────────────────────

@router.get("/api/auth/providers")
async def auth_providers():
    """Which sign-in buttons the client should show."""
    from ..core.config import get_settings
    from ..services.oauth import PROVIDERS, is_enabled

    settings = get_settings()
    return {
        "local": True,
        **{name: is_enabled(name, settings) for name in PROVIDERS},
    }


# ── API routes (each router declares its own auth) ──────────────────

from .auth import auth_router
from .chat import chat_router
from .conversations import conversations_router
from .api_keys import api_keys_router
from .search import search_router
from .images import images_router
from .code import code_router

router.include_router(auth_router, prefix="/api")
router.include_router(chat_router, prefix="/api")
router.include_router(conversations_router, prefix="/api")
router.include_router(api_keys_router, prefix="/api")
router.include_router(search_router, prefix="/api")
router.include_router(images_router, prefix="/api")
router.include_router(code_router, prefix="/api")
