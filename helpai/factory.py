"""
FastAPI application factory.
"""

import logging
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .core.config import get_settings
from .core.database import init_db, close_db
from .core.exceptions import HelpAIError
from .api.router import router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Help.ai",
        description="Chat assistant backend",
        version="1.0.0",
        docs_url="/docs" if settings.env == "development" else None,
        redoc_url="/redoc" if settings.env == "development" else None,
    )

    # ── CORS ─────────────────────────────────────────────────────
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Code downloads ───────────────────────────────────────────
    downloads_dir = Path(settings.downloads_dir)
    downloads_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/downloads", StaticFiles(directory=str(downloads_dir)), name="downloads")

    # ── Errors ───────────────────────────────────────────────────
    @app.exception_handler(HelpAIError)
    async def helpai_error(request: Request, exc: HelpAIError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Startup ──────────────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup():
        configure_logging(settings.log_level)
        logger.info("Starting Help.ai (env=%s)", settings.env)

        # Create database tables
        await init_db()

        from .core.flags import get_flags
        flags = get_flags()
        logger.info(
            "Flags: web_search=%s memory=%s guest_mode=%s",
            flags.use_web_search, flags.use_memory, flags.enable_guest_mode,
        )
        logger.info(
            "Env keys: together=%s serper=%s stability=%s",
            bool(settings.together_api_key), bool(settings.serper_api_key),
            bool(settings.stability_api_key),
        )
        logger.info("Help.ai is ready")

    # ── Shutdown ─────────────────────────────────────────────────
    @app.on_event("shutdown")
    async def on_shutdown():
        from .services import images, llm, oauth, search
        await llm.close_client()
        await search.close_client()
        await images.close_client()
        await oauth.close_client()
        await close_db()
        logger.info("Help.ai shut down")

    # ── Routes ───────────────────────────────────────────────────
    app.include_router(router)

    return app
