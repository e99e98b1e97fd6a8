"""
FastAPI dependencies. Injected into route handlers.
"""

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import GUEST_HEADER, Identity, resolve_identity
from .config import Settings, get_settings
from .database import get_db as _get_db
from .flags import FeatureFlags, get_flags
from ..models.user import User


async def get_db() -> AsyncSession:
    """Yields an async DB session per request."""
    async for session in _get_db():
        yield session


def settings_dep() -> Settings:
    return get_settings()


def flags_dep() -> FeatureFlags:
    return get_flags()


async def get_identity(
    request: Request,
    authorization: str = Header(default=""),
    x_guest_mode: str = Header(default="", alias=GUEST_HEADER),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(settings_dep),
    flags: FeatureFlags = Depends(flags_dep),
) -> Identity:
    """
    Resolve the caller from the Authorization header or session cookie.
    Returns the guest identity when `x-guest-mode: true` is sent.
    """
    try:
        return await resolve_identity(
            db,
            settings,
            flags,
            authorization=authorization,
            cookie=request.cookies.get(settings.session_cookie_name, ""),
            guest_header=x_guest_mode,
        )
    except PermissionError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_user(
    identity: Identity = Depends(get_identity),
) -> User:
    """Same as get_identity, but guests are rejected."""
    if identity.is_guest or identity.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return identity.user
