"""
Authentication API.

POST /api/auth/register             — Create a local account and sign in
POST /api/auth/login                — Username + password sign in
POST /api/auth/logout               — Clear the session cookie
GET  /api/user                      — Current user
GET  /api/auth/{provider}           — Redirect to Google / Discord
GET  /api/auth/{provider}/callback  — OAuth redirect target
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.responses import RedirectResponse
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.dependencies import get_db, require_user, settings_dep
from ..core.schemas import CamelModel, UserOut
from ..core.security import (
    create_oauth_state,
    create_session_token,
    hash_password,
    verify_oauth_state,
    verify_password,
)
from ..models.user import User
from ..services import accounts, oauth, store

logger = logging.getLogger(__name__)

auth_router = APIRouter(tags=["auth"])

LOGIN_SUCCESS_REDIRECT = "/"
LOGIN_FAILURE_REDIRECT = "/auth"


class RegisterRequest(CamelModel):
    username: str = Field(min_length=1, max_length=64)
    # bcrypt only looks at the first 72 bytes
    password: str = Field(min_length=1, max_length=72)
    email: Optional[str] = None


class LoginRequest(CamelModel):
    username: str
    password: str


def _set_session_cookie(response: Response, user: User, settings: Settings) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        create_session_token(user.id, settings),
        max_age=settings.session_max_age_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.env == "production",
        samesite="lax",
        path="/",
    )


# ── Local accounts ───────────────────────────────────────────────────

@auth_router.post("/auth/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(settings_dep),
):
    if await store.get_user_by_username(db, request.username):
        raise HTTPException(status_code=400, detail="Username already exists")

    email = request.email or None
    if email and await store.get_user_by_email(db, email):
        raise HTTPException(status_code=400, detail="Email already exists")

    user = await store.create_user(
        db,
        username=request.username,
        password_hash=hash_password(request.password),
        email=email,
        provider="local",
    )
    _set_session_cookie(response, user, settings)
    return UserOut.of(user)


@auth_router.post("/auth/login", response_model=UserOut)
async def login(
    request: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(settings_dep),
):
    user = await store.get_user_by_username(db, request.username)
    if user is None or not verify_password(request.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid username or password")

    _set_session_cookie(response, user, settings)
    logger.info("User %s logged in", user.id)
    return UserOut.of(user)


@auth_router.post("/auth/logout")
async def logout(
    response: Response,
    settings: Settings = Depends(settings_dep),
):
    response.delete_cookie(settings.session_cookie_name, path="/")
    return {"message": "Logged out successfully"}


@auth_router.get("/user", response_model=UserOut)
async def current_user(user: User = Depends(require_user)):
    return UserOut.of(user)


# ── OAuth ────────────────────────────────────────────────────────────

def _require_provider(provider: str, settings: Settings) -> None:
    if not oauth.is_enabled(provider, settings):
        raise HTTPException(status_code=404, detail=f"Sign-in with {provider} is not available")


@auth_router.get("/auth/{provider}")
async def oauth_start(
    provider: str,
    settings: Settings = Depends(settings_dep),
):
    """Redirect the browser to the provider's consent screen."""
    _require_provider(provider, settings)
    state = create_oauth_state(provider, settings)
    return RedirectResponse(oauth.get_auth_url(provider, settings, state), status_code=302)


@auth_router.get("/auth/{provider}/callback")
async def oauth_callback(
    provider: str,
    code: str = Query(default=""),
    state: str = Query(default=""),
    error: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(settings_dep),
):
    """
    Provider redirects here with ?code=...&state=...
    Success signs the user in and sends them to the app; anything else
    sends them back to the sign-in page.
    """
    _require_provider(provider, settings)

    if error or not code:
        logger.warning("%s sign-in denied: %s", provider, error or "no code")
        return RedirectResponse(LOGIN_FAILURE_REDIRECT, status_code=302)

    if not verify_oauth_state(state, provider, settings):
        logger.warning("%s sign-in rejected: bad state", provider)
        return RedirectResponse(LOGIN_FAILURE_REDIRECT, status_code=302)

    try:
        access_token = await oauth.exchange_code(provider, code, settings)
        profile = await oauth.fetch_profile(provider, access_token)
    except oauth.OAuthError as e:
        logger.warning("%s sign-in failed: %s", provider, e)
        return RedirectResponse(LOGIN_FAILURE_REDIRECT, status_code=302)

    user = await accounts.sign_in_with_provider(db, profile)
    redirect = RedirectResponse(LOGIN_SUCCESS_REDIRECT, status_code=302)
    _set_session_cookie(redirect, user, settings)
    logger.info("User %s signed in with %s", user.id, provider)
    return redirect
