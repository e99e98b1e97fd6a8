"""
Sign-in with Google or Discord (OAuth 2.0 authorization-code flow).

Uses raw httpx to stay consistent with the other provider clients:
  - build the authorization URL
  - exchange the code for an access token
  - fetch the provider profile (id, email, avatar)
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

from ..core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderConfig:
    name: str
    auth_url: str
    token_url: str
    profile_url: str
    scopes: tuple[str, ...]


PROVIDERS = {
    "google": ProviderConfig(
        name="google",
        auth_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        profile_url="https://www.googleapis.com/oauth2/v3/userinfo",
        scopes=("openid", "profile", "email"),
    ),
    "discord": ProviderConfig(
        name="discord",
        auth_url="https://discord.com/api/oauth2/authorize",
        token_url="https://discord.com/api/oauth2/token",
        profile_url="https://discord.com/api/users/@me",
        scopes=("identify", "email"),
    ),
}


@dataclass
class OAuthProfile:
    provider: str
    provider_id: str
    email: Optional[str] = None
    profile_picture: Optional[str] = None


class OAuthError(Exception):
    """Code exchange or profile fetch failed."""


_client: Optional[httpx.AsyncClient] = None


def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(timeout=httpx.Timeout(connect=10, read=30, write=30, pool=10))
    return _client


async def close_client():
    global _client
    if _client and not _client.is_closed:
        await _client.aclose()
        _client = None


# ── Configuration ────────────────────────────────────────────────────

def credentials(provider: str, settings: Settings) -> tuple[str, str]:
    """(client_id, client_secret) for a provider; empty strings when unset."""
    if provider == "google":
        return settings.google_client_id, settings.google_client_secret
    if provider == "discord":
        return settings.discord_client_id, settings.discord_client_secret
    return "", ""


def is_enabled(provider: str, settings: Settings) -> bool:
    client_id, client_secret = credentials(provider, settings)
    return provider in PROVIDERS and bool(client_id and client_secret)


def callback_url(provider: str, settings: Settings) -> str:
    return f"{settings.public_base_url.rstrip('/')}/api/auth/{provider}/callback"


# ── Flow ─────────────────────────────────────────────────────────────

def get_auth_url(provider: str, settings: Settings, state: str) -> str:
    """Authorization URL the browser is redirected to."""
    config = PROVIDERS[provider]
    client_id, _ = credentials(provider, settings)
    params = {
        "client_id": client_id,
        "redirect_uri": callback_url(provider, settings),
        "response_type": "code",
        "scope": " ".join(config.scopes),
        "state": state,
    }
    return f"{config.auth_url}?{urlencode(params)}"


async def exchange_code(provider: str, code: str, settings: Settings) -> str:
    """Trade the authorization code for an access token."""
    config = PROVIDERS[provider]
    client_id, client_secret = credentials(provider, settings)
    payload = {
        "code": code,
        "client_id": client_id,
        "client_secret": client_secret,
        "redirect_uri": callback_url(provider, settings),
        "grant_type": "authorization_code",
    }

    resp = await _get_client().post(
        config.token_url, data=payload, headers={"Accept": "application/json"}
    )
    if resp.status_code != 200:
        logger.error("%s token exchange failed (%d): %s", provider, resp.status_code, resp.text[:500])
        raise OAuthError(f"{provider} token exchange failed")

    token = resp.json().get("access_token")
    if not token:
        raise OAuthError(f"{provider} token response had no access_token")
    return token


def parse_profile(provider: str, data: dict) -> OAuthProfile:
    if provider == "google":
        return OAuthProfile(
            provider="google",
            provider_id=str(data["sub"]),
            email=data.get("email"),
            profile_picture=data.get("picture"),
        )

    # discord
    user_id = str(data["id"])
    avatar = data.get("avatar")
    return OAuthProfile(
        provider="discord",
        provider_id=user_id,
        email=data.get("email"),
        profile_picture=(
            f"https://cdn.discordapp.com/avatars/{user_id}/{avatar}.png" if avatar else None
        ),
    )


async def fetch_profile(provider: str, access_token: str) -> OAuthProfile:
    config = PROVIDERS[provider]
    resp = await _get_client().get(
        config.profile_url, headers={"Authorization": f"Bearer {access_token}"}
    )
    if resp.status_code != 200:
        logger.error("%s profile fetch failed (%d): %s", provider, resp.status_code, resp.text[:500])
        raise OAuthError(f"{provider} profile fetch failed")

    try:
        return parse_profile(provider, resp.json())
    except (KeyError, ValueError) as e:
        raise OAuthError(f"{provider} profile response malformed: {e}")
