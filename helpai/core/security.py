"""
Password hashing (bcrypt) and signed session tokens (HS256 JWT).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import jwt, JWTError

from .config import Settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
OAUTH_STATE_TTL = timedelta(minutes=10)


# ── Passwords ────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """False for OAuth-only accounts (no hash) and for corrupt hashes."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


# ── Session tokens ───────────────────────────────────────────────────

def create_session_token(user_id: int, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(days=settings.session_max_age_days),
        "typ": "session",
    }
    return jwt.encode(payload, settings.session_secret, algorithm=ALGORITHM)


def read_session_token(token: str, settings: Settings) -> int:
    """Return the user id. Raises PermissionError for bad, expired or foreign tokens."""
    try:
        payload = jwt.decode(token, settings.session_secret, algorithms=[ALGORITHM])
    except JWTError as e:
        raise PermissionError(f"Invalid session: {e}")

    if payload.get("typ") != "session":
        raise PermissionError("Invalid session: wrong token type")
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise PermissionError("Invalid session: missing subject")


# ── OAuth state ──────────────────────────────────────────────────────

def create_oauth_state(provider: str, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload = {"provider": provider, "exp": now + OAUTH_STATE_TTL, "typ": "oauth_state"}
    return jwt.encode(payload, settings.session_secret, algorithm=ALGORITHM)


def verify_oauth_state(state: str, provider: str, settings: Settings) -> bool:
    try:
        payload = jwt.decode(state, settings.session_secret, algorithms=[ALGORITHM])
    except JWTError:
        return False
    return payload.get("typ") == "oauth_state" and payload.get("provider") == provider
