"""
Request identity: a registered user (session cookie or Bearer token) or a guest.

Guests are marked by the `x-guest-mode: true` header. They never touch the
database and only ever use environment-level provider keys.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .flags import FeatureFlags
from .security import read_session_token
from ..models.user import User
from ..services import store

logger = logging.getLogger(__name__)

GUEST_HEADER = "x-guest-mode"


@dataclass
class Identity:
    user: Optional[User] = None
    is_guest: bool = False

    @property
    def user_id(self) -> Optional[int]:
        return self.user.id if self.user else None


GUEST = Identity(user=None, is_guest=True)


def extract_token(authorization: str = "", cookie: str = "") -> str:
    """Bearer header wins over the session cookie."""
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise PermissionError("Invalid Authorization header. Use: Bearer <token>")
        return token
    return cookie or ""


async def resolve_identity(
    db: AsyncSession,
    settings: Settings,
    flags: FeatureFlags,
    authorization: str = "",
    cookie: str = "",
    guest_header: str = "",
) -> Identity:
    """
    Resolve who is calling.
    Raises PermissionError when there is neither a valid session nor guest mode.
    """
    if guest_header.lower() == "true" and flags.enable_guest_mode:
        return GUEST

    token = extract_token(authorization, cookie)
    if not token:
        raise PermissionError("Unauthorized")

    user_id = read_session_token(token, settings)
    user = await store.get_user(db, user_id)
    if user is None:
        logger.info("Session for unknown user %s rejected", user_id)
        raise PermissionError("Unauthorized")

    return Identity(user=user)
