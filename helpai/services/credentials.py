"""
Provider key lookup: the user's stored key first, then the environment fallback.
Guests only ever get the environment key.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from . import store
from ..core.auth import Identity
from ..core.config import Settings
from ..core.exceptions import MissingCredentialError

logger = logging.getLogger(__name__)

# field on ApiKey → (field on Settings, display name)
PROVIDER_KEYS = {
    "together_api_key": ("together_api_key", "Together AI"),
    "stability_api_key": ("stability_api_key", "Stability AI"),
    "serper_api_key": ("serper_api_key", "Serper"),
}


async def find_key(db: AsyncSession, identity: Identity, field: str, settings: Settings) -> str:
    """Return the key to use, or "" when there is none."""
    settings_field, _ = PROVIDER_KEYS[field]
    fallback = getattr(settings, settings_field) or ""

    if identity.is_guest or identity.user is None:
        return fallback

    record = await store.get_api_keys(db, identity.user.id)
    stored = getattr(record, field, None) if record else None
    return stored or fallback


async def require_key(db: AsyncSession, identity: Identity, field: str, settings: Settings) -> str:
    """Like find_key, but raises MissingCredentialError when nothing is configured."""
    key = await find_key(db, identity, field, settings)
    if key:
        return key

    _, provider = PROVIDER_KEYS[field]
    if identity.is_guest:
        raise MissingCredentialError(
            provider,
            f"No {provider} API key available for guest users. "
            "Please log in and add your own API key in settings.",
        )
    raise MissingCredentialError(provider)
