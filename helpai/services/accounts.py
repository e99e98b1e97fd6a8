"""
Account creation and OAuth sign-in linking.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from . import store
from .oauth import OAuthProfile
from ..models.user import User

logger = logging.getLogger(__name__)


async def sign_in_with_provider(db: AsyncSession, profile: OAuthProfile) -> User:
    """
    Find or create the user for an OAuth profile.

      1. Known (provider, provider_id) → refresh the profile picture.
      2. Email already registered → link this provider to that account.
      3. Otherwise → new user named `{provider}_{provider_id}`.
    """
    user = await store.get_user_by_provider(db, profile.provider, profile.provider_id)
    if user:
        if profile.profile_picture and profile.profile_picture != user.profile_picture:
            await store.update_user(db, user, profile_picture=profile.profile_picture)
        return user

    if profile.email:
        user = await store.get_user_by_email(db, profile.email)
        if user:
            logger.info("Linking %s account to existing user %s", profile.provider, user.id)
            return await store.update_user(
                db,
                user,
                provider=profile.provider,
                provider_id=profile.provider_id,
                profile_picture=profile.profile_picture or user.profile_picture,
            )

    return await store.create_user(
        db,
        username=f"{profile.provider}_{profile.provider_id}",
        email=profile.email,
        profile_picture=profile.profile_picture,
        provider=profile.provider,
        provider_id=profile.provider_id,
    )
