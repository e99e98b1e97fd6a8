"""
Data access for users, conversations, messages and API keys.

Plain async functions over the request's AsyncSession. They flush but never
commit; the request-scoped session in core.database commits once at the end.
Ownership checks are the caller's job.
"""

import logging
from typing import Optional

from sqlalchemy import select, update, delete as sql_delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import utcnow
from ..models.conversation import Conversation, Message
from ..models.user import ApiKey, User

logger = logging.getLogger(__name__)

API_KEY_FIELDS = ("together_api_key", "stability_api_key", "serper_api_key")


# ── Users ────────────────────────────────────────────────────────────

async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.get(User, user_id)


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_provider(db: AsyncSession, provider: str, provider_id: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.provider == provider, User.provider_id == provider_id)
    )
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    username: str,
    password_hash: Optional[str] = None,
    email: Optional[str] = None,
    profile_picture: Optional[str] = None,
    provider: Optional[str] = None,
    provider_id: Optional[str] = None,
) -> User:
    user = User(
        username=username,
        password_hash=password_hash,
        email=email,
        profile_picture=profile_picture,
        provider=provider,
        provider_id=provider_id,
    )
    db.add(user)
    await db.flush()
    logger.info("Created user %s (%s, provider=%s)", user.id, username, provider or "local")
    return user


async def update_user(db: AsyncSession, user: User, **fields) -> User:
    for name, value in fields.items():
        if not hasattr(User, name):
            raise AttributeError(f"User has no field {name!r}")
        setattr(user, name, value)
    await db.flush()
    return user


# ── Conversations ────────────────────────────────────────────────────

async def get_conversation(db: AsyncSession, conversation_id: int) -> Optional[Conversation]:
    return await db.get(Conversation, conversation_id)


async def list_conversations(db: AsyncSession, user_id: int) -> list[Conversation]:
    result = await db.execute(
        select(Conversation)
        .where(Conversation.user_id == user_id)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
    )
    return list(result.scalars().all())


async def create_conversation(db: AsyncSession, user_id: int, title: str) -> Conversation:
    now = utcnow()
    convo = Conversation(user_id=user_id, title=title, created_at=now, updated_at=now)
    db.add(convo)
    await db.flush()
    logger.info("Created conversation %s for user %s", convo.id, user_id)
    return convo


async def update_conversation(db: AsyncSession, convo: Conversation, title: str) -> Conversation:
    convo.title = title
    convo.updated_at = utcnow()
    await db.flush()
    return convo


async def delete_conversation(db: AsyncSession, convo: Conversation) -> None:
    """Delete messages first, then the conversation. Two statements, no savepoint."""
    await db.execute(
        sql_delete(Message).where(Message.conversation_id == convo.id)
    )
    await db.delete(convo)
    await db.flush()
    logger.info("Deleted conversation %s", convo.id)


# ── Messages ─────────────────────────────────────────────────────────

async def get_message(db: AsyncSession, message_id: int) -> Optional[Message]:
    return await db.get(Message, message_id)


async def get_messages(db: AsyncSession, conversation_id: int) -> list[Message]:
    result = await db.execute(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.timestamp.asc(), Message.id.asc())
    )
    return list(result.scalars().all())


async def create_message(
    db: AsyncSession,
    conversation_id: int,
    role: str,
    content: str,
    metadata: Optional[dict] = None,
) -> Message:
    """Append a message and bump the conversation's updated_at."""
    now = utcnow()
    msg = Message(
        conversation_id=conversation_id,
        role=role,
        content=content,
        timestamp=now,
        metadata_=metadata,
    )
    db.add(msg)
    await db.execute(
        update(Conversation)
        .where(Conversation.id == conversation_id)
        .values(updated_at=now)
    )
    await db.flush()
    return msg


# ── API keys ─────────────────────────────────────────────────────────

async def get_api_keys(db: AsyncSession, user_id: int) -> Optional[ApiKey]:
    result = await db.execute(select(ApiKey).where(ApiKey.user_id == user_id))
    return result.scalar_one_or_none()


async def save_api_keys(db: AsyncSession, user_id: int, **keys: Optional[str]) -> ApiKey:
    """
    Create the user's key row on first save, update it in place afterwards.
    Only keys passed as non-None are touched; an empty string clears a key.
    """
    record = await get_api_keys(db, user_id)
    if record is None:
        record = ApiKey(user_id=user_id)
        db.add(record)

    for name, value in keys.items():
        if name not in API_KEY_FIELDS:
            raise AttributeError(f"Unknown API key field {name!r}")
        if value is not None:
            setattr(record, name, value or None)

    await db.flush()
    return record
