"""
One chat turn.

Resolve key → detect search intent → save user message → load history →
(search) → build context → complete → save reply → update memory.

Guests skip every database read and write; their messages are transient.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from .context import assemble_messages
from .intent import detect_search_query
from ..core.auth import Identity
from ..core.config import Settings
from ..core.exceptions import AccessDeniedError, NotFoundError, ProviderError
from ..core.flags import FeatureFlags
from ..core.schemas import MessageOut
from ..models.base import utcnow
from ..models.memory import parse_memory, summarize_turn
from ..models.user import User
from ..services import credentials, llm, search, store
from ..services.search import SearchResults

logger = logging.getLogger(__name__)


@dataclass
class TransientMessage:
    """A guest-mode message. Same shape as models.Message, never stored."""

    id: int
    conversation_id: int
    role: str
    content: str
    timestamp: datetime = field(default_factory=utcnow)
    metadata_: Optional[dict] = None


@dataclass
class TurnResult:
    user_message: MessageOut
    assistant_message: MessageOut
    searched: bool = False


def _transient_id() -> int:
    return int(time.time() * 1000)


async def handle_turn(
    db: AsyncSession,
    *,
    message: str,
    conversation_id: int,
    identity: Identity,
    settings: Settings,
    flags: FeatureFlags,
) -> TurnResult:
    """
    Run one turn and return both messages.

    Raises NotFoundError / AccessDeniedError for a foreign or missing
    conversation, MissingCredentialError before anything is written, and
    ProviderError if the completion fails (the user message stays saved).
    """
    start = time.monotonic()
    guest = identity.is_guest

    # 1. Ownership
    if not guest:
        convo = await store.get_conversation(db, conversation_id)
        if convo is None:
            raise NotFoundError("Conversation not found")
        if convo.user_id != identity.user_id:
            raise AccessDeniedError()

    # 2. Completion key (aborts before any write)
    api_key = await credentials.require_key(db, identity, "together_api_key", settings)

    # 3. Search intent
    search_query = detect_search_query(message) if flags.use_web_search else None

    # 4. User message + history
    if guest:
        user_msg = TransientMessage(
            id=_transient_id(), conversation_id=conversation_id, role="user", content=message,
        )
        history = [user_msg]
    else:
        user_msg = await store.create_message(db, conversation_id, role="user", content=message)
        await db.commit()
        history = await store.get_messages(db, conversation_id)

    # 5. Memory (registered only)
    memory_entries = []
    if not guest and flags.use_memory:
        memory_entries = parse_memory(identity.user.memory).recent()

    # 6. Search augmentation (best-effort)
    results = None
    if search_query:
        results = await _search_for_context(db, identity, search_query, settings)

    # 7. Completion
    messages = assemble_messages(history, memory_entries, results)
    logger.info(
        "Turn context: conversation=%s guest=%s history=%d memory=%d search=%s ~%d tokens",
        conversation_id, guest, len(messages) - 1, len(memory_entries),
        results is not None, llm.estimate_messages_tokens(messages),
    )
    reply = await llm.complete(messages, api_key=api_key, settings=settings)

    # 8. Assistant message
    if guest:
        assistant_msg = TransientMessage(
            id=user_msg.id + 1, conversation_id=conversation_id, role="assistant", content=reply,
        )
    else:
        assistant_msg = await store.create_message(db, conversation_id, role="assistant", content=reply)
        await db.commit()

    result = TurnResult(
        user_message=MessageOut.of(user_msg),
        assistant_message=MessageOut.of(assistant_msg),
        searched=results is not None,
    )

    # 9. Memory update (best-effort)
    if not guest and flags.use_memory:
        await remember_turn(db, identity.user, message, reply)

    logger.info(
        "Turn done: conversation=%s in %dms", conversation_id, int((time.monotonic() - start) * 1000)
    )
    return result


async def _search_for_context(
    db: AsyncSession,
    identity: Identity,
    query: str,
    settings: Settings,
) -> Optional[SearchResults]:
    """In-process call to the search adapter. Any failure means no augmentation."""
    api_key = await credentials.find_key(db, identity, "serper_api_key", settings)
    if not api_key:
        logger.debug("Search intent detected but no search key configured")
        return None

    try:
        return await search.search(query, api_key=api_key, settings=settings)
    except (ProviderError, ValidationError) as e:
        logger.warning("Search augmentation skipped for %r: %s", query[:80], e)
        return None


async def remember_turn(db: AsyncSession, user: User, message: str, reply: str) -> None:
    """Append a summary of this turn to the user's memory. Never raises."""
    user_id = user.id
    try:
        memory = parse_memory(user.memory).append(summarize_turn(message, reply))
        await store.update_user(db, user, memory=memory.to_json())
        await db.commit()
    except Exception:
        logger.exception("Failed to update memory for user %s", user_id)
        await db.rollback()
