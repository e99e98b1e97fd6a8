"""
Chat API.

POST /api/chat — One turn: {message, conversationId} → {userMessage, assistantMessage, searched}
`searched` is true when web results were added to the prompt.
Guests (x-guest-mode: true) get an answer but nothing is stored.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Identity
from ..core.config import Settings
from ..core.dependencies import flags_dep, get_db, get_identity, settings_dep
from ..core.flags import FeatureFlags
from ..core.schemas import CamelModel, MessageOut
from ..orchestrator.orchestrator import handle_turn

logger = logging.getLogger(__name__)

chat_router = APIRouter(tags=["chat"])


class ChatRequest(CamelModel):
    message: str = Field(min_length=1)
    conversation_id: int


class ChatResponse(CamelModel):
    user_message: MessageOut
    assistant_message: MessageOut
    searched: bool = False


@chat_router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(settings_dep),
    flags: FeatureFlags = Depends(flags_dep),
):
    """Send a message to the assistant and get its reply."""
    result = await handle_turn(
        db,
        message=request.message,
        conversation_id=request.conversation_id,
        identity=identity,
        settings=settings,
        flags=flags,
    )
    return ChatResponse(
        user_message=result.user_message,
        assistant_message=result.assistant_message,
        searched=result.searched,
    )
