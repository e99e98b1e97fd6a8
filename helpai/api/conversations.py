"""
Conversations API. Registered users only.

GET    /api/conversations       — List the user's conversations (newest first)
POST   /api/conversations       — Start a conversation
GET    /api/conversations/{id}  — Conversation with its messages
PATCH  /api/conversations/{id}  — Rename
DELETE /api/conversations/{id}  — Delete a conversation and all its messages
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_db, require_user
from ..core.schemas import CamelModel, ConversationOut, MessageOut
from ..models.conversation import Conversation
from ..models.user import User
from ..services import store

logger = logging.getLogger(__name__)

conversations_router = APIRouter(prefix="/conversations", tags=["conversations"])


class ConversationCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)


class ConversationDetail(CamelModel):
    conversation: ConversationOut
    messages: list[MessageOut] = []


async def get_owned_conversation(
    db: AsyncSession, conversation_id: int, user: User
) -> Conversation:
    """404 when missing, 403 when it belongs to someone else."""
    convo = await store.get_conversation(db, conversation_id)
    if convo is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    if convo.user_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return convo


@conversations_router.get("", response_model=list[ConversationOut])
async def list_conversations(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    convos = await store.list_conversations(db, user.id)
    return [ConversationOut.of(c) for c in convos]


@conversations_router.post("", response_model=ConversationOut, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    request: ConversationCreate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    convo = await store.create_conversation(db, user.id, request.title)
    return ConversationOut.of(convo)


@conversations_router.get("/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    conversation_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    convo = await get_owned_conversation(db, conversation_id, user)
    messages = await store.get_messages(db, convo.id)
    return ConversationDetail(
        conversation=ConversationOut.of(convo),
        messages=[MessageOut.of(m) for m in messages],
    )


@conversations_router.patch("/{conversation_id}", response_model=ConversationOut)
async def rename_conversation(
    conversation_id: int,
    request: ConversationCreate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    convo = await get_owned_conversation(db, conversation_id, user)
    convo = await store.update_conversation(db, convo, request.title)
    return ConversationOut.of(convo)


@conversations_router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    convo = await get_owned_conversation(db, conversation_id, user)
    await store.delete_conversation(db, convo)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
