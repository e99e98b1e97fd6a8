"""
Shared request/response bodies. The browser client speaks camelCase.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class UserOut(CamelModel):
    """Never carries the password hash."""

    id: int
    username: str
    email: Optional[str] = None
    profile_picture: Optional[str] = None
    provider: Optional[str] = None

    @classmethod
    def of(cls, user) -> "UserOut":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            profile_picture=user.profile_picture,
            provider=user.provider,
        )


class ConversationOut(CamelModel):
    id: int
    user_id: int
    title: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def of(cls, convo) -> "ConversationOut":
        return cls(
            id=convo.id,
            user_id=convo.user_id,
            title=convo.title,
            created_at=convo.created_at,
            updated_at=convo.updated_at,
        )


class MessageOut(CamelModel):
    id: int
    conversation_id: int
    role: str
    content: str
    timestamp: datetime
    metadata: Optional[dict] = None

    @classmethod
    def of(cls, msg) -> "MessageOut":
        """Works for stored Message rows and transient guest messages alike."""
        return cls(
            id=msg.id,
            conversation_id=msg.conversation_id,
            role=msg.role,
            content=msg.content,
            timestamp=msg.timestamp,
            metadata=msg.metadata_,
        )
