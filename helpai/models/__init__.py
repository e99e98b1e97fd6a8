"""
All database models. Imported here so Base.metadata sees them for create_all().
"""

from .base import RecordBase
from .user import User, ApiKey
from .conversation import Conversation, Message

__all__ = [
    "RecordBase",
    "User", "ApiKey",
    "Conversation", "Message",
]
