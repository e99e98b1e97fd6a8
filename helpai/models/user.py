"""
Users and their stored provider credentials.
"""

from typing import Optional

from sqlalchemy import String, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from .base import RecordBase


class User(RecordBase):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String, unique=True, nullable=True)
    profile_picture: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    provider: Mapped[Optional[str]] = mapped_column(String, nullable=True)  # local, google, discord
    provider_id: Mapped[Optional[str]] = mapped_column(String, nullable=True, index=True)

    # Rolling conversation summaries, see models.memory.UserMemory
    memory: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)


class ApiKey(RecordBase):
    """At most one row per user. Missing columns fall back to environment keys."""

    __tablename__ = "api_keys"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    together_api_key: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    stability_api_key: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    serper_api_key: Mapped[Optional[str]] = mapped_column(String, nullable=True)
