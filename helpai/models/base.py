"""
Base model with an integer surrogate key. Every model inherits from this.
"""

from datetime import datetime, timezone

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class RecordBase(Base):
    """Abstract base with an autoincrement `id` on every row."""

    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
