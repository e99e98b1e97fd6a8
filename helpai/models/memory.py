"""
Per-user conversation memory.

Stored in `users.memory` as JSON:

    {
      "version": 1,
      "conversations": [
        {"lastInteraction": "2024-05-01T10:00:00+00:00",
         "topic": "first 100 chars of the user message",
         "response": "first 200 chars of the reply"},
        ...
      ]
    }

Blobs written before versioning have no "version" key and are read as v1.
Anything that doesn't parse is dropped and replaced by an empty memory.
"""

import json
import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .base import utcnow

logger = logging.getLogger(__name__)

MEMORY_SCHEMA_VERSION = 1
MAX_MEMORY_ENTRIES = 10
PROMPT_MEMORY_ENTRIES = 5
TOPIC_CHARS = 100
RESPONSE_CHARS = 200


class MemoryEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    last_interaction: datetime = Field(default_factory=utcnow, alias="lastInteraction")
    topic: str = ""
    response: str = ""


class UserMemory(BaseModel):
    version: int = MEMORY_SCHEMA_VERSION
    conversations: list[MemoryEntry] = Field(default_factory=list)

    def append(self, entry: MemoryEntry) -> "UserMemory":
        """Return a new memory with `entry` added, oldest entries evicted past the cap."""
        kept = [*self.conversations, entry][-MAX_MEMORY_ENTRIES:]
        return UserMemory(version=MEMORY_SCHEMA_VERSION, conversations=kept)

    def recent(self, n: int = PROMPT_MEMORY_ENTRIES) -> list[MemoryEntry]:
        if n <= 0:
            return []
        return self.conversations[-n:]

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def parse_memory(raw: Any) -> UserMemory:
    """Read whatever is in `users.memory` (None, JSON string or dict)."""
    if raw is None or raw == "":
        return UserMemory()

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding memory blob: not valid JSON")
            return UserMemory()

    if not isinstance(raw, dict):
        logger.warning("Discarding memory blob: expected object, got %s", type(raw).__name__)
        return UserMemory()

    version = raw.get("version", MEMORY_SCHEMA_VERSION)
    if version != MEMORY_SCHEMA_VERSION:
        logger.warning("Discarding memory blob with unknown version %r", version)
        return UserMemory()

    try:
        memory = UserMemory.model_validate({**raw, "version": MEMORY_SCHEMA_VERSION})
    except ValidationError as e:
        logger.warning("Discarding malformed memory blob: %s", e.error_count())
        return UserMemory()

    # Older blobs may already be over the cap
    if len(memory.conversations) > MAX_MEMORY_ENTRIES:
        memory.conversations = memory.conversations[-MAX_MEMORY_ENTRIES:]
    return memory


def summarize_turn(user_message: str, assistant_reply: str) -> MemoryEntry:
    return MemoryEntry(
        last_interaction=utcnow(),
        topic=user_message[:TOPIC_CHARS],
        response=assistant_reply[:RESPONSE_CHARS],
    )
