"""
Context assembly: the exact message list sent to the completion API.

    [system prompt (+ memory, + search results), ...last 10 history messages]
"""

from typing import Iterable, Optional, Protocol

from ..models.memory import MemoryEntry
from ..services.search import SearchResults

MAX_HISTORY_MESSAGES = 10
MAX_MESSAGE_CHARS = 8000
TRUNCATION_MARKER = "\n\n[Message truncated]"
MAX_SEARCH_RESULTS = 5

BASE_SYSTEM_PROMPT = (
    "You are Help.ai, a helpful AI assistant. You can assist with coding, answer "
    "questions, help with tasks, and provide accurate information. When generating "
    "code, put it in fenced code blocks with the language name so the user can copy "
    "or download it. Always base your answers on accurate information and help the "
    "user to the best of your abilities."
)


class HistoryMessage(Protocol):
    role: str
    content: str


def truncate_content(content: str, limit: int = MAX_MESSAGE_CHARS) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + TRUNCATION_MARKER


def select_history(
    messages: Iterable[HistoryMessage],
    limit: int = MAX_HISTORY_MESSAGES,
) -> list[dict]:
    """Keep the newest `limit` messages, oldest first, each capped in length."""
    recent = list(messages)[-limit:] if limit > 0 else []
    return [
        {"role": m.role, "content": truncate_content(m.content or "")}
        for m in recent
    ]


def format_memory(entries: list[MemoryEntry]) -> str:
    if not entries:
        return ""
    lines = [f"- Topic: {e.topic} | Response: {e.response}" for e in entries]
    return (
        "Here is some context from previous conversations with this user:\n"
        + "\n".join(lines)
    )


def format_search_results(results: SearchResults) -> str:
    """Direct answer plus the top organic results, with a citation instruction."""
    parts = [f'Web search results for "{results.query}":']

    if results.abstract:
        answer = f"Direct answer: {results.abstract}"
        if results.abstract_source:
            answer += f" (source: {results.abstract_source})"
        parts.append(answer)
    elif results.abstract_text:
        parts.append(f"Direct answer: {results.abstract_text}")

    for i, r in enumerate(results.results[:MAX_SEARCH_RESULTS], start=1):
        parts.append(f"{i}. {r.title} ({r.domain or 'unknown source'})\n   {r.snippet}\n   {r.link}")

    parts.append(
        "Use these results where relevant and cite the sources (site name and link) "
        "you rely on."
    )
    return "\n".join(parts)


def build_system_prompt(
    memory_entries: Optional[list[MemoryEntry]] = None,
    search_results: Optional[SearchResults] = None,
) -> str:
    sections = [BASE_SYSTEM_PROMPT]

    memory_block = format_memory(memory_entries or [])
    if memory_block:
        sections.append(memory_block)

    if search_results is not None and (search_results.results or search_results.abstract or search_results.abstract_text):
        sections.append(format_search_results(search_results))

    return "\n\n".join(sections)


def assemble_messages(
    history: Iterable[HistoryMessage],
    memory_entries: Optional[list[MemoryEntry]] = None,
    search_results: Optional[SearchResults] = None,
) -> list[dict]:
    system = {"role": "system", "content": build_system_prompt(memory_entries, search_results)}
    return [system, *select_history(history)]
