from dataclasses import dataclass

from helpai.models.memory import MemoryEntry
from helpai.orchestrator.context import (
    BASE_SYSTEM_PROMPT,
    MAX_HISTORY_MESSAGES,
    MAX_MESSAGE_CHARS,
    TRUNCATION_MARKER,
    assemble_messages,
    build_system_prompt,
    select_history,
)
from helpai.services.search import SearchResult, SearchResults


@dataclass
class Msg:
    role: str
    content: str


def test_history_keeps_last_ten_in_order():
    history = [Msg("user" if i % 2 == 0 else "assistant", f"m{i}") for i in range(25)]

    selected = select_history(history)

    assert len(selected) == MAX_HISTORY_MESSAGES
    assert [m["content"] for m in selected] == [f"m{i}" for i in range(15, 25)]
    assert selected[-1]["role"] == "user"


def test_long_messages_are_truncated_with_marker():
    long = "x" * (MAX_MESSAGE_CHARS + 500)
    exact = "y" * MAX_MESSAGE_CHARS

    selected = select_history([Msg("user", long), Msg("assistant", exact)])

    assert selected[0]["content"] == "x" * MAX_MESSAGE_CHARS + TRUNCATION_MARKER
    assert selected[1]["content"] == exact


def test_system_prompt_without_extras_is_base():
    assert build_system_prompt() == BASE_SYSTEM_PROMPT


def test_system_prompt_includes_memory_entries():
    entries = [MemoryEntry(topic="trip to Lisbon", response="Suggested Alfama")]

    prompt = build_system_prompt(entries)

    assert prompt.startswith(BASE_SYSTEM_PROMPT)
    assert "- Topic: trip to Lisbon | Response: Suggested Alfama" in prompt


def test_system_prompt_includes_at_most_five_search_results():
    results = SearchResults(
        query="capital of France",
        abstract="Paris",
        abstract_source="Wikipedia",
        results=[
            SearchResult(
                title=f"Result {i}", snippet=f"snippet {i}",
                link=f"https://site{i}.example/page", domain=f"site{i}.example",
            )
            for i in range(1, 8)
        ],
    )

    prompt = build_system_prompt(search_results=results)

    assert "Direct answer: Paris (source: Wikipedia)" in prompt
    assert "5. Result 5 (site5.example)" in prompt
    assert "Result 6" not in prompt
    assert "https://site1.example/page" in prompt
    assert "cite" in prompt


def test_empty_search_results_add_nothing():
    prompt = build_system_prompt(search_results=SearchResults(query="nothing"))
    assert prompt == BASE_SYSTEM_PROMPT


def test_assemble_puts_system_first():
    messages = assemble_messages([Msg("user", "Hello")])

    assert messages[0]["role"] == "system"
    assert messages[1:] == [{"role": "user", "content": "Hello"}]
