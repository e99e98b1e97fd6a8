import pytest

from helpai.orchestrator.intent import detect_search_query, needs_web_search


@pytest.mark.parametrize(
    "message, query",
    [
        ("what is the capital of France", "the capital of France"),
        ("What's the weather in Paris?", "the weather in Paris"),
        ("search for python 3.13 release notes", "python 3.13 release notes"),
        ("Can you search the web for cheap flights to Rome", "cheap flights to Rome"),
        ("latest news about the Mars rover", "the Mars rover"),
        ("current bitcoin price", "bitcoin price"),
        ("who is the CEO of Nvidia?", "the CEO of Nvidia"),
    ],
)
def test_detects_search_requests(message, query):
    assert needs_web_search(message)
    assert detect_search_query(message) == query


@pytest.mark.parametrize(
    "message",
    [
        "please summarize this",
        "write a haiku about autumn",
        "refactor this function to use a dict",
        "I did some research yesterday",
    ],
)
def test_ignores_ordinary_requests(message):
    assert not needs_web_search(message)
    assert detect_search_query(message) is None


def test_leading_can_you_without_subject_uses_whole_message():
    assert detect_search_query("Can you find?") == "Can you find"
