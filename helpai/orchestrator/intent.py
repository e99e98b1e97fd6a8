"""
Search-intent detection.

A fixed, ordered list of patterns. The first one that matches decides the
query sent to the search API. Pure heuristic: "what is your name" will
search, "tell me about Rome" won't.
"""

import re
from typing import Optional

SEARCH_PATTERNS: list[re.Pattern] = [
    # "search for X", "search the web for X", "look up X", "google X"
    re.compile(
        r"\b(?:search|google|look\s*up)\s+(?:the\s+(?:web|internet)\s+|online\s+)?(?:for\s+)?(?P<query>.+)",
        re.IGNORECASE,
    ),
    # "latest news about X", "recent updates on X"
    re.compile(
        r"\b(?:latest|recent|breaking)\s+(?:news|updates?|developments?|info(?:rmation)?)"
        r"\s+(?:about|on|for|regarding)\s+(?P<query>.+)",
        re.IGNORECASE,
    ),
    # "what is X", "what's X", "what are X"
    re.compile(r"\bwhat(?:'s|\s+is|\s+are)\s+(?P<query>.+)", re.IGNORECASE),
    # "who is X", "who was X"
    re.compile(r"\bwho(?:'s|\s+is|\s+are|\s+was)\s+(?P<query>.+)", re.IGNORECASE),
    # "current X"
    re.compile(r"\bcurrent\s+(?P<query>.+)", re.IGNORECASE),
    # leading "can you search/find/lookup/get ..."
    re.compile(
        r"^\s*(?:can|could|would)\s+you\s+(?:please\s+)?(?:search|find|look\s*up|lookup|get)\b\s*(?P<query>.*)",
        re.IGNORECASE,
    ),
]

_TRAILING = " \t\r\n?!.,;:"


def detect_search_query(message: str) -> Optional[str]:
    """
    Return the search query for `message`, or None when no pattern matches.
    Falls back to the whole message when the match captured nothing useful.
    """
    for pattern in SEARCH_PATTERNS:
        match = pattern.search(message)
        if match:
            query = (match.group("query") or "").strip(_TRAILING)
            return query or message.strip(_TRAILING)
    return None


def needs_web_search(message: str) -> bool:
    return detect_search_query(message) is not None
