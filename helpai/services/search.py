"""
Web search via the Serper (Google) API.
Direct HTTP call, used by POST /api/search and by chat turns that look like
search requests.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlparse

import httpx
from pydantic import Field

from ..core.config import Settings
from ..core.exceptions import ProviderError, provider_error_for_status
from ..core.schemas import CamelModel

logger = logging.getLogger(__name__)

PROVIDER = "Serper"

_client: Optional[httpx.AsyncClient] = None


def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(timeout=15)
    return _client


async def close_client():
    global _client
    if _client and not _client.is_closed:
        await _client.aclose()
        _client = None


class SearchResult(CamelModel):
    title: str = ""
    snippet: str = ""
    link: str = ""
    domain: str = ""
    position: Optional[int] = None
    attributes: dict[str, Any] = Field(default_factory=dict)


class SearchResults(CamelModel):
    query: str
    abstract: str = ""
    abstract_text: str = ""
    abstract_source: str = ""
    abstract_url: str = Field(default="", alias="abstractURL")
    results: list[SearchResult] = Field(default_factory=list)
    search_information: dict[str, Any] = Field(default_factory=dict)
    timestamp: str = ""


def domain_of(link: str) -> str:
    if not link:
        return ""
    try:
        return urlparse(link).hostname or ""
    except ValueError:
        logger.debug("Could not parse result link %r", link)
        return ""


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def parse_results(query: str, data: dict) -> SearchResults:
    """Reshape a raw Serper response. Sections of the wrong shape are ignored."""
    answer_box = _as_dict(data.get("answerBox"))
    knowledge = _as_dict(data.get("knowledgeGraph"))
    answer_source = _as_dict(answer_box.get("source"))
    site_links = knowledge.get("siteLinks")
    first_site_link = _as_dict(site_links[0]) if isinstance(site_links, list) and site_links else {}
    organic = data.get("organic")

    results = [
        SearchResult(
            title=r.get("title") or "",
            snippet=r.get("snippet") or "",
            link=r.get("link") or "",
            domain=domain_of(r.get("link") or ""),
            position=r.get("position"),
            attributes=_as_dict(r.get("attributes")),
        )
        for r in (organic if isinstance(organic, list) else [])
        if isinstance(r, dict)
    ]

    return SearchResults(
        query=query,
        abstract=answer_box.get("answer") or knowledge.get("description") or "",
        abstract_text=answer_box.get("snippet") or "",
        abstract_source=answer_source.get("name") or knowledge.get("title") or "",
        abstract_url=answer_source.get("link") or first_site_link.get("link") or "",
        results=results,
        search_information=_as_dict(data.get("searchInformation")),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


async def search(query: str, *, api_key: str, settings: Settings) -> SearchResults:
    """Run one search. Raises ProviderError on transport or upstream failure."""
    try:
        resp = await _get_client().post(
            settings.serper_search_url,
            headers={"X-API-KEY": api_key, "Content-Type": "application/json"},
            json={"q": query, "gl": "us", "hl": "en"},
        )
    except httpx.HTTPError as e:
        logger.error("Search request failed: %s", e)
        raise ProviderError(PROVIDER, "Failed to get search results")

    if resp.status_code >= 400:
        logger.error("Search API error %d: %s", resp.status_code, resp.text[:500])
        raise provider_error_for_status(PROVIDER, resp.status_code, "get search results")

    try:
        data = resp.json()
    except ValueError:
        raise ProviderError(PROVIDER, "Invalid response format from search API", resp.status_code)

    if not isinstance(data, dict):
        logger.error("Search API returned %s instead of an object", type(data).__name__)
        raise ProviderError(PROVIDER, "Invalid response format from search API", resp.status_code)

    results = parse_results(query, data)
    logger.info("Search %r: %d results", query[:80], len(results.results))
    return results
