"""
Search API.

POST /api/search — {query} → Serper results reshaped for the client
"""

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Identity
from ..core.config import Settings
from ..core.dependencies import get_db, get_identity, settings_dep
from ..core.schemas import CamelModel
from ..services import credentials, search
from ..services.search import SearchResults

search_router = APIRouter(tags=["search"])


class SearchRequest(CamelModel):
    query: str = Field(min_length=1)


@search_router.post("/search", response_model=SearchResults)
async def web_search(
    request: SearchRequest,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(settings_dep),
):
    api_key = await credentials.require_key(db, identity, "serper_api_key", settings)
    return await search.search(request.query, api_key=api_key, settings=settings)
