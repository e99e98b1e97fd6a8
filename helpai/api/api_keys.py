"""
Per-user provider keys. Registered users only; keys are never sent back.

GET  /api/api-keys — Which keys are set
POST /api/api-keys — Save keys (omitted fields untouched, "" clears)
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_db, require_user
from ..core.schemas import CamelModel
from ..models.user import ApiKey, User
from ..services import store

api_keys_router = APIRouter(prefix="/api-keys", tags=["api-keys"])


class ApiKeysUpdate(CamelModel):
    together_api_key: Optional[str] = None
    stability_api_key: Optional[str] = None
    serper_api_key: Optional[str] = None


class ApiKeysStatus(CamelModel):
    has_together_api_key: bool = False
    has_stability_api_key: bool = False
    has_serper_api_key: bool = False

    @classmethod
    def of(cls, record: Optional[ApiKey]) -> "ApiKeysStatus":
        if record is None:
            return cls()
        return cls(
            has_together_api_key=bool(record.together_api_key),
            has_stability_api_key=bool(record.stability_api_key),
            has_serper_api_key=bool(record.serper_api_key),
        )


@api_keys_router.get("", response_model=ApiKeysStatus)
async def get_api_keys(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return ApiKeysStatus.of(await store.get_api_keys(db, user.id))


@api_keys_router.post("", response_model=ApiKeysStatus)
async def save_api_keys(
    request: ApiKeysUpdate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    record = await store.save_api_keys(
        db,
        user.id,
        together_api_key=request.together_api_key,
        stability_api_key=request.stability_api_key,
        serper_api_key=request.serper_api_key,
    )
    return ApiKeysStatus.of(record)
