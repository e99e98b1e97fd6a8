"""
Code download API.

POST /api/code/download — {code, language, filename?} → {success, downloadUrl, filename}
"""

import logging

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from ..core.auth import Identity
from ..core.config import Settings
from ..core.dependencies import get_identity, settings_dep
from ..core.schemas import CamelModel
from ..services.downloads import save_code

logger = logging.getLogger(__name__)

code_router = APIRouter(prefix="/code", tags=["code"])

DOWNLOADS_URL_PREFIX = "/downloads"


class CodeDownloadRequest(CamelModel):
    code: str
    language: str
    filename: str = "code"


class CodeDownloadResponse(CamelModel):
    success: bool = True
    download_url: str
    filename: str


@code_router.post("/download", response_model=CodeDownloadResponse)
async def create_download(
    request: CodeDownloadRequest,
    identity: Identity = Depends(get_identity),
    settings: Settings = Depends(settings_dep),
):
    stored_name = await run_in_threadpool(
        save_code, request.code, request.language, request.filename, settings.downloads_dir
    )
    return CodeDownloadResponse(
        download_url=f"{DOWNLOADS_URL_PREFIX}/{stored_name}",
        filename=stored_name,
    )
