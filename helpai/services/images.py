"""
Text-to-image via Stability AI.
Returned artifacts are converted to inline data URLs; nothing is stored on disk.
"""

import logging
import time
from typing import Optional

import httpx

from ..core.config import Settings
from ..core.exceptions import ProviderError, provider_error_for_status
from ..core.schemas import CamelModel

logger = logging.getLogger(__name__)

PROVIDER = "Stability AI"

CFG_SCALE = 7
STEPS = 30

_client: Optional[httpx.AsyncClient] = None


def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(connect=10, read=180, write=30, pool=10),
        )
    return _client


async def close_client():
    global _client
    if _client and not _client.is_closed:
        await _client.aclose()
        _client = None


class GeneratedImage(CamelModel):
    image_url: str
    seed: Optional[int] = None
    finish_reason: Optional[str] = None


def build_payload(
    prompt: str,
    negative_prompt: Optional[str],
    style_preset: Optional[str],
    width: int,
    height: int,
    samples: int,
) -> dict:
    text_prompts = [{"text": prompt, "weight": 1.0}]
    if negative_prompt:
        text_prompts.append({"text": negative_prompt, "weight": -1.0})

    payload = {
        "text_prompts": text_prompts,
        "cfg_scale": CFG_SCALE,
        "height": height,
        "width": width,
        "samples": samples,
        "steps": STEPS,
    }
    if style_preset:
        payload["style_preset"] = style_preset
    return payload


async def generate(
    prompt: str,
    *,
    api_key: str,
    settings: Settings,
    negative_prompt: Optional[str] = None,
    style_preset: Optional[str] = None,
    width: int = 512,
    height: int = 512,
    samples: int = 1,
) -> list[GeneratedImage]:
    url = (
        f"{settings.stability_base_url.rstrip('/')}"
        f"/v1/generation/{settings.stability_engine}/text-to-image"
    )
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "Authorization": f"Bearer {api_key}",
    }
    payload = build_payload(prompt, negative_prompt, style_preset, width, height, samples)

    start = time.monotonic()
    try:
        resp = await _get_client().post(url, json=payload, headers=headers)
    except httpx.HTTPError as e:
        logger.error("Image request failed: %s", e)
        raise ProviderError(PROVIDER, "Failed to generate image")

    if resp.status_code >= 400:
        logger.error("Stability API error %d: %s", resp.status_code, resp.text[:500])
        raise provider_error_for_status(PROVIDER, resp.status_code, "generate image")

    try:
        artifacts = resp.json()["artifacts"]
        images = [
            GeneratedImage(
                image_url=f"data:image/png;base64,{a['base64']}",
                seed=a.get("seed"),
                finish_reason=a.get("finish_reason") or a.get("finishReason"),
            )
            for a in artifacts
        ]
    except (ValueError, KeyError, TypeError):
        logger.error("Invalid response format from Stability: %s", resp.text[:500])
        raise ProviderError(PROVIDER, "Invalid response format from image API", resp.status_code)

    logger.info(
        "Generated %d image(s) %dx%d in %dms",
        len(images), width, height, int((time.monotonic() - start) * 1000),
    )
    return images
