"""
Image generation API.

POST /api/image/generate — Stability text-to-image, images returned as data URLs.
With a conversationId (registered users), the prompt and result are also
saved to that conversation as a user/assistant message pair.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Identity
from ..core.config import Settings
from ..core.dependencies import get_db, get_identity, settings_dep
from ..core.exceptions import AccessDeniedError, NotFoundError
from ..core.schemas import CamelModel
from ..services import credentials, images, store
from ..services.images import GeneratedImage

logger = logging.getLogger(__name__)

images_router = APIRouter(prefix="/image", tags=["images"])


class ImageRequest(CamelModel):
    prompt: str = Field(min_length=1)
    negative_prompt: Optional[str] = None
    style_preset: Optional[str] = None
    width: int = Field(default=512, ge=512, le=1024)
    height: int = Field(default=512, ge=512, le=1024)
    samples: int = Field(default=1, ge=1, le=4)
    conversation_id: Optional[int] = None


class ImageResponse(CamelModel):
    images: list[GeneratedImage]
    prompt: str
    width: int
    height: int
    style_preset: Optional[str] = None


def _assistant_text(generated: list[GeneratedImage]) -> str:
    noun = "images" if len(generated) > 1 else "image"
    links = "".join(f"\n\n![Image {i}]({img.image_url})" for i, img in enumerate(generated, start=1))
    return f"I've generated {len(generated)} {noun} based on your prompt. {links}"


async def _save_to_conversation(
    db: AsyncSession, conversation_id: int, prompt: str, generated: list[GeneratedImage]
) -> None:
    """Best-effort: a failure here never loses the generated images."""
    try:
        await store.create_message(
            db, conversation_id, role="user",
            content=f'Generated image with prompt: "{prompt}"',
        )
        await store.create_message(
            db, conversation_id, role="assistant",
            content=_assistant_text(generated),
            metadata={
                "imageGeneration": {
                    "prompt": prompt,
                    "images": [
                        {"seed": img.seed, "finishReason": img.finish_reason} for img in generated
                    ],
                }
            },
        )
        await db.commit()
    except Exception:
        logger.exception("Failed to save image generation to conversation %s", conversation_id)
        await db.rollback()


@images_router.post("/generate", response_model=ImageResponse)
async def generate_image(
    request: ImageRequest,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(settings_dep),
):
    save_to = None
    if request.conversation_id is not None and not identity.is_guest:
        convo = await store.get_conversation(db, request.conversation_id)
        if convo is None:
            raise NotFoundError("Conversation not found")
        if convo.user_id != identity.user_id:
            raise AccessDeniedError()
        save_to = convo.id

    api_key = await credentials.require_key(db, identity, "stability_api_key", settings)

    generated = await images.generate(
        request.prompt,
        api_key=api_key,
        settings=settings,
        negative_prompt=request.negative_prompt,
        style_preset=request.style_preset,
        width=request.width,
        height=request.height,
        samples=request.samples,
    )

    if save_to is not None:
        await _save_to_conversation(db, save_to, request.prompt, generated)

    return ImageResponse(
        images=generated,
        prompt=request.prompt,
        width=request.width,
        height=request.height,
        style_preset=request.style_preset,
    )
