"""Content read and manual update routes."""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from promptrelay.api.deps import (
    ContentCacheDep,
    OrchestratorDep,
    SettingsDep,
    UpdateAuthorized,
)
from promptrelay.config import get_settings
from promptrelay.models.schemas import UpdateFailureResponse, UpdateSuccessResponse

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)
limiter = Limiter(key_func=get_remote_address)

PLACEHOLDER_MESSAGE = "Content is being generated, please refresh again later."
TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"


@router.get("/", response_class=PlainTextResponse)
async def get_content(cache: ContentCacheDep, app_settings: SettingsDep):
    """Return the cached generated text."""
    try:
        cached_text = await cache.get(app_settings.cache_key)
    except Exception as e:
        logger.error(f"[CACHE] Read failed: {e}")
        return PlainTextResponse(
            f"Internal server error: {e}\n",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            media_type=TEXT_MEDIA_TYPE,
        )

    if not cached_text:
        return PlainTextResponse(
            PLACEHOLDER_MESSAGE + "\n",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            media_type=TEXT_MEDIA_TYPE,
        )

    return PlainTextResponse(cached_text + "\n", media_type=TEXT_MEDIA_TYPE)


@router.post(
    "/update",
    response_model=UpdateSuccessResponse,
    responses={500: {"model": UpdateFailureResponse}},
    dependencies=[UpdateAuthorized],
)
@limiter.limit(settings.update_rate_limit)
async def force_update(request: Request, orchestrator: OrchestratorDep):
    """Run an update now and report its outcome."""
    logger.info("[UPDATE] Manual update triggered via /update")

    try:
        result = await orchestrator.run()
    except Exception as e:
        logger.error(f"[UPDATE] Manual update failed: {type(e).__name__}: {e}")
        body = UpdateFailureResponse(message=f"Failed to update: {e}")
        return JSONResponse(
            body.model_dump(),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    body = UpdateSuccessResponse(
        message="Text content updated successfully.",
        model_used=result.tier_used.value,
        new_content=result.content,
    )
    return JSONResponse(body.model_dump())
