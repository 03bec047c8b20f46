"""Dependency injection for API routes."""

import logging
import secrets
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from promptrelay.config import Settings, get_settings
from promptrelay.services.content_cache import ContentCache, create_content_cache
from promptrelay.services.update_orchestrator import (
    UpdateOrchestrator,
    create_orchestrator_from_settings,
)
from promptrelay.utils.errors import forbidden, internal_error, unauthorized

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


@lru_cache
def get_content_cache() -> ContentCache:
    """Get the process-wide content cache."""
    return create_content_cache(get_settings())


@lru_cache
def get_orchestrator() -> UpdateOrchestrator:
    """Get the process-wide update orchestrator."""
    return create_orchestrator_from_settings(get_settings(), get_content_cache())


async def verify_update_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """
    Check the Bearer token of a manual update request.

    Raises HTTPException 500 if the server token is unset, 401 if the
    header is missing or malformed, 403 if the token does not match.
    """
    if not settings.update_token:
        logger.error("UPDATE_TOKEN is not set in the environment")
        raise internal_error("Server configuration error: update token not set")

    if credentials is None or not credentials.credentials:
        raise unauthorized("Authorization header is missing or invalid")

    if not secrets.compare_digest(
        credentials.credentials.encode("utf-8"),
        settings.update_token.encode("utf-8"),
    ):
        raise forbidden("Forbidden: invalid token")


SettingsDep = Annotated[Settings, Depends(get_settings)]
ContentCacheDep = Annotated[ContentCache, Depends(get_content_cache)]
OrchestratorDep = Annotated[UpdateOrchestrator, Depends(get_orchestrator)]
UpdateAuthorized = Depends(verify_update_token)
