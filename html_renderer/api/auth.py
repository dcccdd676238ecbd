"""
Shared-secret check for render endpoints.

Runs as a route dependency, so a rejected request never reaches body
parsing, option normalization or the engine.
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import APIKeyHeader

from ..config import Settings, get_settings
from ..render.errors import Unauthorized

logger = logging.getLogger(__name__)

SECRET_HEADER = "x-render-secret"

render_secret_header = APIKeyHeader(name=SECRET_HEADER, auto_error=False)


def check_render_secret(provided: Optional[str], expected: str) -> None:
    """
    Raises:
        Unauthorized: no secret configured, none provided, or a mismatch.
    """
    if not expected or not provided:
        raise Unauthorized("Unauthorized")
    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise Unauthorized("Unauthorized")


async def require_render_secret(
    provided: Optional[str] = Depends(render_secret_header),
    settings: Settings = Depends(get_settings),
) -> None:
    try:
        check_render_secret(provided, settings.renderer_secret)
    except Unauthorized as e:
        logger.warning("Rejected render request: %s header missing or invalid", SECRET_HEADER)
        raise HTTPException(status_code=e.status_code, detail=e.message)
