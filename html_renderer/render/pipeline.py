"""
Per-request render pipeline.

Stages run strictly in order:

    Init -> Normalized -> SessionAcquired -> Loaded -> ImagesAwaited
         -> Captured -> SessionReleased -> Responded

Any stage may fail; a failure after acquisition still passes through
SessionReleased before it reaches the caller. No retries.
"""

import logging
from enum import Enum
from typing import Any, Optional

import segno

from ..config import RenderDefaults, Settings, get_render_defaults, get_settings
from ..util.qr_embed import embed_qr_code
from .capture import capture
from .errors import InternalError, RenderError, ValidationError
from .loader import ResourceBlockRule, load_content
from .options import EffectiveOptions, normalize_request
from .readiness import await_images
from .result import CaptureResult
from .session import engine_session

logger = logging.getLogger(__name__)


class RenderStage(str, Enum):
    INIT = "Init"
    NORMALIZED = "Normalized"
    SESSION_ACQUIRED = "SessionAcquired"
    LOADED = "Loaded"
    IMAGES_AWAITED = "ImagesAwaited"
    CAPTURED = "Captured"
    SESSION_RELEASED = "SessionReleased"
    FAILED = "Failed"


class RenderPipeline:
    """Renders one request at a time per call; holds only read-only config."""

    def __init__(self, settings: Optional[Settings] = None, defaults: Optional[RenderDefaults] = None):
        self.settings = settings or get_settings()
        self.defaults = defaults or (settings.render_defaults() if settings else get_render_defaults())
        self.block_rule = ResourceBlockRule(self.settings.blocked_font_hosts())

    def prepare(self, payload: Any) -> EffectiveOptions:
        """Normalize the payload. Raises ValidationError before any engine work."""
        return normalize_request(payload, self.defaults)

    def prepare_html(self, options: EffectiveOptions) -> str:
        if options.qr is None:
            return options.html
        try:
            return embed_qr_code(options.html, options.qr.content, options.qr.size, self.settings.qr_placeholder)
        except segno.DataOverflowError as e:
            raise ValidationError(f"qr.content is too long for a QR code: {e}") from e

    async def render(self, payload: Any) -> CaptureResult:
        """
        Normalize, load, wait and capture one request.

        Raises:
            RenderError: ValidationError, NavigationTimeout, CaptureTimeout,
                SelectorNotFound, or InternalError for anything else.
        """
        stage = RenderStage.INIT
        options = self.prepare(payload)
        stage = RenderStage.NORMALIZED
        logger.info(
            "[pipeline] %s request: %dx%d @%sx, full_page=%s, selector=%s",
            options.format, options.viewport.width, options.viewport.height,
            options.viewport.device_scale_factor, options.full_page, options.selector,
        )

        try:
            html = self.prepare_html(options)
            async with engine_session(options, self.settings) as session:
                stage = RenderStage.SESSION_ACQUIRED
                await load_content(session, html, options, self.block_rule)
                stage = RenderStage.LOADED

                ready = await await_images(
                    session.require_page(),
                    options.wait_budget_ms,
                    settle_ms=self.settings.render_settle_delay_ms,
                    poll_interval_ms=self.settings.render_image_poll_interval_ms,
                )
                stage = RenderStage.IMAGES_AWAITED

                result = await capture(session, options)
                stage = RenderStage.CAPTURED

                if session.console_errors:
                    logger.warning("[pipeline] Console errors during render: %s", session.console_errors[:5])
                if session.blocked_requests:
                    logger.info("[pipeline] Blocked font requests: %s", session.blocked_requests[:5])
            stage = RenderStage.SESSION_RELEASED
        except RenderError as e:
            logger.warning(
                "[pipeline] %s -> %s (%s): %s", stage.value, RenderStage.FAILED.value, e.kind, e.message,
            )
            raise
        except Exception as e:
            logger.error(
                "[pipeline] %s -> %s: %s", stage.value, RenderStage.FAILED.value, e, exc_info=True,
            )
            raise InternalError(f"Render failed: {e}") from e

        logger.info(
            "[pipeline] %s done: %d bytes (images_ready=%s)",
            options.format, len(result.data), ready,
        )
        return result
