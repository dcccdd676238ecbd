"""
Engine session management.

One EngineSession owns a Playwright driver, a headless Chromium process, a
browser context sized to the request viewport, and a single page. Sessions
are created per request and never pooled or reused.

Use ``engine_session`` so release happens exactly once on every exit path::

    async with engine_session(options, settings) as session:
        ...
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from ..config import Settings
from .errors import InternalError
from .options import EffectiveOptions

logger = logging.getLogger(__name__)

# Containerized hosts lack the privileges Chromium's own sandbox needs.
CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


@dataclass
class EngineSession:
    """Exclusively owned engine handles; any of them may be None mid-build."""

    playwright: Optional[Playwright] = None
    browser: Optional[Browser] = None
    context: Optional[BrowserContext] = None
    page: Optional[Page] = None
    closed: bool = False
    console_errors: list[str] = field(default_factory=list)
    blocked_requests: list[str] = field(default_factory=list)

    def require_page(self) -> Page:
        if self.page is None or self.closed:
            raise InternalError("Engine session has no open page")
        return self.page


async def acquire(options: EffectiveOptions, settings: Settings) -> EngineSession:
    """
    Launch Chromium and open a page sized to the effective viewport.

    A partially built session is released before the failure propagates.

    Raises:
        InternalError: the driver, browser, context or page failed to start.
    """
    session = EngineSession()
    viewport = options.viewport
    try:
        session.playwright = await async_playwright().start()
        session.browser = await session.playwright.chromium.launch(
            headless=True,
            args=CHROMIUM_ARGS,
            timeout=settings.render_launch_timeout_ms,
        )
        session.context = await session.browser.new_context(
            viewport={"width": viewport.width, "height": viewport.height},
            device_scale_factor=viewport.device_scale_factor,
        )
        page = await session.context.new_page()
        page.set_default_timeout(options.navigation_timeout_ms)
        page.set_default_navigation_timeout(options.navigation_timeout_ms)

        # Capture console errors for diagnostics
        page.on("console", lambda msg: session.console_errors.append(msg.text) if msg.type == "error" else None)
        page.on("pageerror", lambda err: session.console_errors.append(str(err)))
        session.page = page
    except Exception as e:
        logger.error("[session] Engine launch failed: %s", e, exc_info=True)
        await release(session)
        raise InternalError(f"Failed to start rendering engine: {e}") from e
    except BaseException:
        # cancelled mid-launch
        await release(session)
        raise

    logger.debug(
        "[session] Engine ready (%dx%d @%sx)",
        viewport.width, viewport.height, viewport.device_scale_factor,
    )
    return session


async def release(session: Optional[EngineSession]) -> None:
    """Close page, context, browser and driver. Never raises; safe to repeat."""
    if session is None or session.closed:
        return
    session.closed = True

    for name in ("page", "context", "browser"):
        handle = getattr(session, name)
        if handle is None:
            continue
        try:
            await handle.close()
        except Exception as e:
            logger.warning("[session] Error closing %s: %s", name, e)
        setattr(session, name, None)

    if session.playwright is not None:
        try:
            await session.playwright.stop()
        except Exception as e:
            logger.warning("[session] Error stopping Playwright: %s", e)
        session.playwright = None

    logger.debug("[session] Engine released")


@asynccontextmanager
async def engine_session(options: EffectiveOptions, settings: Settings) -> AsyncIterator[EngineSession]:
    session = await acquire(options, settings)
    try:
        yield session
    finally:
        await release(session)
