"""
Capture engine.

PDF or PNG capture of a loaded page. The capture timeout is separate from
the navigation timeout: a tall full-page raster can legitimately take far
longer than building the DOM did.

PNG mode is chosen by request shape, first match wins:

1. selector  - a target selector is given; capture that element's box.
2. clip      - full page is off, or an explicit clip rectangle is given.
3. full_page - the whole scrollable document.
"""

import asyncio
import logging
from typing import Awaitable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import CaptureTimeout, SelectorNotFound, ValidationError
from .options import ClipRect, EffectiveOptions
from .result import CaptureResult
from .session import EngineSession

logger = logging.getLogger(__name__)

PNG_MODE_SELECTOR = "selector"
PNG_MODE_CLIP = "clip"
PNG_MODE_FULL_PAGE = "full_page"


def png_capture_mode(options: EffectiveOptions) -> str:
    if options.selector:
        return PNG_MODE_SELECTOR
    if options.clip is not None or not options.full_page:
        return PNG_MODE_CLIP
    return PNG_MODE_FULL_PAGE


def clip_rect(options: EffectiveOptions) -> ClipRect:
    """Explicit clip, or the viewport anchored at the origin."""
    if options.clip is not None:
        return options.clip
    return ClipRect(x=0, y=0, width=options.viewport.width, height=options.viewport.height)


async def _bounded(operation: Awaitable[bytes], timeout_ms: int, what: str) -> bytes:
    try:
        return await asyncio.wait_for(operation, timeout=timeout_ms / 1000)
    except (asyncio.TimeoutError, PlaywrightTimeoutError) as e:
        raise CaptureTimeout(f"{what} did not finish within {timeout_ms}ms") from e


async def capture_pdf(session: EngineSession, options: EffectiveOptions) -> bytes:
    page = session.require_page()
    pdf = options.pdf

    await page.emulate_media(media=pdf.media)
    return await _bounded(
        page.pdf(
            format=pdf.page_format,
            landscape=pdf.landscape,
            margin=pdf.margin.as_dict(),
            print_background=True,
            prefer_css_page_size=pdf.prefer_css_page_size,
        ),
        options.capture_timeout_ms,
        "PDF capture",
    )


async def capture_png(session: EngineSession, options: EffectiveOptions) -> bytes:
    page = session.require_page()
    mode = png_capture_mode(options)
    timeout = options.capture_timeout_ms
    shot_args = {"type": "png", "animations": "disabled", "timeout": timeout}

    if mode == PNG_MODE_SELECTOR:
        target = page.locator(options.selector).first
        try:
            await target.wait_for(state="attached", timeout=options.selector_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise SelectorNotFound(
                f"No element matches {options.selector!r} after {options.selector_timeout_ms}ms"
            ) from e
        except PlaywrightError as e:
            if "selector" not in str(e).lower():
                raise
            raise ValidationError(f"Invalid selector {options.selector!r}: {e.message}") from e
        return await _bounded(target.screenshot(**shot_args), timeout, "Element capture")

    if mode == PNG_MODE_CLIP:
        return await _bounded(
            page.screenshot(clip=clip_rect(options).as_dict(), **shot_args),
            timeout,
            "Clip capture",
        )

    return await _bounded(page.screenshot(full_page=True, **shot_args), timeout, "Full-page capture")


async def capture(session: EngineSession, options: EffectiveOptions) -> CaptureResult:
    """
    Capture the session page in the requested format.

    Raises:
        CaptureTimeout: the capture exceeded ``capture_timeout_ms``.
        SelectorNotFound: selector mode and the element never appeared.
        ValidationError: the selector does not parse.
    """
    if options.format == "pdf":
        data = await capture_pdf(session, options)
    else:
        data = await capture_png(session, options)

    logger.debug("[capture] %s captured (%d bytes)", options.format, len(data))
    return CaptureResult(content_type=options.content_type, data=data)
