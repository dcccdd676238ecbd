"""
Image readiness waiting.

A best-effort signal: capture goes ahead when the budget runs out, so a
broken or slow image costs at most ``wait_budget_ms`` plus one poll interval.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)

# An <img> that failed to load also reports complete === true.
PENDING_IMAGES_JS = """() => {
    const imgs = Array.from(document.images || []);
    return {
        total: imgs.length,
        pending: imgs.filter((img) => !img.complete).length
    };
}"""


async def await_images(
    page,
    wait_budget_ms: int,
    settle_ms: int = 200,
    poll_interval_ms: int = 100,
) -> bool:
    """
    Poll until every embedded image is complete or errored.

    Args:
        page: Playwright page (anything with an async ``evaluate``).
        wait_budget_ms: Polling deadline, counted after the settle delay.
        settle_ms: Unconditional pause absorbing layout reflow.
        poll_interval_ms: Delay between polls.

    Returns:
        True if all images reported complete, False on timeout or error.
    """
    if settle_ms > 0:
        await asyncio.sleep(settle_ms / 1000)

    loop = asyncio.get_running_loop()
    deadline = loop.time() + wait_budget_ms / 1000
    interval = poll_interval_ms / 1000
    polls = 0

    while True:
        remaining = deadline - loop.time()
        try:
            state = await asyncio.wait_for(page.evaluate(PENDING_IMAGES_JS), timeout=max(remaining, interval))
        except asyncio.TimeoutError:
            logger.warning("[readiness] Image probe exceeded %dms budget", wait_budget_ms)
            return False
        except Exception as e:
            logger.warning("[readiness] Image probe failed, capturing anyway: %s", e)
            return False

        polls += 1
        pending = state.get("pending", 0)
        if pending == 0:
            logger.debug("[readiness] %d image(s) ready after %d poll(s)", state.get("total", 0), polls)
            return True

        remaining = deadline - loop.time()
        if remaining <= 0:
            logger.warning(
                "[readiness] %d of %d image(s) still pending after %dms, capturing anyway",
                pending, state.get("total", 0), wait_budget_ms,
            )
            return False
        await asyncio.sleep(min(interval, remaining))
