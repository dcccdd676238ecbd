"""
Content loading.

Pushes request HTML into the session page. Remote font hosts are aborted at
the network layer so a dead font CDN cannot stall rendering, and navigation
waits for DOM construction only ("domcontentloaded"). "networkidle" is never
used: one long-lived or failing connection keeps it from ever firing.
"""

import logging
from typing import Iterable
from urllib.parse import urlparse

from playwright.async_api import Route
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import NavigationTimeout
from .options import EffectiveOptions
from .session import EngineSession

logger = logging.getLogger(__name__)

FREEZE_CSS = """
*, *::before, *::after {
  animation: none !important;
  animation-delay: 0s !important;
  animation-duration: 0s !important;
  transition: none !important;
  transition-delay: 0s !important;
  transition-duration: 0s !important;
  caret-color: transparent !important;
}
html, body { scroll-behavior: auto !important; }
"""


class ResourceBlockRule:
    """URL predicate matching known remote font hosts and their subdomains."""

    def __init__(self, hosts: Iterable[str]):
        self.hosts = frozenset(h.lower() for h in hosts)

    def __call__(self, url: str) -> bool:
        if url.startswith(("data:", "blob:", "about:")):
            return False
        host = (urlparse(url).hostname or "").lower()
        if not host:
            return False
        return any(host == h or host.endswith("." + h) for h in self.hosts)


async def install_block_rule(session: EngineSession, rule: ResourceBlockRule) -> None:
    page = session.require_page()

    async def _handle_route(route: Route) -> None:
        url = route.request.url
        if rule(url):
            session.blocked_requests.append(url)
            await route.abort("blockedbyclient")
            return
        await route.continue_()

    await page.route("**/*", _handle_route)


async def load_content(
    session: EngineSession,
    html: str,
    options: EffectiveOptions,
    rule: ResourceBlockRule,
) -> None:
    """
    Load ``html`` into the session page.

    Raises:
        NavigationTimeout: the DOM was not built within the navigation timeout.
    """
    page = session.require_page()
    await install_block_rule(session, rule)

    try:
        await page.set_content(
            html,
            wait_until="domcontentloaded",
            timeout=options.navigation_timeout_ms,
        )
    except PlaywrightTimeoutError as e:
        raise NavigationTimeout(
            f"Document structure not ready within {options.navigation_timeout_ms}ms"
        ) from e

    if options.freeze_animations:
        try:
            await page.add_style_tag(content=FREEZE_CSS)
        except Exception as e:
            logger.warning("[loader] Could not inject animation freeze style: %s", e)

    logger.debug("[loader] Content loaded (%d chars, %d blocked)", len(html), len(session.blocked_requests))
