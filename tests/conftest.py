"""
Shared fixtures: in-memory stand-ins for the Playwright async API.

The fakes record calls and can be told to fail at a given method, which is
enough to drive the pipeline through every stage without a browser.
"""

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from html_renderer.config import Settings
from html_renderer.render import session as session_module

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png"
PDF_BYTES = b"%PDF-1.7\nfake-pdf"


class FakeLocator:
    def __init__(self, page, selector: str):
        self.page = page
        self.selector = selector

    @property
    def first(self):
        return self

    async def wait_for(self, state: str = "visible", timeout: float | None = None):
        self.page.calls.append(("wait_for", self.selector, state, timeout))
        self.page._maybe_fail("wait_for")
        if self.selector not in self.page.present_selectors:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.selector}")

    async def screenshot(self, **kwargs):
        self.page.calls.append(("element_screenshot", self.selector, kwargs))
        return PNG_BYTES


class FakePage:
    def __init__(self, images=None, present_selectors=(), fail=None):
        self.images = images or {"total": 0, "pending": 0}
        self.present_selectors = set(present_selectors)
        self.fail = fail or {}
        self.calls: list = []
        self.handlers: dict = {}
        self.route_handler = None
        self.closed = False

    def _maybe_fail(self, name: str):
        if name in self.fail:
            raise self.fail[name]

    def set_default_timeout(self, timeout):
        self.calls.append(("set_default_timeout", timeout))

    def set_default_navigation_timeout(self, timeout):
        self.calls.append(("set_default_navigation_timeout", timeout))

    def on(self, event, handler):
        self.handlers[event] = handler

    async def route(self, pattern, handler):
        self.calls.append(("route", pattern))
        self.route_handler = handler

    async def set_content(self, html, wait_until=None, timeout=None):
        self.calls.append(("set_content", html, wait_until, timeout))
        self._maybe_fail("set_content")

    async def add_style_tag(self, content=None):
        self.calls.append(("add_style_tag", content))
        self._maybe_fail("add_style_tag")

    async def evaluate(self, script):
        self._maybe_fail("evaluate")
        return dict(self.images)

    async def emulate_media(self, media=None):
        self.calls.append(("emulate_media", media))

    async def pdf(self, **kwargs):
        self.calls.append(("pdf", kwargs))
        self._maybe_fail("pdf")
        return PDF_BYTES

    async def screenshot(self, **kwargs):
        self.calls.append(("screenshot", kwargs))
        self._maybe_fail("screenshot")
        return PNG_BYTES

    def locator(self, selector):
        return FakeLocator(self, selector)

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, page, fail_new_page=None):
        self.page = page
        self.fail_new_page = fail_new_page
        self.closed = False

    async def new_page(self):
        if self.fail_new_page:
            raise self.fail_new_page
        return self.page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, context):
        self.context = context
        self.context_kwargs = None
        self.closed = False

    async def new_context(self, **kwargs):
        self.context_kwargs = kwargs
        return self.context

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser, fail_launch=None):
        self.browser = browser
        self.fail_launch = fail_launch
        self.launch_kwargs = None

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        if self.fail_launch:
            raise self.fail_launch
        return self.browser


class FakePlaywright:
    def __init__(self, chromium):
        self.chromium = chromium
        self.stopped = False

    async def stop(self):
        self.stopped = True


class FakeEngine:
    """Bundle of fakes standing in for ``async_playwright()``."""

    def __init__(self, page=None, fail_launch=None, fail_new_page=None):
        self.page = page or FakePage()
        self.context = FakeContext(self.page, fail_new_page=fail_new_page)
        self.browser = FakeBrowser(self.context)
        self.chromium = FakeChromium(self.browser, fail_launch=fail_launch)
        self.playwright = FakePlaywright(self.chromium)
        self.starts = 0

    def __call__(self):
        return self

    async def start(self):
        self.starts += 1
        return self.playwright


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        renderer_secret="s3cret",
        render_settle_delay_ms=0,
        render_image_poll_interval_ms=10,
    )


@pytest.fixture
def defaults(settings):
    return settings.render_defaults()


@pytest.fixture
def fake_engine(monkeypatch):
    engine = FakeEngine()
    monkeypatch.setattr(session_module, "async_playwright", engine)
    return engine


@pytest.fixture
def release_counter(monkeypatch):
    """Count calls to session.release while keeping its behaviour."""
    calls = []
    original = session_module.release

    async def counting_release(session):
        calls.append(session)
        await original(session)

    monkeypatch.setattr(session_module, "release", counting_release)
    return calls

