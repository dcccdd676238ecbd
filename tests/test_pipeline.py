"""
End-to-end pipeline tests against fake engines.

Covers the stage order, exactly-once session release for failures injected
at every stage, and that validation never touches the engine.

Usage:
    pytest tests/test_pipeline.py -v
"""

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from html_renderer.render import pipeline as pipeline_module
from html_renderer.render import session as session_module
from html_renderer.render.errors import (
    InternalError,
    NavigationTimeout,
    SelectorNotFound,
    ValidationError,
)
from html_renderer.render.pipeline import RenderPipeline

from conftest import PDF_BYTES, PNG_BYTES, FakeEngine, FakePage

MINIMAL_PNG = {"format": "png", "html": "<html><body>hi</body></html>"}


def _install(monkeypatch, engine):
    monkeypatch.setattr(session_module, "async_playwright", engine)
    return engine


# ---------------------------------------------------------------------------
# Happy paths
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_minimal_png_request(fake_engine, settings, release_counter):
    result = await RenderPipeline(settings).render(MINIMAL_PNG)

    assert result.content_type == "image/png"
    assert result.data == PNG_BYTES
    assert fake_engine.browser.context_kwargs["viewport"] == {"width": 1280, "height": 720}
    screenshot = [c for c in fake_engine.page.calls if c[0] == "screenshot"]
    assert screenshot[0][1]["full_page"] is True
    assert len(release_counter) == 1


@pytest.mark.asyncio
async def test_pdf_request(fake_engine, settings, release_counter):
    payload = {
        "format": "pdf",
        "html": "<h1>Report</h1>",
        "pdfOptions": {"margin": {"top": "5mm", "bottom": "5mm", "left": "5mm", "right": "5mm"}},
    }
    result = await RenderPipeline(settings).render(payload)

    assert result.content_type == "application/pdf"
    assert result.data == PDF_BYTES
    assert result.data.startswith(b"%PDF")
    assert len(release_counter) == 1


@pytest.mark.asyncio
async def test_stages_run_in_order(monkeypatch, fake_engine, settings):
    order = []

    real_load = pipeline_module.load_content
    real_wait = pipeline_module.await_images
    real_capture = pipeline_module.capture

    async def load(*args, **kwargs):
        order.append("load")
        return await real_load(*args, **kwargs)

    async def wait(*args, **kwargs):
        order.append("images")
        return await real_wait(*args, **kwargs)

    async def cap(*args, **kwargs):
        order.append("capture")
        return await real_capture(*args, **kwargs)

    monkeypatch.setattr(pipeline_module, "load_content", load)
    monkeypatch.setattr(pipeline_module, "await_images", wait)
    monkeypatch.setattr(pipeline_module, "capture", cap)

    await RenderPipeline(settings).render(MINIMAL_PNG)
    assert order == ["load", "images", "capture"]
    assert fake_engine.page.closed


@pytest.mark.asyncio
async def test_qr_placeholder_substituted_before_load(fake_engine, settings):
    payload = {
        "format": "png",
        "html": '<img id="qr" src="{{QR_CODE}}">',
        "qr": {"content": "https://example.com/ticket/42", "size": 120},
    }
    await RenderPipeline(settings).render(payload)

    (_, html, _, _), = [c for c in fake_engine.page.calls if c[0] == "set_content"]
    assert "{{QR_CODE}}" not in html
    assert 'src="data:image/svg+xml' in html


@pytest.mark.asyncio
async def test_oversized_qr_content_is_validation_error(fake_engine, settings):
    payload = {
        "format": "png",
        "html": '<img src="{{QR_CODE}}">',
        "qr": {"content": "x" * 5000},
    }
    with pytest.raises(ValidationError) as excinfo:
        await RenderPipeline(settings).render(payload)

    assert "qr.content" in excinfo.value.message
    assert fake_engine.starts == 0


# ---------------------------------------------------------------------------
# Validation never reaches the engine
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"format": "gif", "html": "<p>x</p>"},
        {"format": "png"},
        {"html": "<p>x</p>"},
        {"format": "png", "html": "<p>x</p>", "width": "huge"},
    ],
)
async def test_validation_errors_create_no_session(fake_engine, settings, payload):
    with pytest.raises(ValidationError):
        await RenderPipeline(settings).render(payload)
    assert fake_engine.starts == 0


# ---------------------------------------------------------------------------
# Exactly-once release under injected failures
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_acquisition_failure_released_once(monkeypatch, settings, release_counter):
    _install(monkeypatch, FakeEngine(fail_launch=RuntimeError("no chromium")))

    with pytest.raises(InternalError):
        await RenderPipeline(settings).render(MINIMAL_PNG)
    assert len(release_counter) == 1


@pytest.mark.asyncio
async def test_load_failure_released_once(monkeypatch, settings, release_counter):
    page = FakePage(fail={"set_content": PlaywrightTimeoutError("Timeout exceeded")})
    engine = _install(monkeypatch, FakeEngine(page=page))

    with pytest.raises(NavigationTimeout):
        await RenderPipeline(settings).render(MINIMAL_PNG)
    assert len(release_counter) == 1
    assert engine.browser.closed


@pytest.mark.asyncio
async def test_image_wait_failure_released_once(monkeypatch, fake_engine, settings, release_counter):
    async def exploding_wait(*args, **kwargs):
        raise RuntimeError("page crashed")

    monkeypatch.setattr(pipeline_module, "await_images", exploding_wait)

    with pytest.raises(InternalError) as excinfo:
        await RenderPipeline(settings).render(MINIMAL_PNG)
    assert "page crashed" in excinfo.value.message
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert len(release_counter) == 1
    assert fake_engine.browser.closed


@pytest.mark.asyncio
async def test_capture_failure_released_once(monkeypatch, settings, release_counter):
    page = FakePage(fail={"screenshot": RuntimeError("GPU process lost")})
    _install(monkeypatch, FakeEngine(page=page))

    with pytest.raises(InternalError):
        await RenderPipeline(settings).render(MINIMAL_PNG)
    assert len(release_counter) == 1


@pytest.mark.asyncio
async def test_missing_selector_released_once(fake_engine, settings, release_counter):
    payload = {**MINIMAL_PNG, "targetSelector": "#missing", "selectorTimeoutMs": 100}

    with pytest.raises(SelectorNotFound):
        await RenderPipeline(settings).render(payload)
    assert len(release_counter) == 1
    assert not [c for c in fake_engine.page.calls if c[0] in ("screenshot", "element_screenshot")]


@pytest.mark.asyncio
async def test_pending_images_do_not_block_capture(monkeypatch, settings):
    page = FakePage(images={"total": 2, "pending": 1})
    _install(monkeypatch, FakeEngine(page=page))

    result = await RenderPipeline(settings).render({**MINIMAL_PNG, "waitBudgetMs": 100})
    assert result.data == PNG_BYTES
