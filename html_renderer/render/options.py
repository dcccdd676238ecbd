"""
Render option normalization.

Turns a raw request body into an EffectiveOptions record with every optional
field resolved against the process-wide RenderDefaults.

Two request shapes are accepted and normalize identically:

- structured: ``{"format", "html", "options": {"viewport": {...}, "fullPage",
  "clip", "selector", "waitForImagesMs", "navigationTimeoutMs",
  "captureTimeoutMs", "selectorTimeoutMs", "freezeAnimations", "pdf": {...},
  "qr": {...}}}``
- legacy flat: the same fields at top level, under their historical names
  (``width``, ``height``, ``scale``, ``targetSelector``, ``clipRect``,
  ``waitMs``, ``timeoutMs``, ``pdfOptions``, ``viewportOptions`` ...).

Precedence: legacy flat fields are collected first, in alias order, then
``viewportOptions``, then the structured ``options`` object overrides them.
"""

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..config import RenderDefaults
from .errors import ValidationError

FORMATS = ("pdf", "png")
CONTENT_TYPES = {"pdf": "application/pdf", "png": "image/png"}

WIDTH_RANGE = (320, 4000)
HEIGHT_RANGE = (320, 6000)
SCALE_RANGE = (1.0, 3.0)
WAIT_BUDGET_RANGE = (0, 30000)
NAVIGATION_TIMEOUT_RANGE = (1000, 120000)
CAPTURE_TIMEOUT_RANGE = (1000, 300000)
# Playwright reads a timeout of 0 as "wait forever".
SELECTOR_TIMEOUT_RANGE = (100, 60000)
QR_SIZE_RANGE = (32, 1024)
DEFAULT_QR_SIZE = 160

PDF_PAGE_FORMATS = {
    name.lower(): name
    for name in ("Letter", "Legal", "Tabloid", "Ledger", "A0", "A1", "A2", "A3", "A4", "A5", "A6")
}
PDF_MEDIA_TYPES = ("print", "screen")

# (source field, canonical key); a later alias wins over an earlier one.
_LEGACY_ALIASES = (
    ("width", "width"),
    ("height", "height"),
    ("scale", "scale"),
    ("deviceScaleFactor", "scale"),
    ("fullPage", "fullPage"),
    ("clipRect", "clip"),
    ("clip", "clip"),
    ("targetSelector", "selector"),
    ("selector", "selector"),
    ("waitMs", "waitBudgetMs"),
    ("waitForImagesMs", "waitBudgetMs"),
    ("waitBudgetMs", "waitBudgetMs"),
    ("timeoutMs", "navigationTimeoutMs"),
    ("navigationTimeoutMs", "navigationTimeoutMs"),
    ("captureTimeoutMs", "captureTimeoutMs"),
    ("selectorTimeoutMs", "selectorTimeoutMs"),
    ("freezeAnimations", "freezeAnimations"),
    ("pdfOptions", "pdf"),
    ("pdf", "pdf"),
    ("qr", "qr"),
)

_OPTION_ALIASES = (
    ("fullPage", "fullPage"),
    ("clip", "clip"),
    ("selector", "selector"),
    ("waitBudgetMs", "waitBudgetMs"),
    ("waitForImagesMs", "waitBudgetMs"),
    ("navigationTimeoutMs", "navigationTimeoutMs"),
    ("captureTimeoutMs", "captureTimeoutMs"),
    ("selectorTimeoutMs", "selectorTimeoutMs"),
    ("freezeAnimations", "freezeAnimations"),
    ("pdf", "pdf"),
    ("qr", "qr"),
)

_VIEWPORT_ALIASES = (
    ("width", "width"),
    ("height", "height"),
    ("scale", "scale"),
    ("deviceScaleFactor", "scale"),
)


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int
    device_scale_factor: float


@dataclass(frozen=True)
class ClipRect:
    x: float
    y: float
    width: float
    height: float

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Margin:
    top: str
    right: str
    bottom: str
    left: str

    def as_dict(self) -> dict:
        return {"top": self.top, "right": self.right, "bottom": self.bottom, "left": self.left}


@dataclass(frozen=True)
class PdfOptions:
    page_format: str
    margin: Margin
    landscape: bool = False
    prefer_css_page_size: bool = True
    media: str = "print"


@dataclass(frozen=True)
class QrSpec:
    content: str
    size: int = DEFAULT_QR_SIZE


@dataclass(frozen=True)
class EffectiveOptions:
    """A render request with every option resolved to a concrete value."""

    format: str
    html: str
    viewport: Viewport
    full_page: bool
    clip: Optional[ClipRect]
    selector: Optional[str]
    wait_budget_ms: int
    navigation_timeout_ms: int
    capture_timeout_ms: int
    selector_timeout_ms: int
    pdf: PdfOptions
    freeze_animations: bool
    qr: Optional[QrSpec] = None

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self.format]


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------

def _number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ValidationError(f"{name} must be a number") from None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"{name} must be a number")
    return float(value)


def _clamp(value: float, bounds: tuple) -> float:
    low, high = bounds
    return max(low, min(high, value))


def _int_option(value: Any, default: int, bounds: tuple, name: str) -> int:
    raw = default if value is None else _number(value, name)
    return int(round(_clamp(raw, bounds)))


def _float_option(value: Any, default: float, bounds: tuple, name: str) -> float:
    raw = default if value is None else _number(value, name)
    return float(_clamp(raw, bounds))


def _flag(value: Any, default: bool, name: str) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be a boolean")
    return value


def _mapping(value: Any, name: str) -> Mapping:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(f"{name} must be an object")
    return value


# ---------------------------------------------------------------------------
# Shape collection
# ---------------------------------------------------------------------------

def _pick(source: Mapping, aliases: tuple) -> dict:
    picked = {}
    for source_key, key in aliases:
        if source.get(source_key) is not None:
            picked[key] = source[source_key]
    return picked


def _collect(payload: Mapping) -> dict:
    """Flatten both request shapes into canonical keys, structured last."""
    raw = _pick(payload, _LEGACY_ALIASES)
    raw.update(_pick(_mapping(payload.get("viewportOptions"), "viewportOptions"), _VIEWPORT_ALIASES))

    options = _mapping(payload.get("options"), "options")
    raw.update(_pick(options, _OPTION_ALIASES))
    raw.update(_pick(_mapping(options.get("viewport"), "options.viewport"), _VIEWPORT_ALIASES))
    return raw


# ---------------------------------------------------------------------------
# Sub-records
# ---------------------------------------------------------------------------

def _clip(value: Any) -> Optional[ClipRect]:
    if value is None:
        return None
    rect = _mapping(value, "clip")
    if rect.get("width") is None or rect.get("height") is None:
        raise ValidationError("clip requires width and height")
    return ClipRect(
        x=max(0.0, _number(rect.get("x", 0), "clip.x")),
        y=max(0.0, _number(rect.get("y", 0), "clip.y")),
        width=_clamp(_number(rect["width"], "clip.width"), (1, WIDTH_RANGE[1])),
        height=_clamp(_number(rect["height"], "clip.height"), (1, HEIGHT_RANGE[1])),
    )


def _selector(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("selector must be a string")
    return value.strip() or None


def _margin_value(value: Any, name: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return f"{_number(value, name):g}px"


def _margin(value: Any, default: str) -> Margin:
    sides = {"top": default, "right": default, "bottom": default, "left": default}
    if isinstance(value, Mapping):
        for side in sides:
            if value.get(side) is not None:
                sides[side] = _margin_value(value[side], f"margin.{side}")
    elif value is not None:
        uniform = _margin_value(value, "margin")
        sides = dict.fromkeys(sides, uniform)
    return Margin(**sides)


def _pdf(value: Any, defaults: RenderDefaults) -> PdfOptions:
    pdf = _mapping(value, "pdf")

    page_format = pdf.get("format", defaults.pdf_format)
    if not isinstance(page_format, str) or page_format.lower() not in PDF_PAGE_FORMATS:
        raise ValidationError(f"Unsupported PDF page format: {page_format!r}")

    media = pdf.get("emulateMedia", pdf.get("media", "print"))
    if media not in PDF_MEDIA_TYPES:
        raise ValidationError("pdf.emulateMedia must be print|screen")

    return PdfOptions(
        page_format=PDF_PAGE_FORMATS[page_format.lower()],
        margin=_margin(pdf.get("margin"), defaults.pdf_margin),
        landscape=_flag(pdf.get("landscape"), False, "pdf.landscape"),
        prefer_css_page_size=_flag(pdf.get("preferCSSPageSize"), True, "pdf.preferCSSPageSize"),
        media=media,
    )


def _qr(value: Any) -> Optional[QrSpec]:
    if value is None:
        return None
    qr = _mapping(value, "qr")
    content = qr.get("content")
    if not isinstance(content, str) or not content:
        raise ValidationError("qr.content must be a non-empty string")
    size = _int_option(qr.get("size"), DEFAULT_QR_SIZE, QR_SIZE_RANGE, "qr.size")
    return QrSpec(content=content, size=size)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def validate_target(payload: Any) -> tuple[str, str]:
    """Check format and html; return them. Raises ValidationError."""
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")

    fmt = payload.get("format")
    html = payload.get("html")
    if not html or not fmt:
        raise ValidationError("Missing html/format")
    if fmt not in FORMATS:
        raise ValidationError("format must be pdf|png")
    if not isinstance(html, str) or not html.strip():
        raise ValidationError("html must be a non-empty string")
    return fmt, html


def normalize_request(payload: Any, defaults: RenderDefaults) -> EffectiveOptions:
    """
    Resolve a raw render request into EffectiveOptions.

    Pure: the same payload and defaults always give an equal result.

    Raises:
        ValidationError: bad format/html, or an option of the wrong type.
    """
    fmt, html = validate_target(payload)
    raw = _collect(payload)

    width = _int_option(raw.get("width"), defaults.viewport_width, WIDTH_RANGE, "width")
    height = _int_option(raw.get("height"), defaults.viewport_height, HEIGHT_RANGE, "height")
    scale = _float_option(raw.get("scale"), defaults.scale, SCALE_RANGE, "scale")
    if height >= defaults.large_height_threshold:
        scale = min(scale, defaults.large_height_max_scale)

    return EffectiveOptions(
        format=fmt,
        html=html,
        viewport=Viewport(width=width, height=height, device_scale_factor=scale),
        full_page=_flag(raw.get("fullPage"), defaults.full_page, "fullPage"),
        clip=_clip(raw.get("clip")),
        selector=_selector(raw.get("selector")),
        wait_budget_ms=_int_option(
            raw.get("waitBudgetMs"), defaults.wait_budget_ms, WAIT_BUDGET_RANGE, "waitBudgetMs"
        ),
        navigation_timeout_ms=_int_option(
            raw.get("navigationTimeoutMs"), defaults.navigation_timeout_ms,
            NAVIGATION_TIMEOUT_RANGE, "navigationTimeoutMs",
        ),
        capture_timeout_ms=_int_option(
            raw.get("captureTimeoutMs"), defaults.capture_timeout_ms,
            CAPTURE_TIMEOUT_RANGE, "captureTimeoutMs",
        ),
        selector_timeout_ms=_int_option(
            raw.get("selectorTimeoutMs"), defaults.selector_timeout_ms,
            SELECTOR_TIMEOUT_RANGE, "selectorTimeoutMs",
        ),
        pdf=_pdf(raw.get("pdf"), defaults),
        freeze_animations=_flag(raw.get("freezeAnimations"), defaults.freeze_animations, "freezeAnimations"),
        qr=_qr(raw.get("qr")),
    )
