"""
Centralized configuration management

All configuration values are read from environment variables,
with sensible defaults for development. Settings are frozen once built;
the rendering defaults derived from them are handed to the pipeline as an
immutable RenderDefaults record.
"""

from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings


@dataclass(frozen=True)
class RenderDefaults:
    """Process-wide rendering defaults, built once at startup."""

    viewport_width: int = 1280
    viewport_height: int = 720
    scale: float = 2.0
    large_height_threshold: int = 1600
    large_height_max_scale: float = 1.5
    full_page: bool = True
    wait_budget_ms: int = 2500
    navigation_timeout_ms: int = 30000
    capture_timeout_ms: int = 120000
    selector_timeout_ms: int = 10000
    pdf_format: str = "A4"
    pdf_margin: str = "12mm"
    freeze_animations: bool = True


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # --- FastAPI ---
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"

    # --- Auth ---
    # Empty secret rejects every render request.
    renderer_secret: str = ""

    # --- Render defaults ---
    render_viewport_width: int = 1280
    render_viewport_height: int = 720
    render_scale: float = 2.0
    render_large_height_threshold: int = 1600
    render_large_height_max_scale: float = 1.5
    render_full_page: bool = True
    render_wait_budget_ms: int = 2500
    render_navigation_timeout_ms: int = 30000
    render_capture_timeout_ms: int = 120000
    render_selector_timeout_ms: int = 10000
    render_freeze_animations: bool = True
    render_pdf_format: str = "A4"
    render_pdf_margin: str = "12mm"

    # --- Engine ---
    render_launch_timeout_ms: int = 30000
    render_settle_delay_ms: int = 200
    render_image_poll_interval_ms: int = 100
    render_blocked_font_hosts: str = (
        "fonts.googleapis.com,fonts.gstatic.com,use.typekit.net,p.typekit.net,"
        "fonts.bunny.net,use.fontawesome.com,fast.fonts.net"
    )

    # --- QR embedding ---
    qr_placeholder: str = "{{QR_CODE}}"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore", "frozen": True}

    def render_defaults(self) -> RenderDefaults:
        return RenderDefaults(
            viewport_width=self.render_viewport_width,
            viewport_height=self.render_viewport_height,
            scale=self.render_scale,
            large_height_threshold=self.render_large_height_threshold,
            large_height_max_scale=self.render_large_height_max_scale,
            full_page=self.render_full_page,
            wait_budget_ms=self.render_wait_budget_ms,
            navigation_timeout_ms=self.render_navigation_timeout_ms,
            capture_timeout_ms=self.render_capture_timeout_ms,
            selector_timeout_ms=self.render_selector_timeout_ms,
            pdf_format=self.render_pdf_format,
            pdf_margin=self.render_pdf_margin,
            freeze_animations=self.render_freeze_animations,
        )

    def blocked_font_hosts(self) -> frozenset[str]:
        return frozenset(
            h.strip().lower() for h in self.render_blocked_font_hosts.split(",") if h.strip()
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance (singleton)."""
    return Settings()


@lru_cache()
def get_render_defaults() -> RenderDefaults:
    """Return the RenderDefaults built from the cached Settings."""
    return get_settings().render_defaults()
