"""
FastAPI application entry point for the HTML render service.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from . import __version__
from .config import get_settings
from .api.routes import router


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup / shutdown hooks."""
    logger = logging.getLogger(__name__)
    if not settings.renderer_secret:
        logger.warning("RENDERER_SECRET is not set; every render request will be rejected")
    logger.info("HTML renderer starting up on port %d ...", settings.port)
    yield
    logger.info("HTML renderer shutting down ...")


app = FastAPI(
    title="HTML Renderer",
    description="Renders HTML documents to PDF or PNG with headless Chromium.",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(router)


if __name__ == "__main__":
    uvicorn.run(
        "html_renderer.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )
