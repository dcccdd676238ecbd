"""
FastAPI route definitions for the render service.

- POST /render: HTML to PDF/PNG; requires the x-render-secret header
- GET  /health: static liveness marker

Each render request gets its own engine session inside the pipeline; the
routes only translate between HTTP and RenderPipeline.
"""

from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from .auth import require_render_secret
from .schemas import RenderResponse
from ..render.errors import RenderError
from ..render.pipeline import RenderPipeline

router = APIRouter()


@lru_cache()
def get_pipeline() -> RenderPipeline:
    """Process-wide pipeline; holds read-only configuration only."""
    return RenderPipeline()


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@router.get("/health", response_class=PlainTextResponse, tags=["health"])
async def health_check():
    """Service health check endpoint."""
    return "ok"


# ---------------------------------------------------------------------------
# Render
# ---------------------------------------------------------------------------

@router.post(
    "/render",
    response_model=RenderResponse,
    tags=["render"],
    dependencies=[Depends(require_render_secret)],
)
async def render(request: Request, pipeline: RenderPipeline = Depends(get_pipeline)):
    """
    Render the posted HTML to a PDF or PNG.

    - HTTP 400 for a missing/invalid format or html, or malformed options.
    - HTTP 422 when a target selector never appears.
    - HTTP 504 when navigation or capture exceeds its timeout.
    - HTTP 500 for any other engine failure.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")

    try:
        result = await pipeline.render(payload)
    except RenderError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return RenderResponse(content_type=result.content_type, content_base64=result.to_base64())
