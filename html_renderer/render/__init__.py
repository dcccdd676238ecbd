"""
Render pipeline: option normalization, engine sessions, loading, readiness, capture.
"""

from .errors import (
    CaptureTimeout,
    InternalError,
    NavigationTimeout,
    RenderError,
    SelectorNotFound,
    Unauthorized,
    ValidationError,
)
from .options import EffectiveOptions, normalize_request
from .pipeline import RenderPipeline
from .result import CaptureResult

__all__ = [
    "CaptureResult",
    "CaptureTimeout",
    "EffectiveOptions",
    "InternalError",
    "NavigationTimeout",
    "RenderError",
    "RenderPipeline",
    "SelectorNotFound",
    "Unauthorized",
    "ValidationError",
    "normalize_request",
]
