"""
Error kinds surfaced by the render pipeline.

Each error carries the HTTP status the API layer answers with, so routes can
translate any RenderError into a response without a lookup table.
"""


class RenderError(Exception):
    """Base class for every failure reported to a render caller."""

    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class Unauthorized(RenderError):
    """Missing or mismatched shared secret."""

    kind = "Unauthorized"
    status_code = 401


class ValidationError(RenderError):
    """Missing or invalid format/html, or a malformed option."""

    kind = "ValidationError"
    status_code = 400


class NavigationTimeout(RenderError):
    kind = "NavigationTimeout"
    status_code = 504


class CaptureTimeout(RenderError):
    kind = "CaptureTimeout"
    status_code = 504


class SelectorNotFound(RenderError):
    kind = "SelectorNotFound"
    status_code = 422


class InternalError(RenderError):
    """Any other engine failure."""
