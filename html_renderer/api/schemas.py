"""
Pydantic schemas for API response models.
"""

from pydantic import BaseModel, ConfigDict, Field


class RenderResponse(BaseModel):
    """Rendered artifact, base64 encoded."""

    model_config = ConfigDict(populate_by_name=True)

    content_type: str = Field(..., alias="contentType", description="'application/pdf' or 'image/png'")
    content_base64: str = Field(..., alias="contentBase64", description="Base64 of the rendered bytes")
