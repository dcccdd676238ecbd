"""
Capture result container.
"""

import base64
from dataclasses import dataclass


@dataclass(frozen=True)
class CaptureResult:
    content_type: str
    data: bytes

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")
