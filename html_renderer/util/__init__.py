"""
Utility functions: QR code embedding.
"""

from .qr_embed import embed_qr_code, make_qr_data_uri

__all__ = [
    "embed_qr_code",
    "make_qr_data_uri",
]
