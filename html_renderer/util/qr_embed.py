"""
QR code embedding.

Replaces a placeholder token in request HTML with an inline SVG data URI,
so the engine never fetches the code image over the network.
"""

import logging

import segno

logger = logging.getLogger(__name__)

QR_BORDER = 4


def make_qr_data_uri(content: str, size: int) -> str:
    """Return an SVG data URI for ``content`` roughly ``size`` pixels wide."""
    # make_qr: never a Micro QR symbol, which most phone scanners reject
    qr = segno.make_qr(content, error="m")
    modules, _ = qr.symbol_size(scale=1, border=QR_BORDER)
    scale = max(1, size // modules)
    return qr.svg_data_uri(scale=scale, border=QR_BORDER)


def embed_qr_code(html: str, content: str, size: int, token: str = "{{QR_CODE}}") -> str:
    """Substitute every ``token`` in ``html``; unchanged if the token is absent."""
    if token not in html:
        logger.debug("[qr] Placeholder %s not present, skipping", token)
        return html
    return html.replace(token, make_qr_data_uri(content, size))
