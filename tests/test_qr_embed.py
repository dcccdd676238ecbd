"""
Tests for QR placeholder embedding.
"""

import pytest
import segno

from html_renderer.util.qr_embed import embed_qr_code, make_qr_data_uri


def test_data_uri_is_inline_svg():
    uri = make_qr_data_uri("https://example.com", 160)
    assert uri.startswith("data:image/svg+xml")


def test_placeholder_replaced_everywhere():
    html = '<img src="{{QR_CODE}}"><img src="{{QR_CODE}}">'
    out = embed_qr_code(html, "hello", 100)
    assert "{{QR_CODE}}" not in out
    assert out.count("data:image/svg+xml") == 2


def test_html_without_placeholder_unchanged():
    html = "<p>no code here</p>"
    assert embed_qr_code(html, "hello", 100) == html


def test_custom_token():
    out = embed_qr_code("<img src='%QR%'>", "hello", 64, token="%QR%")
    assert "%QR%" not in out


def test_short_content_uses_regular_qr(monkeypatch):
    made = []
    real_make_qr = segno.make_qr

    def recording_make_qr(*args, **kwargs):
        qr = real_make_qr(*args, **kwargs)
        made.append(qr)
        return qr

    monkeypatch.setattr(segno, "make_qr", recording_make_qr)
    make_qr_data_uri("12345", 160)

    (qr,) = made
    assert not qr.is_micro
    assert qr.version == 1


def test_oversized_content_overflows():
    with pytest.raises(segno.DataOverflowError):
        make_qr_data_uri("x" * 5000, 160)
