import pytest

from conftest import JPEG_STUB, PNG_1x1
from toolkit.domain.sniff import SNIFF_LEN, detect_content_type


@pytest.mark.parametrize(
    "data,expected",
    [
        (PNG_1x1, "image/png"),
        (JPEG_STUB, "image/jpeg"),
        (b"GIF89a\x01\x00\x01\x00", "image/gif"),
        (b"BM\x00\x00", "image/bmp"),
        (b"RIFF\x10\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"%PDF-1.1\n% minimal placeholder\n%%EOF\n", "application/pdf"),
        (b"PK\x03\x04\x14\x00", "application/zip"),
        (b"\x1f\x8b\x08\x00", "application/x-gzip"),
        (b"ID3\x03\x00", "audio/mpeg"),
        (b"RIFF\x10\x00\x00\x00WAVEfmt ", "audio/wave"),
        (b"\x00\x00\x00\x14ftypisom\x00\x00\x02\x00mp41", "video/mp4"),
        (b"wOFF\x00\x01", "font/woff"),
        (b"\x00asm\x01\x00\x00\x00", "application/wasm"),
        (b"  \n<!doctype html><title>fixture</title><p>hi</p>", "text/html; charset=utf-8"),
        (b"<p>hi</p>", "text/html; charset=utf-8"),
        (b"<?xml version='1.0'?><a/>", "text/xml; charset=utf-8"),
        (b"\xef\xbb\xbfhello", "text/plain; charset=utf-8"),
        (b"\xff\xfeh\x00i\x00", "text/plain; charset=utf-16le"),
        (b"id,value\n1,alpha\n", "text/plain; charset=utf-8"),
        (b"", "text/plain; charset=utf-8"),
        (b"\x00\x01\x02\x03garbage", "application/octet-stream"),
    ],
)
def test_detect_content_type(data, expected):
    assert detect_content_type(data) == expected


def test_html_tag_needs_terminator():
    # "<pre" is not "<p" followed by a space or '>'
    assert detect_content_type(b"<pre>x</pre>") == "text/plain; charset=utf-8"


def test_only_leading_window_is_inspected():
    data = b"a" * SNIFF_LEN + b"\x00\x01\x02"
    assert detect_content_type(data) == "text/plain; charset=utf-8"
