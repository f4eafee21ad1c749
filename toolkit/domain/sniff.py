"""Content-type detection from leading bytes.

Implements the MIME sniffing table browsers apply to unlabeled resources:
signatures are tried in order and the first match wins. Only the first
SNIFF_LEN bytes are consulted. Nothing here trusts a client-supplied type.
"""
from __future__ import annotations

from collections.abc import Callable

__all__ = [
    "SNIFF_LEN",
    "detect_content_type",
]

SNIFF_LEN = 512

_WHITESPACE = b"\t\n\x0c\r "
_TAG_TERMINATORS = b" >"

_OCTET_STREAM = "application/octet-stream"
_TEXT_UTF8 = "text/plain; charset=utf-8"


def _skip_whitespace(data: bytes) -> bytes:
    return data.lstrip(_WHITESPACE)


def _html(tag: bytes) -> Callable[[bytes], str | None]:
    """Case-insensitive tag followed by a space or '>'."""

    def match(data: bytes) -> str | None:
        data = _skip_whitespace(data)
        if len(data) < len(tag) + 1:
            return None
        for want, got in zip(tag, data):
            if 0x41 <= want <= 0x5A:
                got &= 0xDF
            if want != got:
                return None
        if data[len(tag)] not in _TAG_TERMINATORS:
            return None
        return "text/html; charset=utf-8"

    return match


def _masked(
    pattern: bytes, mask: bytes, content_type: str, *, skip_ws: bool = False
) -> Callable[[bytes], str | None]:
    def match(data: bytes) -> str | None:
        if skip_ws:
            data = _skip_whitespace(data)
        if len(data) < len(pattern):
            return None
        for want, m, got in zip(pattern, mask, data):
            if got & m != want:
                return None
        return content_type

    return match


def _exact(prefix: bytes, content_type: str) -> Callable[[bytes], str | None]:
    def match(data: bytes) -> str | None:
        return content_type if data.startswith(prefix) else None

    return match


def _mp4(data: bytes) -> str | None:
    # ISO base media file: an 'ftyp' box whose brands include "mp4".
    if len(data) < 12:
        return None
    box_size = int.from_bytes(data[:4], "big")
    if len(data) < box_size or box_size % 4 != 0:
        return None
    if data[4:8] != b"ftyp":
        return None
    for start in range(8, box_size, 4):
        if start == 12:
            continue  # minor version, not a brand
        if data[start : start + 3] == b"mp4":
            return "video/mp4"
    return None


def _binary_byte(b: int) -> bool:
    return b <= 0x08 or b == 0x0B or 0x0E <= b <= 0x1A or 0x1C <= b <= 0x1F


def _text(data: bytes) -> str | None:
    if any(_binary_byte(b) for b in _skip_whitespace(data)):
        return None
    return _TEXT_UTF8


_FF4 = b"\xff\xff\xff\xff"

_SIGNATURES: tuple[Callable[[bytes], str | None], ...] = (
    *(
        _html(tag)
        for tag in (
            b"<!DOCTYPE HTML",
            b"<HTML",
            b"<HEAD",
            b"<SCRIPT",
            b"<IFRAME",
            b"<H1",
            b"<DIV",
            b"<FONT",
            b"<TABLE",
            b"<A",
            b"<STYLE",
            b"<TITLE",
            b"<B",
            b"<BODY",
            b"<BR",
            b"<P",
            b"<!--",
        )
    ),
    _masked(b"<?xml", b"\xff" * 5, "text/xml; charset=utf-8", skip_ws=True),
    _exact(b"%PDF-", "application/pdf"),
    _exact(b"%!PS-Adobe-", "application/postscript"),
    # Byte order marks.
    _masked(b"\xfe\xff\x00\x00", b"\xff\xff\x00\x00", "text/plain; charset=utf-16be"),
    _masked(b"\xff\xfe\x00\x00", b"\xff\xff\x00\x00", "text/plain; charset=utf-16le"),
    _masked(b"\xef\xbb\xbf\x00", b"\xff\xff\xff\x00", _TEXT_UTF8),
    # Images.
    _exact(b"\x00\x00\x01\x00", "image/x-icon"),
    _exact(b"\x00\x00\x02\x00", "image/x-icon"),
    _exact(b"BM", "image/bmp"),
    _exact(b"GIF87a", "image/gif"),
    _exact(b"GIF89a", "image/gif"),
    _masked(b"RIFF\x00\x00\x00\x00WEBPVP", _FF4 + b"\x00" * 4 + b"\xff" * 6, "image/webp"),
    _exact(b"\x89PNG\r\n\x1a\n", "image/png"),
    _exact(b"\xff\xd8\xff", "image/jpeg"),
    # Audio and video.
    _masked(b"FORM\x00\x00\x00\x00AIFF", _FF4 + b"\x00" * 4 + _FF4, "audio/aiff"),
    _masked(b"ID3", b"\xff" * 3, "audio/mpeg"),
    _masked(b"OggS\x00", b"\xff" * 5, "application/ogg"),
    _masked(b"MThd\x00\x00\x00\x06", b"\xff" * 8, "audio/midi"),
    _masked(b"RIFF\x00\x00\x00\x00AVI ", _FF4 + b"\x00" * 4 + _FF4, "video/avi"),
    _masked(b"RIFF\x00\x00\x00\x00WAVE", _FF4 + b"\x00" * 4 + _FF4, "audio/wave"),
    _mp4,
    _exact(b"\x1a\x45\xdf\xa3", "video/webm"),
    # Fonts.
    _masked(
        b"\x00" * 34 + b"LP",
        b"\x00" * 34 + b"\xff\xff",
        "application/vnd.ms-fontobject",
    ),
    _exact(b"\x00\x01\x00\x00", "font/ttf"),
    _exact(b"OTTO", "font/otf"),
    _exact(b"ttcf", "font/collection"),
    _exact(b"wOFF", "font/woff"),
    _exact(b"wOF2", "font/woff2"),
    # Archives.
    _exact(b"\x1f\x8b\x08", "application/x-gzip"),
    _exact(b"PK\x03\x04", "application/zip"),
    _exact(b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    _exact(b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    _exact(b"\x00asm", "application/wasm"),
    _text,
)


def detect_content_type(data: bytes) -> str:
    """Return the sniffed MIME type of `data`, never raising.

    Falls back to "application/octet-stream" when no rule matches.
    """
    head = bytes(data[:SNIFF_LEN])
    for match in _SIGNATURES:
        found = match(head)
        if found:
            return found
    return _OCTET_STREAM
