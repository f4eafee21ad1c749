from __future__ import annotations

import base64
import logging
from dataclasses import asdict
from pathlib import Path

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from pydantic import BaseModel

from toolkit import JSONEnvelope, RandomSource, ToolkitConfig, Tools
from toolkit.errors import JSONBodyError

# Deterministic 1x1 PNG (transparent) via base64, to avoid binary fixtures in the repo
PNG_1x1 = base64.b64decode(
    b"iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/x8AAwMCAO6wZSYAAAAASUVORK5CYII="
)

# JFIF header plus filler; enough for sniffing, not a decodable picture.
JPEG_STUB = (
    b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    + bytes(range(256)) * 4
    + b"\xff\xd9"
)


class Foo(BaseModel):
    foo: str = ""


def build_app(tools: Tools, upload_dir: Path, static_dir: Path) -> FastAPI:
    """A throwaway app whose handlers call straight into the toolkit."""
    app = FastAPI()

    @app.post("/upload")
    async def upload(request: Request, rename: bool = True):
        stored = await tools.upload_files(request, upload_dir, rename=rename)
        return tools.write_json(200, [asdict(f) for f in stored])

    @app.post("/upload-one")
    async def upload_one(request: Request, rename: bool = True):
        stored = await tools.upload_one_file(request, upload_dir, rename=rename)
        return tools.write_json(201, asdict(stored))

    @app.get("/download/{stored}")
    async def download(request: Request, stored: str, name: str = "image.jpg"):
        return tools.download_static_file(request, static_dir, stored, name)

    @app.post("/echo")
    async def echo(request: Request):
        try:
            payload = await tools.read_json(request, Foo)
        except JSONBodyError as exc:
            return tools.error_json(exc)
        return tools.write_json(200, JSONEnvelope(message="ok", data=payload))

    return app


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    d = tmp_path / "static"
    d.mkdir()
    (d / "cat.jpg").write_bytes(JPEG_STUB)
    return d


@pytest.fixture
def make_client(upload_dir: Path, static_dir: Path):
    def _make(config: ToolkitConfig | None = None) -> TestClient:
        tools = Tools(config, RandomSource(seed=7))
        return TestClient(build_app(tools, upload_dir, static_dir))

    return _make


@pytest.fixture
def toolkit_logger():
    """Yield the package logger and strip any handlers a test attached."""
    lg = logging.getLogger("toolkit")
    before = list(lg.handlers)
    level = lg.level
    yield lg
    for h in list(lg.handlers):
        if h not in before:
            lg.removeHandler(h)
    lg.setLevel(level)
