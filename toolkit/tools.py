"""The Tools facade: one configuration and one random source, every helper.

Handlers usually build a single Tools instance at startup and share it:

    tools = Tools(ToolkitConfig(allowed_content_types=["image/png"]))

    @app.post("/avatar")
    async def avatar(request: Request):
        stored = await tools.upload_one_file(request, "./uploads")
        return tools.write_json(201, JSONEnvelope(message="stored", data=stored))
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from starlette.requests import Request
from starlette.responses import Response

from .config import ToolkitConfig
from .domain.slugs import slugify
from .domain.tokens import RandomSource
from .service import files, jsonio, remote, uploads
from .service.uploads import UploadedFile

__all__ = ["Tools"]

ModelT = TypeVar("ModelT", bound=BaseModel)


class Tools:
    def __init__(
        self, config: ToolkitConfig | None = None, source: RandomSource | None = None
    ) -> None:
        self.config = config or ToolkitConfig()
        self.source = source or RandomSource()

    def random_string(self, n: int) -> str:
        return self.source.random_string(n)

    @staticmethod
    def slugify(s: str) -> str:
        return slugify(s)

    @staticmethod
    def ensure_dir(path: str | os.PathLike[str]) -> None:
        files.ensure_dir(path)

    async def upload_files(
        self, request: Request, upload_dir: str | os.PathLike[str], rename: bool = True
    ) -> list[UploadedFile]:
        return await uploads.upload_files(
            request, upload_dir, config=self.config, source=self.source, rename=rename
        )

    async def upload_one_file(
        self, request: Request, upload_dir: str | os.PathLike[str], rename: bool = True
    ) -> UploadedFile:
        return await uploads.upload_one_file(
            request, upload_dir, config=self.config, source=self.source, rename=rename
        )

    @staticmethod
    def download_static_file(
        request: Request,
        directory: str | os.PathLike[str],
        stored_name: str,
        display_name: str,
    ) -> Response:
        return files.download_static_file(request, directory, stored_name, display_name)

    async def read_json(self, request: Request, target: type[ModelT]) -> ModelT:
        return await jsonio.read_json(request, target, config=self.config)

    @staticmethod
    def write_json(
        status: int, payload: Any, headers: Mapping[str, str] | None = None
    ) -> Response:
        return jsonio.write_json(status, payload, headers)

    @staticmethod
    def error_json(err: BaseException, status: int = 400) -> Response:
        return jsonio.error_json(err, status)

    @staticmethod
    def push_json(
        uri: str, payload: Any, client: httpx.Client | None = None
    ) -> tuple[httpx.Response, int]:
        return remote.push_json(uri, payload, client)

    @staticmethod
    async def push_json_async(
        uri: str, payload: Any, client: httpx.AsyncClient | None = None
    ) -> tuple[httpx.Response, int]:
        return await remote.push_json_async(uri, payload, client)
