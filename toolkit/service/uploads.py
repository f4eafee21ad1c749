from __future__ import annotations

import os
import shutil
from collections.abc import AsyncGenerator, AsyncIterator
from dataclasses import dataclass
from typing import BinaryIO

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser
from starlette.requests import Request

from ..config import RENAMED_TOKEN_LENGTH, ToolkitConfig
from ..domain.sniff import SNIFF_LEN, detect_content_type
from ..domain.tokens import RandomSource
from ..errors import (
    MalformedUploadError,
    UnsupportedFileTypeError,
    UploadError,
    UploadFailedError,
    UploadTooLargeError,
)
from ..logging_conf import get_logger
from .files import ensure_dir

__all__ = [
    "UploadedFile",
    "upload_files",
    "upload_one_file",
]

logger = get_logger("service.uploads")


@dataclass(frozen=True)
class UploadedFile:
    """A part that passed validation and was written to the upload dir."""

    new_name: str
    original_name: str
    size: int


def _extension(filename: str) -> str:
    """Return the extension of the last path element, dot included."""
    base = filename.replace("\\", "/").rpartition("/")[2]
    _, dot, ext = base.rpartition(".")
    return f".{ext}" if dot else ""


async def _bounded(stream: AsyncIterator[bytes], limit: int) -> AsyncGenerator[bytes, None]:
    received = 0
    async for chunk in stream:
        received += len(chunk)
        if received > limit:
            raise UploadTooLargeError("uploaded file is too big")
        yield chunk


async def _parse_form(request: Request, limit: int) -> FormData:
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise MalformedUploadError("request is not multipart/form-data")

    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise UploadTooLargeError("uploaded file is too big")

    parser = MultiPartParser(request.headers, _bounded(request.stream(), limit))
    try:
        return await parser.parse()
    except MultiPartException as exc:
        raise MalformedUploadError(f"malformed multipart body: {exc.message}") from exc


def _copy_to(src: BinaryIO, destination: str) -> int:
    with open(destination, "wb") as out:
        shutil.copyfileobj(src, out)
        return out.tell()


async def _save_part(
    part: UploadFile,
    upload_dir: str,
    *,
    config: ToolkitConfig,
    source: RandomSource,
    rename: bool,
    uploaded: list[UploadedFile],
) -> UploadedFile:
    original_name = part.filename or ""
    try:
        head = await part.read(SNIFF_LEN)
        content_type = detect_content_type(head)
        if not config.allows_content_type(content_type):
            logger.warning(
                "upload.rejected",
                extra={
                    "event": "upload_rejected",
                    "original_name": original_name,
                    "content_type": content_type,
                },
            )
            raise UnsupportedFileTypeError(
                "uploaded file type is not permitted", uploaded, content_type=content_type
            )
        await part.seek(0)

        if rename:
            new_name = source.random_string(RENAMED_TOKEN_LENGTH) + _extension(original_name)
        else:
            new_name = original_name

        size = await run_in_threadpool(_copy_to, part.file, os.path.join(upload_dir, new_name))
    except OSError as exc:
        raise UploadFailedError(f"could not store {original_name!r}: {exc}", uploaded) from exc

    logger.info(
        "upload.saved",
        extra={
            "event": "upload_saved",
            "original_name": original_name,
            "stored_as": new_name,
            "content_type": content_type,
            "size": size,
        },
    )
    return UploadedFile(new_name=new_name, original_name=original_name, size=size)


async def upload_files(
    request: Request,
    upload_dir: str | os.PathLike[str],
    *,
    config: ToolkitConfig,
    source: RandomSource,
    rename: bool = True,
) -> list[UploadedFile]:
    """Persist every file part of a multipart request into `upload_dir`.

    Parts are handled in the order the parser yields them. Each one is sniffed
    against the configured allow-list, optionally renamed to a random token
    plus its original extension, and copied to disk.

    Processing stops at the first failing part. The raised UploadError carries
    the files already written in `uploaded`.

    Raises:
        UploadTooLargeError: the body exceeds `config.upload_limit`.
        MalformedUploadError: the body is not valid multipart/form-data.
        UnsupportedFileTypeError: a part's sniffed type is not allowed.
        UploadFailedError: reading or writing a part failed.
        OSError: `upload_dir` could not be created.
    """
    form = await _parse_form(request, config.upload_limit)
    try:
        upload_dir = os.fspath(upload_dir)
        ensure_dir(upload_dir)

        uploaded: list[UploadedFile] = []
        for _, value in form.multi_items():
            if not isinstance(value, UploadFile):
                continue
            record = await _save_part(
                value,
                upload_dir,
                config=config,
                source=source,
                rename=rename,
                uploaded=uploaded,
            )
            uploaded.append(record)
        return uploaded
    finally:
        await form.close()


async def upload_one_file(
    request: Request,
    upload_dir: str | os.PathLike[str],
    *,
    config: ToolkitConfig,
    source: RandomSource,
    rename: bool = True,
) -> UploadedFile:
    """Run the upload pipeline and return the first stored file."""
    uploaded = await upload_files(
        request, upload_dir, config=config, source=source, rename=rename
    )
    if not uploaded:
        raise UploadError("request contains no file parts")
    return uploaded[0]
