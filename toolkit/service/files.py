from __future__ import annotations

import os
import stat
from email.utils import parsedate
from urllib.parse import quote_plus

from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.responses import FileResponse, PlainTextResponse, Response
from starlette.staticfiles import NotModifiedResponse

from ..logging_conf import get_logger

__all__ = [
    "DIR_MODE",
    "ensure_dir",
    "content_disposition",
    "download_static_file",
]

DIR_MODE = 0o755

logger = get_logger("service.files")


def ensure_dir(path: str | os.PathLike[str], mode: int = DIR_MODE) -> None:
    """Create `path` and any missing parents; an existing path is left alone.

    Safe to call concurrently for the same path.
    """
    if os.path.exists(path):
        return
    os.makedirs(path, mode=mode, exist_ok=True)
    logger.info("dir.created", extra={"event": "dir_created", "path": os.fspath(path)})


def content_disposition(display_name: str) -> str:
    """Attachment header value with the name escaped as a query component."""
    return f'attachment; filename="{quote_plus(display_name)}"'


def _is_not_modified(response_headers: Headers, request_headers: Headers) -> bool:
    if_none_match = request_headers.get("if-none-match")
    etag = response_headers.get("etag")
    if if_none_match and etag:
        return etag in [tag.strip(" W/") for tag in if_none_match.split(",")]

    if_modified_since = request_headers.get("if-modified-since")
    last_modified = response_headers.get("last-modified")
    if if_modified_since and last_modified:
        since = parsedate(if_modified_since)
        modified = parsedate(last_modified)
        return since is not None and modified is not None and since >= modified
    return False


def download_static_file(
    request: Request,
    directory: str | os.PathLike[str],
    stored_name: str,
    display_name: str,
) -> Response:
    """Serve `directory/stored_name` as an attachment named `display_name`.

    Range requests are answered by FileResponse; conditional requests get a
    304. A missing file becomes a 404 response rather than an exception.
    """
    path = os.path.join(directory, stored_name)
    try:
        stat_result = os.stat(path)
    except OSError:
        stat_result = None
    if stat_result is None or not stat.S_ISREG(stat_result.st_mode):
        logger.info("download.missing", extra={"event": "download_missing", "path": path})
        return PlainTextResponse("404 page not found", status_code=404)

    response = FileResponse(
        path,
        headers={"Content-Disposition": content_disposition(display_name)},
        stat_result=stat_result,
    )
    if _is_not_modified(response.headers, request.headers):
        return NotModifiedResponse(response.headers)
    return response
