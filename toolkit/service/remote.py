from __future__ import annotations

from typing import Any

import httpx

from ..logging_conf import get_logger
from .jsonio import JSON_MEDIA_TYPE, encode_json

__all__ = [
    "DEFAULT_TIMEOUT_S",
    "push_json",
    "push_json_async",
]

DEFAULT_TIMEOUT_S = 10.0

logger = get_logger("service.remote")

_HEADERS = {"Content-Type": JSON_MEDIA_TYPE}


def _log_push(uri: str, response: httpx.Response) -> None:
    logger.info(
        "remote.push",
        extra={"event": "remote_push", "uri": uri, "status_code": response.status_code},
    )


def push_json(
    uri: str, payload: Any, client: httpx.Client | None = None
) -> tuple[httpx.Response, int]:
    """POST `payload` as JSON to `uri` and return the response and its status.

    - Pass `client` to reuse a connection pool or to inject a mock transport
    - Without one, a short-lived client is opened and closed around the call
    - Serialization and transport errors propagate (httpx.HTTPError, ValueError, TypeError)
    """
    body = encode_json(payload)
    if client is None:
        with httpx.Client(timeout=DEFAULT_TIMEOUT_S) as own:
            response = own.post(uri, content=body, headers=_HEADERS)
    else:
        response = client.post(uri, content=body, headers=_HEADERS)
    _log_push(uri, response)
    return response, response.status_code


async def push_json_async(
    uri: str, payload: Any, client: httpx.AsyncClient | None = None
) -> tuple[httpx.Response, int]:
    """Async counterpart of push_json() built on httpx.AsyncClient."""
    body = encode_json(payload)
    if client is None:
        async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT_S) as own:
            response = await own.post(uri, content=body, headers=_HEADERS)
    else:
        response = await client.post(uri, content=body, headers=_HEADERS)
    _log_push(uri, response)
    return response, response.status_code
