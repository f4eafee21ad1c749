from __future__ import annotations

import json
import types
from collections.abc import Mapping
from typing import Any, NoReturn, TypeVar, Union, get_args, get_origin

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, SerializerFunctionWrapHandler, ValidationError, model_serializer
from starlette.requests import Request
from starlette.responses import Response

from ..config import ToolkitConfig
from ..errors import (
    BodyTooLargeError,
    EmptyBodyError,
    InvalidTargetError,
    JSONBodyError,
    MalformedJSONError,
    MultipleJSONValuesError,
    TypeMismatchError,
    UnknownFieldError,
)
from ..logging_conf import get_logger

__all__ = [
    "JSON_MEDIA_TYPE",
    "JSONEnvelope",
    "decode_json",
    "encode_json",
    "read_json",
    "write_json",
    "error_json",
]

JSON_MEDIA_TYPE = "application/json"

logger = get_logger("service.jsonio")

ModelT = TypeVar("ModelT", bound=BaseModel)

_WHITESPACE = " \t\n\r"
_decoder = json.JSONDecoder()


class JSONEnvelope(BaseModel):
    """Standard response wrapper; `data` is left out when it is None."""

    error: bool = False
    message: str = ""
    data: Any | None = None

    @model_serializer(mode="wrap")
    def drop_missing_data(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        out = handler(self)
        if out.get("data") is None:
            out.pop("data", None)
        return out


# ------------------------
# Decoding
# ------------------------

def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    return pos


def _is_truncated(exc: json.JSONDecodeError) -> bool:
    return exc.pos >= len(exc.doc) or exc.msg.startswith("Unterminated string")


def _is_type_error(error_type: str) -> bool:
    return error_type.endswith(("_type", "_parsing")) or error_type == "int_from_float"


def _field_path(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc)


def _nested_models(annotation: Any) -> list[tuple[type[BaseModel], bool]]:
    """Models reachable from a field annotation, flagged when held in a list."""
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return [(annotation, False)]
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        found: list[tuple[type[BaseModel], bool]] = []
        for arg in get_args(annotation):
            found.extend(_nested_models(arg))
        return found
    if origin in (list, tuple, set, frozenset):
        return [
            (model, True)
            for arg in get_args(annotation)
            for model, _ in _nested_models(arg)
        ]
    return []


def _accepted_keys(model: type[BaseModel]) -> dict[str, Any]:
    by_name = model.model_config.get("populate_by_name") or model.model_config.get("validate_by_name")
    keys: dict[str, Any] = {}
    for name, field in model.model_fields.items():
        if isinstance(field.validation_alias, str):
            keys[field.validation_alias] = field.annotation
        elif field.alias:
            keys[field.alias] = field.annotation
        if by_name or not (field.alias or isinstance(field.validation_alias, str)):
            keys[name] = field.annotation
    return keys


def _find_unknown_key(model: type[BaseModel], value: Any) -> str | None:
    """First object key (document order) that `model` does not declare."""
    if not isinstance(value, dict) or model.model_config.get("extra") == "allow":
        return None
    accepted = _accepted_keys(model)
    for key, item in value.items():
        if key not in accepted:
            return key
        for nested, many in _nested_models(accepted[key]):
            for element in (item if many and isinstance(item, list) else [item]):
                found = _find_unknown_key(nested, element)
                if found is not None:
                    return found
    return None


def _byte_offset(text: str, pos: int) -> int:
    """1-based byte offset in the UTF-8 body of character index `pos`."""
    return len(text[:pos].encode("utf-8")) + 1


def _unknown_key_error(key: str) -> UnknownFieldError:
    return UnknownFieldError(f'body contains unknown key "{key}"', key)


def _raise_for_validation(
    exc: ValidationError,
    offset: int,
    target: type[BaseModel],
    value: Any,
    allow_unknown_fields: bool,
) -> NoReturn:
    errors = exc.errors()
    for err in errors:
        if _is_type_error(err["type"]):
            field = _field_path(err["loc"])
            if field:
                raise TypeMismatchError(
                    f"body contains incorrect JSON type for field {field!r}", field=field
                ) from exc
            raise TypeMismatchError(
                f"body contains incorrect JSON type at character {offset}", offset=offset
            ) from exc
    for err in errors:
        if err["type"] == "extra_forbidden":
            raise _unknown_key_error(str(err["loc"][-1])) from exc
    if not allow_unknown_fields:
        key = _find_unknown_key(target, value)
        if key is not None:
            raise _unknown_key_error(key) from exc
    raise JSONBodyError(str(exc)) from exc


def decode_json(
    body: bytes | str,
    target: type[ModelT],
    *,
    allow_unknown_fields: bool = False,
) -> ModelT:
    """Decode exactly one JSON value from `body` into the model `target`.

    Validation is strict: a JSON number is not accepted for a string field and
    vice versa. Unless `allow_unknown_fields` is set, keys the model does not
    declare are rejected, nested models included.

    Raises:
        InvalidTargetError: `target` is not a pydantic model class.
        EmptyBodyError: the body is empty or only whitespace.
        MalformedJSONError: bad syntax (with offset) or truncated input.
        TypeMismatchError: a value has the wrong JSON type.
        UnknownFieldError: an undeclared key was sent.
        MultipleJSONValuesError: anything but whitespace follows the value.
        JSONBodyError: any other validation failure.
    """
    if not (isinstance(target, type) and issubclass(target, BaseModel)):
        raise InvalidTargetError(f"error unmarshalling JSON: invalid target {target!r}")

    if isinstance(body, bytes):
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedJSONError(
                f"body contains badly formed JSON at character {exc.start + 1}", exc.start + 1
            ) from exc
    else:
        text = body

    start = _skip_whitespace(text, 0)
    if start == len(text):
        raise EmptyBodyError("body must not be empty")

    try:
        value, end = _decoder.raw_decode(text, start)
    except json.JSONDecodeError as exc:
        if _is_truncated(exc):
            raise MalformedJSONError("body contains badly formed JSON") from exc
        offset = _byte_offset(text, exc.pos)
        raise MalformedJSONError(
            f"body contains badly formed JSON at character {offset}", offset
        ) from exc

    try:
        result = target.model_validate_json(text[start:end], strict=True)
    except ValidationError as exc:
        _raise_for_validation(
            exc, _byte_offset(text, start), target, value, allow_unknown_fields
        )

    if not allow_unknown_fields:
        key = _find_unknown_key(target, value)
        if key is not None:
            raise _unknown_key_error(key)

    if _skip_whitespace(text, end) != len(text):
        raise MultipleJSONValuesError("body must contain exactly one JSON object")

    return result


async def _read_body(request: Request, limit: int) -> bytes:
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise BodyTooLargeError(f"body must not be larger than {limit} bytes", limit)

    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise BodyTooLargeError(f"body must not be larger than {limit} bytes", limit)
        chunks.append(chunk)
    return b"".join(chunks)


async def read_json(
    request: Request,
    target: type[ModelT],
    *,
    config: ToolkitConfig | None = None,
) -> ModelT:
    """Read the request body (at most `config.json_limit` bytes) into `target`.

    Raises BodyTooLargeError before any decoding when the cap is exceeded;
    everything else is as for decode_json().
    """
    config = config or ToolkitConfig()
    try:
        body = await _read_body(request, config.json_limit)
        return decode_json(
            body, target, allow_unknown_fields=config.allow_unknown_json_fields
        )
    except JSONBodyError as exc:
        logger.info(
            "json.rejected",
            extra={"event": "json_rejected", "error_code": exc.code, "path": request.url.path},
        )
        raise


# ------------------------
# Encoding
# ------------------------

def encode_json(payload: Any) -> bytes:
    """Serialize models, dataclasses and plain values to compact JSON bytes.

    Raises ValueError for NaN/Infinity and TypeError for unserializable values.
    """
    return json.dumps(
        jsonable_encoder(payload),
        ensure_ascii=False,
        allow_nan=False,
        separators=(",", ":"),
    ).encode("utf-8")


def write_json(
    status: int,
    payload: Any,
    headers: Mapping[str, str] | None = None,
) -> Response:
    """Build a JSON response; caller headers apply but Content-Type is forced."""
    body = encode_json(payload)
    merged = {
        key: value
        for key, value in (headers or {}).items()
        if key.lower() != "content-type"
    }
    return Response(content=body, status_code=status, headers=merged, media_type=JSON_MEDIA_TYPE)


def error_json(err: BaseException, status: int = 400) -> Response:
    """Wrap `str(err)` in an error envelope."""
    return write_json(status, JSONEnvelope(error=True, message=str(err)))
