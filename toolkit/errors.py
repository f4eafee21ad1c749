from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .service.uploads import UploadedFile

__all__ = [
    "ToolkitError",
    "SlugError",
    "EmptyInputError",
    "EmptyResultError",
    "UploadError",
    "UploadTooLargeError",
    "MalformedUploadError",
    "UnsupportedFileTypeError",
    "UploadFailedError",
    "JSONBodyError",
    "MalformedJSONError",
    "TypeMismatchError",
    "EmptyBodyError",
    "UnknownFieldError",
    "BodyTooLargeError",
    "InvalidTargetError",
    "MultipleJSONValuesError",
]


class ToolkitError(Exception):
    """Base class for every error raised by the toolkit.

    The `code` attribute gives handlers a stable machine code to branch on or
    to put in a response.
    """

    code: str = "toolkit_error"


# ------------------------
# Slugs
# ------------------------
class SlugError(ToolkitError, ValueError):
    code = "invalid_slug"


class EmptyInputError(SlugError):
    code = "empty_input"


class EmptyResultError(SlugError):
    code = "empty_slug"


# ------------------------
# Uploads
# ------------------------
class UploadError(ToolkitError):
    """Raised when an upload batch stops.

    `uploaded` holds the files persisted before the failure; they stay on
    disk and belong to the caller.
    """

    code = "upload_failed"

    def __init__(self, message: str, uploaded: list[UploadedFile] | None = None) -> None:
        super().__init__(message)
        self.uploaded: list[UploadedFile] = list(uploaded or [])


class UploadTooLargeError(UploadError):
    code = "upload_too_large"


class MalformedUploadError(UploadError):
    code = "malformed_upload"


class UnsupportedFileTypeError(UploadError):
    code = "unsupported_file_type"

    def __init__(
        self,
        message: str,
        uploaded: list[UploadedFile] | None = None,
        *,
        content_type: str | None = None,
    ) -> None:
        super().__init__(message, uploaded)
        self.content_type = content_type


class UploadFailedError(UploadError):
    """An I/O error while persisting a part; the OSError is the __cause__."""

    code = "upload_io_error"


# ------------------------
# JSON bodies
# ------------------------
class JSONBodyError(ToolkitError, ValueError):
    """A request body could not be decoded.

    Raised as-is for failures outside the known categories; the message is
    passed through from the underlying validator.
    """

    code = "invalid_json"


class MalformedJSONError(JSONBodyError):
    code = "malformed_json"

    def __init__(self, message: str, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class TypeMismatchError(JSONBodyError):
    code = "json_type_mismatch"

    def __init__(self, message: str, *, field: str | None = None, offset: int | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.offset = offset


class EmptyBodyError(JSONBodyError):
    code = "empty_body"


class UnknownFieldError(JSONBodyError):
    code = "unknown_field"

    def __init__(self, message: str, key: str) -> None:
        super().__init__(message)
        self.key = key


class BodyTooLargeError(JSONBodyError):
    code = "body_too_large"

    def __init__(self, message: str, limit: int) -> None:
        super().__init__(message)
        self.limit = limit


class InvalidTargetError(JSONBodyError):
    code = "invalid_target"


class MultipleJSONValuesError(JSONBodyError):
    code = "multiple_json_values"
