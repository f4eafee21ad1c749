from __future__ import annotations

from pydantic import BaseModel, Field

__all__ = [
    "DEFAULT_MAX_UPLOAD_BYTES",
    "DEFAULT_MAX_JSON_BYTES",
    "RENAMED_TOKEN_LENGTH",
    "ToolkitConfig",
]

DEFAULT_MAX_UPLOAD_BYTES = 1024 * 1024 * 1024
DEFAULT_MAX_JSON_BYTES = 1024 * 1024
# Length of the random stem given to renamed uploads.
RENAMED_TOKEN_LENGTH = 25


class ToolkitConfig(BaseModel):
    """Limits and policies shared by every toolkit operation.

    Zero limits mean "use the default"; an empty allow-list accepts any
    detected content type.
    """

    max_upload_bytes: int = Field(0, ge=0)
    allowed_content_types: list[str] = Field(default_factory=list)
    max_json_bytes: int = Field(0, ge=0)
    allow_unknown_json_fields: bool = False

    @property
    def upload_limit(self) -> int:
        return self.max_upload_bytes or DEFAULT_MAX_UPLOAD_BYTES

    @property
    def json_limit(self) -> int:
        return self.max_json_bytes or DEFAULT_MAX_JSON_BYTES

    def allows_content_type(self, content_type: str) -> bool:
        """Case-insensitive allow-list check; an empty list allows everything."""
        if not self.allowed_content_types:
            return True
        wanted = content_type.casefold()
        return any(allowed.casefold() == wanted for allowed in self.allowed_content_types)
