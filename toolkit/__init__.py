"""Helper utilities for web-service handlers.

Random tokens, slugs, directory creation, multipart uploads, static file
downloads, strict JSON bodies and JSON pushes to remote endpoints.
"""
from importlib.metadata import PackageNotFoundError, version

from .config import ToolkitConfig
from .domain.tokens import RandomSource
from .errors import ToolkitError
from .service.jsonio import JSONEnvelope
from .service.uploads import UploadedFile
from .tools import Tools

try:
    __version__ = version("handler-toolkit")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "JSONEnvelope",
    "RandomSource",
    "ToolkitConfig",
    "ToolkitError",
    "Tools",
    "UploadedFile",
    "__version__",
]
