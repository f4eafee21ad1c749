from __future__ import annotations

import re

from ..errors import EmptyInputError, EmptyResultError

__all__ = [
    "slugify",
]

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(s: str) -> str:
    """Turn arbitrary text into a URL-safe slug.

    Rules:
    - Lowercase the input.
    - Replace every run of characters outside [a-z0-9] with a single "-".
    - Strip leading/trailing "-".

    Raises:
        EmptyInputError: if `s` is empty.
        EmptyResultError: if nothing is left after the rules above.
    """
    if not s:
        raise EmptyInputError("string should not be empty")

    slug = _NON_SLUG_RE.sub("-", s.lower()).strip("-")
    if not slug:
        raise EmptyResultError("given string produces empty slug")
    return slug
