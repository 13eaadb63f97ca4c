"""Handle normalization."""

from __future__ import annotations

import re

# X handles: 1-15 letters, digits or underscores
_HANDLE_RE = re.compile(r"^[A-Za-z0-9_]{1,15}$")


def normalize_username(raw: str) -> str:
    """Normalize a user-submitted handle to its stored form.

    Strips whitespace and a leading "@", lowercases.

    Raises:
        ValueError: If the result is not a valid handle.
    """
    handle = (raw or "").strip()
    if handle.startswith("@"):
        handle = handle[1:]
    if not _HANDLE_RE.match(handle):
        raise ValueError(f"Invalid username: '{raw}'")
    return handle.lower()
