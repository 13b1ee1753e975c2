"""Text clean-up applied to every turn before it enters a conversation."""

from __future__ import annotations

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")

_PUNCTUATION = str.maketrans(
    {
        "—": "-",    # em dash
        "–": "-",    # en dash
        "‘": "'",
        "’": "'",
        "“": '"',
        "”": '"',
        "…": "...",  # ellipsis
    }
)


def sanitize(text: str) -> str:
    """Drop control characters, flatten smart punctuation to ASCII, trim."""
    return _CONTROL_CHARS.sub("", text).translate(_PUNCTUATION).strip()
