"""Text helpers for matching queries against indexed values."""

from __future__ import annotations

import re
from typing import List

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def tokenize(text: str) -> List[str]:
    """Split text into lowercase word tokens."""
    if not text:
        return []
    return [token.lower() for token in _TOKEN_RE.findall(text)]


def snippet(text: str, *, max_chars: int = 180) -> str:
    """Single-line preview of an indexed value."""
    flat = " ".join(text.split())
    if len(flat) <= max_chars:
        return flat
    return flat[: max_chars - 1].rstrip() + "…"
