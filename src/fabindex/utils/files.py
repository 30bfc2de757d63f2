"""Utility helpers for working with files."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterator


def iter_artifact_paths(directory: Path) -> Iterator[Path]:
    """Yield archived index artifacts, newest first."""
    if not directory.is_dir():
        return
    yield from sorted(
        directory.glob("*.db"),
        key=lambda path: (path.stat().st_mtime, path.name),
        reverse=True,
    )


def compute_sha256(path: Path) -> str:
    """Compute SHA256 hash for a file."""
    sha = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 20), b""):
            sha.update(chunk)
    return sha.hexdigest()
