"""Tests for file utility functions."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from fabindex.utils.files import compute_sha256, iter_artifact_paths


class TestIterArtifactPaths:
    """Test iter_artifact_paths function."""

    def test_missing_directory(self, tmp_path: Path) -> None:
        """Should yield nothing for a missing directory."""
        assert list(iter_artifact_paths(tmp_path / "missing")) == []

    def test_newest_first(self, tmp_path: Path) -> None:
        """Should order artifacts by modification time, newest first."""
        old = tmp_path / "old.db"
        new = tmp_path / "new.db"
        old.write_text("old")
        new.write_text("new")
        os.utime(old, (1_000, 1_000))
        os.utime(new, (2_000, 2_000))
        (tmp_path / "notes.txt").write_text("ignored")

        assert list(iter_artifact_paths(tmp_path)) == [new, old]


class TestComputeSha256:
    """Test compute_sha256 function."""

    def test_matches_hashlib(self, tmp_path: Path) -> None:
        """Should match hashlib for file content."""
        path = tmp_path / "file.bin"
        path.write_bytes(b"fabindex" * 1000)

        assert compute_sha256(path) == hashlib.sha256(b"fabindex" * 1000).hexdigest()

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty"
        path.write_bytes(b"")

        assert compute_sha256(path) == hashlib.sha256(b"").hexdigest()
