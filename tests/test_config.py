"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from fabindex.config import AppConfig


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should create config with default values."""
        monkeypatch.delenv("FABINDEX_HOME", raising=False)
        config = AppConfig()

        assert config.index_dir == Path("data/index")
        assert config.store_dir == Path("data/store")
        assert config.max_depth == 256
        assert config.max_retries == 3
        assert config.retry_base_delay == 0.5
        assert config.resolve_links is True

    def test_home_from_environment(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Should place the index under FABINDEX_HOME when set."""
        monkeypatch.setenv("FABINDEX_HOME", str(tmp_path))

        assert AppConfig().index_dir == tmp_path / "index"

    def test_custom_config(self) -> None:
        """Should create config with custom values."""
        config = AppConfig(
            index_dir=Path("/custom/index"),
            store_dir=Path("/custom/store"),
            max_depth=8,
            resolve_links=False,
        )

        assert config.index_dir == Path("/custom/index")
        assert config.store_dir == Path("/custom/store")
        assert config.max_depth == 8
        assert config.resolve_links is False

    def test_resolve_index_dir_absolute(self) -> None:
        """Should return absolute path as-is."""
        config = AppConfig(index_dir=Path("/absolute/index"))

        assert config.resolve_index_dir(Path("/base")) == Path("/absolute/index")

    def test_resolve_index_dir_relative_no_base(self) -> None:
        """Should return relative path when no base_dir provided."""
        config = AppConfig(index_dir=Path("relative/index"))

        assert config.resolve_index_dir(base_dir=None) == Path("relative/index")

    def test_resolve_index_dir_relative_with_base(self) -> None:
        """Should resolve relative path against base_dir."""
        config = AppConfig(index_dir=Path("relative/index"))

        assert config.resolve_index_dir(base_dir=Path("/base")) == Path("/base/relative/index")
