"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _get_default_index_dir() -> Path:
    """Get the default index directory, honouring FABINDEX_HOME when set."""
    home = os.environ.get("FABINDEX_HOME")
    if home:
        return Path(home) / "index"
    return Path("data/index")


@dataclass(slots=True)
class AppConfig:
    index_dir: Path | None = None
    store_dir: Path = Path("data/store")
    max_depth: int = 256
    max_retries: int = 3
    retry_base_delay: float = 0.5
    resolve_links: bool = True

    def __post_init__(self) -> None:
        if self.index_dir is None:
            self.index_dir = _get_default_index_dir()

    def resolve_index_dir(self, base_dir: Path | None = None) -> Path:
        if self.index_dir is None:
            self.index_dir = _get_default_index_dir()
        if Path(self.index_dir).is_absolute() or base_dir is None:
            return Path(self.index_dir)
        return base_dir / self.index_dir
