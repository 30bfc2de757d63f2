"""Core fabindex data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True, slots=True)
class FieldConfig:
    """One indexed field and the metadata paths it is read from."""

    name: str
    field_type: str
    paths: Tuple[str, ...]
    options: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True, slots=True)
class IndexerConfig:
    indexer_type: str
    fields: Tuple[FieldConfig, ...]
    document: Any = field(default=None, compare=False, hash=False)

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


@dataclass(frozen=True, slots=True)
class RootConfig:
    """Entry point of a crawl: a content object inside a library."""

    content: str
    library: str
    hash: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FabricConfig:
    root: RootConfig
    policy: Any = field(default=None, compare=False, hash=False)


@dataclass(frozen=True, slots=True)
class ContentVersion:
    """A single version of a content object as reported by the store."""

    hash: str
    timestamp: Optional[float] = None


@dataclass(slots=True)
class ArtifactDescriptor:
    """Content descriptor of an archived index."""

    hash: str
    path: Path
    size: int
    document_count: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "path": str(self.path),
            "size": self.size,
            "document_count": self.document_count,
        }


@dataclass(slots=True)
class CrawlStats:
    documents: int = 0
    fields_written: int = 0
    fields_skipped: int = 0
    links_resolved: int = 0
    links_skipped: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "documents": self.documents,
            "fields_written": self.fields_written,
            "fields_skipped": self.fields_skipped,
            "links_resolved": self.links_resolved,
            "links_skipped": self.links_skipped,
        }


@dataclass(slots=True)
class CrawlResult:
    """Outcome of a successful crawl."""

    artifact: ArtifactDescriptor
    root_hash: str
    stats: CrawlStats = field(default_factory=CrawlStats)
