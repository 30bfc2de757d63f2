"""Tests for core data models."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from fabindex.models import (
    ArtifactDescriptor,
    CrawlStats,
    FieldConfig,
    IndexerConfig,
    RootConfig,
)


class TestFieldConfig:
    """Test FieldConfig dataclass."""

    def test_equality_ignores_options(self) -> None:
        first = FieldConfig(name="title", field_type="text", paths=("title",), options={"a": 1})
        second = FieldConfig(name="title", field_type="text", paths=("title",), options={"b": 2})

        assert first == second
        assert hash(first) == hash(second)

    def test_frozen(self) -> None:
        field = FieldConfig(name="title", field_type="text", paths=("title",))

        with pytest.raises(dataclasses.FrozenInstanceError):
            field.name = "other"  # type: ignore[misc]


class TestIndexerConfig:
    """Test IndexerConfig dataclass."""

    def test_field_names(self) -> None:
        config = IndexerConfig(
            indexer_type="metadata-text",
            fields=(
                FieldConfig(name="b", field_type="text", paths=("b",)),
                FieldConfig(name="a", field_type="text", paths=("a",)),
            ),
        )

        assert config.field_names() == ["b", "a"]
        assert config.document is None


class TestRootConfig:
    def test_hash_optional(self) -> None:
        assert RootConfig(content="iq", library="ilib").hash is None


class TestSerialisation:
    """Test dict views used by the CLI and web app."""

    def test_artifact_as_dict(self) -> None:
        artifact = ArtifactDescriptor(hash="abc", path=Path("/tmp/abc.db"), size=10, document_count=2)

        assert artifact.as_dict() == {
            "hash": "abc",
            "path": "/tmp/abc.db",
            "size": 10,
            "document_count": 2,
        }

    def test_stats_as_dict(self) -> None:
        stats = CrawlStats(documents=1, fields_written=4)

        assert stats.as_dict() == {
            "documents": 1,
            "fields_written": 4,
            "fields_skipped": 0,
            "links_resolved": 0,
            "links_skipped": 0,
        }
