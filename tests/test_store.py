"""Tests for the bundled content stores."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from fabindex.errors import ContentNotFound, ContentStoreIOError, HostCallError
from fabindex.fabric.store import (
    DirectoryContentStore,
    MemoryContentStore,
    parse_versions,
    select_subpath,
)
from fabindex.models import ContentVersion
from fabindex.protocols.store import ContentStore


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    objects = tmp_path / "ilib__lib" / "objects"
    contents = tmp_path / "ilib__lib" / "contents"
    objects.mkdir(parents=True)
    contents.mkdir(parents=True)
    (objects / "hq__1.json").write_text(json.dumps({"public": {"title": "One", "tags": ["a", "b"]}}))
    (contents / "iq__1.json").write_text(
        json.dumps({"versions": [{"hash": "hq__1", "timestamp": 20}, {"hash": "hq__0", "timestamp": 10}]})
    )
    return tmp_path


class TestSelectSubpath:
    """Test subpath selection inside metadata."""

    def test_empty_subpath_returns_whole(self) -> None:
        meta = {"a": 1}

        assert select_subpath(meta, "") is meta

    def test_nested(self) -> None:
        assert select_subpath({"a": {"b": {"c": 3}}}, "a/b/c") == 3

    def test_ignores_extra_slashes(self) -> None:
        assert select_subpath({"a": {"b": 2}}, "/a//b/") == 2

    def test_list_index(self) -> None:
        assert select_subpath({"a": ["x", "y"]}, "a/1") == "y"

    def test_missing(self) -> None:
        with pytest.raises(ContentNotFound, match="a/z"):
            select_subpath({"a": {}}, "a/z")


class TestParseVersions:
    """Test version listings."""

    def test_plain_list_of_hashes(self) -> None:
        assert parse_versions(["hq__2", "hq__1"], "iq") == [ContentVersion("hq__2"), ContentVersion("hq__1")]

    def test_versions_object(self) -> None:
        versions = parse_versions({"versions": [{"hash": "hq__2", "timestamp": 5}]}, "iq")

        assert versions == [ContentVersion("hq__2", timestamp=5.0)]

    def test_malformed(self) -> None:
        with pytest.raises(HostCallError):
            parse_versions({"versions": "nope"}, "iq")
        with pytest.raises(HostCallError):
            parse_versions([{"no_hash": True}], "iq")


class TestDirectoryContentStore:
    """Test the directory-backed store."""

    def test_is_a_content_store(self, store_dir: Path) -> None:
        assert isinstance(DirectoryContentStore(store_dir), ContentStore)

    def test_get_metadata(self, store_dir: Path) -> None:
        store = DirectoryContentStore(store_dir)

        assert store.get_metadata("ilib__lib", "hq__1") == {"public": {"title": "One", "tags": ["a", "b"]}}
        assert store.get_metadata("ilib__lib", "hq__1", "public/title") == "One"

    def test_get_versions(self, store_dir: Path) -> None:
        versions = DirectoryContentStore(store_dir).get_versions("iq__1")

        assert [v.hash for v in versions] == ["hq__1", "hq__0"]
        assert versions[0].timestamp == 20.0

    def test_unknown_object(self, store_dir: Path) -> None:
        with pytest.raises(ContentNotFound):
            DirectoryContentStore(store_dir).get_metadata("ilib__lib", "hq__missing")

    def test_unknown_content(self, store_dir: Path) -> None:
        with pytest.raises(ContentNotFound):
            DirectoryContentStore(store_dir).get_versions("iq__missing")

    def test_invalid_json(self, store_dir: Path) -> None:
        (store_dir / "ilib__lib" / "objects" / "hq__bad.json").write_text("{broken")

        with pytest.raises(HostCallError, match="Invalid JSON"):
            DirectoryContentStore(store_dir).get_metadata("ilib__lib", "hq__bad")

    def test_os_error_is_transient(self, store_dir: Path) -> None:
        store = DirectoryContentStore(store_dir)

        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            with pytest.raises(ContentStoreIOError) as excinfo:
                store.get_metadata("ilib__lib", "hq__1")

        assert excinfo.value.transient is True


class TestMemoryContentStore:
    """Test the in-memory store."""

    def test_round_trip(self) -> None:
        store = MemoryContentStore({"lib": {"hq__1": {"a": {"b": 1}}}}, {"iq__1": ["hq__1"]})

        assert store.get_metadata("lib", "hq__1", "a") == {"b": 1}
        assert store.get_versions("iq__1") == [ContentVersion("hq__1")]

    def test_returns_copies(self) -> None:
        store = MemoryContentStore()
        store.put("lib", "hq__1", {"a": {"b": 1}})

        store.get_metadata("lib", "hq__1")["a"]["b"] = 2

        assert store.get_metadata("lib", "hq__1", "a/b") == 1

    def test_unknown(self) -> None:
        store = MemoryContentStore()

        with pytest.raises(ContentNotFound):
            store.get_metadata("lib", "hq__1")
        with pytest.raises(ContentNotFound):
            store.get_versions("iq__1")
