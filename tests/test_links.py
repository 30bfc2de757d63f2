"""Tests for metadata link parsing."""

from __future__ import annotations

import pytest

from fabindex.errors import MalformedMetadata
from fabindex.ingestion.links import LinkRef, is_link, parse_link


class TestIsLink:
    """Test link marker detection."""

    def test_link_marker(self) -> None:
        assert is_link({"/": "./meta/a"})

    @pytest.mark.parametrize("value", [{"a": 1}, "./meta/a", ["/"], None, 3])
    def test_not_a_link(self, value) -> None:
        assert not is_link(value)


class TestParseLink:
    """Test parsing of link strings."""

    def test_relative_with_meta(self) -> None:
        link = parse_link("./meta/public/asset")

        assert link == LinkRef(raw="./meta/public/asset", target_hash=None, subpath="public/asset")

    def test_relative_without_meta(self) -> None:
        assert parse_link("./public").subpath == "public"

    def test_relative_to_whole_object(self) -> None:
        assert parse_link("./meta").subpath == ""

    def test_fabric_link(self) -> None:
        link = parse_link("/qfab/hq__abc/meta/info/title")

        assert link.target_hash == "hq__abc"
        assert link.subpath == "info/title"

    def test_fabric_link_to_object(self) -> None:
        link = parse_link("/qfab/hq__abc")

        assert link.target_hash == "hq__abc"
        assert link.subpath == ""

    def test_resolve_hash(self) -> None:
        assert parse_link("./meta/a").resolve_hash("hq__origin") == "hq__origin"
        assert parse_link("/qfab/hq__x/meta/a").resolve_hash("hq__origin") == "hq__x"

    @pytest.mark.parametrize("raw", ["https://example.com", "/qfab/", "meta/a", ""])
    def test_unrecognised(self, raw: str) -> None:
        with pytest.raises(MalformedMetadata):
            parse_link(raw)

    def test_non_string(self) -> None:
        with pytest.raises(MalformedMetadata, match="must be a string"):
            parse_link({"nested": True})
