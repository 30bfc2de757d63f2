"""Content stores backed by a directory tree or by memory."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from fabindex.errors import ContentNotFound, ContentStoreIOError, HostCallError
from fabindex.models import ContentVersion

LOGGER = logging.getLogger(__name__)


def select_subpath(metadata: Any, subpath: str, *, object_hash: str = "") -> Any:
    """Return the value at a '/'-separated subpath of a metadata document."""
    value = metadata
    for part in (p for p in subpath.split("/") if p):
        if isinstance(value, dict) and part in value:
            value = value[part]
        elif isinstance(value, list) and part.isdigit() and int(part) < len(value):
            value = value[int(part)]
        else:
            raise ContentNotFound(f"No metadata at '{subpath}' in {object_hash or 'object'}")
    return value


def parse_versions(raw: Any, content_id: str) -> List[ContentVersion]:
    """Parse a version listing, either a list or ``{"versions": [...]}``."""
    if isinstance(raw, Mapping):
        raw = raw.get("versions")
    if not isinstance(raw, list):
        raise HostCallError(f"Malformed version list for {content_id}")

    versions: List[ContentVersion] = []
    for entry in raw:
        if isinstance(entry, str):
            versions.append(ContentVersion(hash=entry))
        elif isinstance(entry, Mapping) and isinstance(entry.get("hash"), str):
            timestamp = entry.get("timestamp")
            versions.append(
                ContentVersion(
                    hash=entry["hash"],
                    timestamp=float(timestamp) if isinstance(timestamp, (int, float)) else None,
                )
            )
        else:
            raise HostCallError(f"Malformed version entry for {content_id}: {entry!r}")
    return versions


class DirectoryContentStore:
    """Content store reading JSON files laid out per library.

    ``<root>/<library>/objects/<hash>.json`` holds an object's metadata and
    ``<root>/<library>/contents/<content_id>.json`` its versions, most recent
    first.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _read_json(self, path: Path) -> Any:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ContentNotFound(f"Not found: {path}") from exc
        except OSError as exc:
            raise ContentStoreIOError(f"Failed to read {path}: {exc}") from exc
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise HostCallError(f"Invalid JSON in {path}: {exc}") from exc

    def get_metadata(self, library_id: str, object_hash: str, subpath: str = "") -> Any:
        path = self.root / library_id / "objects" / f"{object_hash}.json"
        LOGGER.debug("Reading metadata %s/%s at '%s'", library_id, object_hash, subpath)
        return select_subpath(self._read_json(path), subpath, object_hash=object_hash)

    def get_versions(self, content_id: str) -> list[ContentVersion]:
        matches = sorted(self.root.glob(f"*/contents/{content_id}.json"))
        if not matches:
            raise ContentNotFound(f"Unknown content object {content_id}")
        return parse_versions(self._read_json(matches[0]), content_id)


class MemoryContentStore:
    """Content store over in-memory metadata, keyed by library and hash."""

    def __init__(
        self,
        objects: Optional[Mapping[str, Mapping[str, Any]]] = None,
        versions: Optional[Mapping[str, Iterable[ContentVersion | str]]] = None,
    ) -> None:
        self.objects: Dict[str, Dict[str, Any]] = {
            library: dict(items) for library, items in (objects or {}).items()
        }
        self.versions: Dict[str, List[ContentVersion]] = {}
        for content_id, entries in (versions or {}).items():
            self.versions[content_id] = [
                ContentVersion(hash=e) if isinstance(e, str) else e for e in entries
            ]

    def put(self, library_id: str, object_hash: str, metadata: Any) -> None:
        self.objects.setdefault(library_id, {})[object_hash] = metadata

    def get_metadata(self, library_id: str, object_hash: str, subpath: str = "") -> Any:
        try:
            metadata = self.objects[library_id][object_hash]
        except KeyError as exc:
            raise ContentNotFound(f"Unknown object {library_id}/{object_hash}") from exc
        return copy.deepcopy(select_subpath(metadata, subpath, object_hash=object_hash))

    def get_versions(self, content_id: str) -> list[ContentVersion]:
        if content_id not in self.versions:
            raise ContentNotFound(f"Unknown content object {content_id}")
        return list(self.versions[content_id])
