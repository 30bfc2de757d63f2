"""Parsing of indexer configuration documents.

A configuration document names the fields to index and where the crawl
starts::

    {"indexer": {"type": "metadata-text",
                 "arguments": {"document": {...},
                               "fields": {"title": {"type": "text",
                                                    "options": {...},
                                                    "paths": ["public.title"]}}}},
     "fabric": {"policy": {...},
                "root": {"content": "iq__...", "library": "ilib..."}}}
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Tuple

from fabindex.errors import ConfigError
from fabindex.models import FabricConfig, FieldConfig, IndexerConfig, RootConfig

LOGGER = logging.getLogger(__name__)


def _require(mapping: Mapping[str, Any], key: str, dotted: str) -> Any:
    if not isinstance(mapping, Mapping) or key not in mapping:
        raise ConfigError(dotted, "missing")
    return mapping[key]


def _require_mapping(mapping: Mapping[str, Any], key: str, dotted: str) -> Mapping[str, Any]:
    value = _require(mapping, key, dotted)
    if not isinstance(value, Mapping):
        raise ConfigError(dotted, "expected an object")
    return value


def _require_str(mapping: Mapping[str, Any], key: str, dotted: str) -> str:
    value = _require(mapping, key, dotted)
    if not isinstance(value, str) or not value:
        raise ConfigError(dotted, "expected a non-empty string")
    return value


def _parse_field(name: str, raw: Any) -> FieldConfig:
    prefix = f"indexer.arguments.fields.{name}"
    if not isinstance(raw, Mapping):
        raise ConfigError(prefix, "expected an object")

    field_type = _require_str(raw, "type", f"{prefix}.type")

    paths = _require(raw, "paths", f"{prefix}.paths")
    if not isinstance(paths, list) or not paths:
        raise ConfigError(f"{prefix}.paths", "expected a non-empty list of dotted paths")
    if not all(isinstance(path, str) for path in paths):
        raise ConfigError(f"{prefix}.paths", "every path must be a string")

    options = raw.get("options")
    if options is None:
        options = {}
    elif not isinstance(options, Mapping):
        raise ConfigError(f"{prefix}.options", "expected an object")

    return FieldConfig(name=name, field_type=field_type, paths=tuple(paths), options=dict(options))


def parse_indexer_config(config: Mapping[str, Any]) -> IndexerConfig:
    indexer = _require_mapping(config, "indexer", "indexer")
    indexer_type = _require_str(indexer, "type", "indexer.type")
    arguments = _require_mapping(indexer, "arguments", "indexer.arguments")
    raw_fields = _require_mapping(arguments, "fields", "indexer.arguments.fields")

    fields = tuple(_parse_field(name, raw) for name, raw in raw_fields.items())
    return IndexerConfig(
        indexer_type=indexer_type,
        fields=fields,
        document=arguments.get("document"),
    )


def parse_fabric_config(config: Mapping[str, Any]) -> FabricConfig:
    fabric = _require_mapping(config, "fabric", "fabric")
    root = _require_mapping(fabric, "root", "fabric.root")

    pinned = root.get("hash")
    if pinned is not None and (not isinstance(pinned, str) or not pinned):
        raise ConfigError("fabric.root.hash", "expected a non-empty string")

    return FabricConfig(
        root=RootConfig(
            content=_require_str(root, "content", "fabric.root.content"),
            library=_require_str(root, "library", "fabric.root.library"),
            hash=pinned,
        ),
        policy=fabric.get("policy"),
    )


def parse_config(config: Mapping[str, Any]) -> Tuple[IndexerConfig, FabricConfig]:
    """Parse a configuration document into indexer and fabric settings."""
    if not isinstance(config, Mapping):
        raise ConfigError("<root>", "expected an object")
    indexer_config = parse_indexer_config(config)
    fabric_config = parse_fabric_config(config)
    LOGGER.debug(
        "Parsed %s indexer config with %d fields", indexer_config.indexer_type, len(indexer_config.fields)
    )
    return indexer_config, fabric_config


def unwrap_index_object(document: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the configuration held by an index object's metadata.

    Index objects keep their configuration under ``indexer.config``; a bare
    configuration document is returned unchanged.
    """
    indexer = document.get("indexer") if isinstance(document, Mapping) else None
    if "fabric" not in document and isinstance(indexer, Mapping) and "config" in indexer:
        inner = indexer["config"]
        if not isinstance(inner, Mapping):
            raise ConfigError("indexer.config", "expected an object")
        return inner
    return document


def load_config_file(path: Path) -> Tuple[IndexerConfig, FabricConfig]:
    """Read a JSON configuration file and parse it."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(str(path), f"unreadable: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(str(path), f"invalid JSON: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ConfigError("<root>", "expected an object")
    return parse_config(unwrap_index_object(raw))
