"""Metadata crawl building one index document per content object."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from fabindex.config import AppConfig
from fabindex.errors import ContentNotFound, HostCallError, LinkResolutionError, MalformedMetadata, MaxDepthExceeded
from fabindex.fabric.retry import RetryingContentStore
from fabindex.index.fields import FieldExtractor
from fabindex.index.trie import WILDCARD, PathToFieldsNode
from fabindex.ingestion.links import LINK_KEY, is_link, parse_link
from fabindex.models import ContentVersion, CrawlResult, CrawlStats, FabricConfig, IndexerConfig
from fabindex.protocols.engine import IndexEngine, IndexWriter
from fabindex.protocols.store import ContentStore

LOGGER = logging.getLogger(__name__)

# (library, hash, subpath) of a metadata subtree reached through links
LinkTarget = Tuple[str, str, str]


def select_latest_version(versions: Sequence[ContentVersion]) -> ContentVersion:
    """Pick the most recent version of a content object.

    Stores list versions most recent first. When every version carries a
    timestamp the newest timestamp wins instead, with ties going to the
    earlier entry.
    """
    if not versions:
        raise HostCallError("Content object has no versions")
    if all(version.timestamp is not None for version in versions):
        return max(versions, key=lambda version: version.timestamp)
    return versions[0]


def _wildcard_values(meta: Any) -> List[Any]:
    """Values matched by '*': object values by sorted key, nothing otherwise."""
    if not isinstance(meta, dict):
        return []
    return [meta[key] for key in sorted(meta)]


@contextmanager
def writer_session(engine: IndexEngine, schema: Any) -> Iterator[IndexWriter]:
    """Open a writer, committing on success and rolling back on failure."""
    writer = engine.create_writer(schema)
    try:
        yield writer
        writer.commit()
    except Exception:
        writer.rollback()
        raise


@dataclass(slots=True)
class _Frame:
    meta: Any
    node: PathToFieldsNode
    origin: str
    links: Tuple[LinkTarget, ...]
    depth: int


@dataclass(slots=True)
class CrawlContext:
    """State of a single crawl invocation."""

    trie: PathToFieldsNode
    writer: IndexWriter
    library: str
    stats: CrawlStats = field(default_factory=CrawlStats)


class Crawler:
    """Walks content metadata in lock-step with the path-to-fields trie."""

    def __init__(
        self,
        store: ContentStore,
        engine: IndexEngine,
        indexer_config: IndexerConfig,
        fabric_config: FabricConfig,
        *,
        app_config: Optional[AppConfig] = None,
        extractor: Optional[FieldExtractor] = None,
    ) -> None:
        self.app_config = app_config or AppConfig()
        self.store = RetryingContentStore(
            store,
            max_retries=self.app_config.max_retries,
            base_delay=self.app_config.retry_base_delay,
        )
        self.engine = engine
        self.indexer_config = indexer_config
        self.fabric_config = fabric_config
        self.extractor = extractor or FieldExtractor()

    def crawl(self) -> CrawlResult:
        """Build, commit and archive the index; nothing is kept on failure."""
        root = self.fabric_config.root
        try:
            schema = self.build_schema()
            root_hash = self.resolve_root_hash()
            trie = PathToFieldsNode.build(self.indexer_config.fields)
            LOGGER.info(
                "Crawling %s/%s (%s) for %d fields",
                root.library,
                root.content,
                root_hash,
                len(self.indexer_config.fields),
            )
            with writer_session(self.engine, schema) as writer:
                context = CrawlContext(trie=trie, writer=writer, library=root.library)
                self.crawl_object(context, root.library, root_hash, trie)
            artifact = self.engine.archive()
        except Exception:
            LOGGER.error("Crawl of %s failed, discarding partial index", root.content)
            try:
                self.engine.discard()
            except Exception:
                LOGGER.exception("Failed to discard partial index of %s", root.content)
            raise
        finally:
            self.engine.close()

        LOGGER.info(
            "Indexed %d documents (%d values) into %s",
            context.stats.documents,
            context.stats.fields_written,
            artifact.hash,
        )
        return CrawlResult(artifact=artifact, root_hash=root_hash, stats=context.stats)

    def build_schema(self) -> Any:
        # Validate every type before touching the engine.
        for field_config in self.indexer_config.fields:
            self.extractor.text_options(field_config)
        builder = self.engine.new_schema_builder()
        for field_config in self.indexer_config.fields:
            self.extractor.schema_field(builder, field_config)
            LOGGER.debug("Added %s field %s", field_config.field_type, field_config.name)
        return builder.build()

    def resolve_root_hash(self) -> str:
        root = self.fabric_config.root
        if root.hash:
            LOGGER.debug("Using pinned root version %s", root.hash)
            return root.hash
        return select_latest_version(self.store.get_versions(root.content)).hash

    def crawl_object(
        self, context: CrawlContext, library: str, object_hash: str, node: PathToFieldsNode
    ) -> int:
        """Create a document for one content object and index its metadata."""
        metadata = self.store.get_metadata(library, object_hash, "")
        if not isinstance(metadata, dict):
            raise MalformedMetadata(f"Metadata of {library}/{object_hash} is not an object")

        document_id = context.writer.create_document()
        if isinstance(document_id, bool) or not isinstance(document_id, int) or document_id < 0:
            raise HostCallError(f"Index engine returned an unusable document id: {document_id!r}")
        context.stats.documents += 1
        LOGGER.debug("Created document %d for %s/%s", document_id, library, object_hash)

        self.crawl_meta(context, metadata, node, document_id, object_hash)
        return document_id

    def crawl_meta(
        self,
        context: CrawlContext,
        meta: Any,
        node: PathToFieldsNode,
        document_id: int,
        origin: str,
    ) -> None:
        """Extract matched fields from ``meta`` and descend into matched children.

        Subtrees are visited depth first in lexicographic order of trie keys
        and, under a wildcard, of metadata keys.
        """
        stack: List[_Frame] = [
            _Frame(meta=meta, node=node, origin=origin, links=((context.library, origin, ""),), depth=0)
        ]
        while stack:
            frame = stack.pop()
            if frame.depth > self.app_config.max_depth:
                raise MaxDepthExceeded(self.app_config.max_depth)

            self._extract_fields(context, frame, document_id)

            pending: List[_Frame] = []
            for child_key, child_node in frame.node.children():
                if child_key == WILDCARD:
                    values = _wildcard_values(frame.meta)
                elif isinstance(frame.meta, dict) and child_key in frame.meta:
                    values = [frame.meta[child_key]]
                else:
                    continue
                for value in values:
                    pending.extend(self._descend(context, frame, value, child_node))
            stack.extend(reversed(pending))

    def _descend(
        self, context: CrawlContext, frame: _Frame, value: Any, child_node: PathToFieldsNode
    ) -> List[_Frame]:
        origin, links = frame.origin, frame.links
        if is_link(value):
            followed = self._follow_link(context, frame, value)
            if followed is None:
                return []
            value, origin, links = followed
        if not isinstance(value, dict):
            return []
        return [_Frame(meta=value, node=child_node, origin=origin, links=links, depth=frame.depth + 1)]

    def _extract_fields(self, context: CrawlContext, frame: _Frame, document_id: int) -> None:
        for registration in frame.node.fields_at():
            if registration.key == WILDCARD:
                values = _wildcard_values(frame.meta)
            elif isinstance(frame.meta, dict) and registration.key in frame.meta:
                values = [frame.meta[registration.key]]
            else:
                continue

            for value in values:
                if is_link(value):
                    followed = self._follow_link(context, frame, value)
                    if followed is None:
                        continue
                    value = followed[0]
                written = self.extractor.add_field(context.writer, document_id, registration.field, value)
                if written:
                    context.stats.fields_written += written
                else:
                    context.stats.fields_skipped += 1

    def _follow_link(
        self, context: CrawlContext, frame: _Frame, value: Any
    ) -> Optional[Tuple[Any, str, Tuple[LinkTarget, ...]]]:
        """Resolve a (possibly chained) link; None when the branch is skipped."""
        if not self.app_config.resolve_links:
            LOGGER.debug("Link resolution disabled, skipping %s", value.get(LINK_KEY))
            context.stats.links_skipped += 1
            return None

        origin, links = frame.origin, frame.links
        while is_link(value):
            link = parse_link(value[LINK_KEY])
            target_hash = link.resolve_hash(origin)
            target = (context.library, target_hash, link.subpath)
            if target in links:
                LOGGER.warning("Skipping cyclic link %s under %s", link.raw, frame.node.path or "<root>")
                context.stats.links_skipped += 1
                return None
            try:
                value = self.store.get_metadata(context.library, target_hash, link.subpath)
            except ContentNotFound as exc:
                raise LinkResolutionError(link.raw, str(exc)) from exc
            context.stats.links_resolved += 1
            origin, links = target_hash, links + (target,)
        return value, origin, links
