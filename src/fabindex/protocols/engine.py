"""Protocol for search index engines."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from fabindex.models import ArtifactDescriptor


@runtime_checkable
class SchemaBuilder(Protocol):
    def add_text_field(self, name: str, options: Mapping[str, Any]) -> int:
        """Declare a text field and return its identifier.

        Fails when the field already exists or the options are invalid.
        """
        ...

    def build(self) -> Any:
        """Freeze the declared fields into a schema handle."""
        ...


@runtime_checkable
class IndexWriter(Protocol):
    """Single writer session over an index being built."""

    def create_document(self) -> int:
        ...

    def add_text(self, document_id: int, field_name: str, value: str) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


@runtime_checkable
class IndexEngine(Protocol):
    """Schema building, document writing and archiving of a search index.

    Implementations raise ``IndexEngineError`` on failure.
    """

    def new_schema_builder(self) -> SchemaBuilder:
        ...

    def create_writer(self, schema: Any) -> IndexWriter:
        ...

    def archive(self) -> ArtifactDescriptor:
        """Package the committed index as a content-addressed artifact."""
        ...

    def discard(self) -> None:
        """Drop any partially built index."""
        ...

    def close(self) -> None:
        ...
