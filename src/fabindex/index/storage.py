"""SQLite-backed index engine and reader."""

from __future__ import annotations

import json
import logging
import shutil
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

from fabindex.errors import IndexEngineError
from fabindex.models import ArtifactDescriptor
from fabindex.utils.files import compute_sha256

LOGGER = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS schema_fields (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        options TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS documents (
        id INTEGER PRIMARY KEY
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS field_values (
        id INTEGER PRIMARY KEY,
        document_id INTEGER NOT NULL,
        field_id INTEGER NOT NULL,
        value TEXT NOT NULL,
        FOREIGN KEY(document_id) REFERENCES documents(id) ON DELETE CASCADE,
        FOREIGN KEY(field_id) REFERENCES schema_fields(id)
    )
    """,
    """CREATE INDEX IF NOT EXISTS idx_field_values_document_id
        ON field_values(document_id)
    """,
)


@dataclass(frozen=True, slots=True)
class SchemaField:
    id: int
    name: str
    options: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def tokenized(self) -> bool:
        return bool(self.options.get("tokenized", True))


@dataclass(slots=True)
class Schema:
    fields: Dict[str, SchemaField] = field(default_factory=dict)

    def get(self, name: str) -> Optional[SchemaField]:
        return self.fields.get(name)


class SQLiteSchemaBuilder:
    """Declares the text fields of an index under construction."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._fields: Dict[str, SchemaField] = {}
        self._built = False

    def add_text_field(self, name: str, options: Mapping[str, Any]) -> int:
        if self._built:
            raise IndexEngineError("Schema already built")
        if name in self._fields:
            raise IndexEngineError(f"Field '{name}' already exists")
        try:
            encoded = json.dumps(dict(options), sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise IndexEngineError(f"Invalid options for field '{name}': {exc}") from exc
        try:
            field_id = self._conn.execute(
                "INSERT INTO schema_fields(name, options) VALUES (?, ?)",
                (name, encoded),
            ).lastrowid
        except sqlite3.Error as exc:
            raise IndexEngineError(f"Failed to add field '{name}': {exc}") from exc
        self._fields[name] = SchemaField(id=field_id, name=name, options=dict(options))
        return field_id

    def build(self) -> Schema:
        try:
            self._conn.commit()
        except sqlite3.Error as exc:
            raise IndexEngineError(f"Failed to build schema: {exc}") from exc
        self._built = True
        return Schema(fields=dict(self._fields))


class SQLiteIndexWriter:
    """Writer session; nothing is visible until ``commit``."""

    def __init__(self, conn: sqlite3.Connection, schema: Schema) -> None:
        self._conn = conn
        self.schema = schema

    def create_document(self) -> int:
        try:
            return self._conn.execute("INSERT INTO documents DEFAULT VALUES").lastrowid
        except sqlite3.Error as exc:
            raise IndexEngineError(f"Failed to create document: {exc}") from exc

    def add_text(self, document_id: int, field_name: str, value: str) -> None:
        schema_field = self.schema.get(field_name)
        if schema_field is None:
            raise IndexEngineError(f"Field '{field_name}' is not part of the schema")
        try:
            self._conn.execute(
                "INSERT INTO field_values(document_id, field_id, value) VALUES (?, ?, ?)",
                (document_id, schema_field.id, value),
            )
        except sqlite3.Error as exc:
            raise IndexEngineError(f"Failed to add '{field_name}' to document {document_id}: {exc}") from exc

    def commit(self) -> None:
        try:
            self._conn.commit()
        except sqlite3.Error as exc:
            raise IndexEngineError(f"Failed to commit writer: {exc}") from exc

    def rollback(self) -> None:
        try:
            self._conn.rollback()
        except sqlite3.Error as exc:
            raise IndexEngineError(f"Failed to roll back writer: {exc}") from exc


class SQLiteIndexEngine:
    """Builds an index database under ``directory`` and archives it.

    The index is built in ``<directory>/build/index.db``; ``archive`` copies
    the committed database to ``<directory>/artifacts/<sha256>.db``.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.build_path = self.directory / "build" / "index.db"
        self.artifacts_dir = self.directory / "artifacts"
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise IndexEngineError("No index build in progress")
        return self._conn

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        for statement in _SCHEMA:
            conn.execute(statement)
        conn.commit()

    def new_schema_builder(self) -> SQLiteSchemaBuilder:
        self.close()
        try:
            self.build_path.parent.mkdir(parents=True, exist_ok=True)
            self.build_path.unlink(missing_ok=True)
            conn = sqlite3.connect(self.build_path)
            conn.execute("PRAGMA foreign_keys=ON;")
            self._ensure_schema(conn)
        except (OSError, sqlite3.Error) as exc:
            raise IndexEngineError(f"Failed to create index in {self.build_path}: {exc}") from exc
        self._conn = conn
        LOGGER.debug("Created index database %s", self.build_path)
        return SQLiteSchemaBuilder(conn)

    def create_writer(self, schema: Schema) -> SQLiteIndexWriter:
        return SQLiteIndexWriter(self.connection, schema)

    def archive(self) -> ArtifactDescriptor:
        conn = self.connection
        try:
            document_count = conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
        except sqlite3.Error as exc:
            raise IndexEngineError(f"Failed to read index: {exc}") from exc
        self.close()

        try:
            digest = compute_sha256(self.build_path)
            self.artifacts_dir.mkdir(parents=True, exist_ok=True)
            target = self.artifacts_dir / f"{digest}.db"
            shutil.copyfile(self.build_path, target)
        except OSError as exc:
            raise IndexEngineError(f"Failed to archive index: {exc}") from exc

        LOGGER.info("Archived index with %d documents to %s", document_count, target)
        return ArtifactDescriptor(
            hash=digest,
            path=target,
            size=target.stat().st_size,
            document_count=document_count,
        )

    def discard(self) -> None:
        self.close()
        try:
            self.build_path.unlink(missing_ok=True)
        except OSError as exc:
            raise IndexEngineError(f"Failed to discard {self.build_path}: {exc}") from exc

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


class IndexReader:
    """Read-only view over an archived index database."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        if not self.path.exists():
            raise IndexEngineError(f"Index not found: {self.path}")
        self._conn = sqlite3.connect(f"file:{self.path}?mode=ro", uri=True)
        self._conn.row_factory = sqlite3.Row

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def _reading(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
        except sqlite3.Error as exc:
            raise IndexEngineError(f"Failed to read {self.path}: {exc}") from exc

    def schema(self) -> Schema:
        with self._reading() as conn:
            rows = conn.execute("SELECT id, name, options FROM schema_fields ORDER BY id").fetchall()
        return Schema(
            fields={
                row["name"]: SchemaField(id=row["id"], name=row["name"], options=json.loads(row["options"]))
                for row in rows
            }
        )

    def documents(self) -> List[Dict[str, Any]]:
        """Return every document as ``{"id": ..., "fields": {name: [values]}}``."""
        with self._reading() as conn:
            rows = conn.execute(
                """
                SELECT d.id AS document_id, f.name AS name, v.value AS value
                FROM documents d
                LEFT JOIN field_values v ON v.document_id = d.id
                LEFT JOIN schema_fields f ON f.id = v.field_id
                ORDER BY d.id, v.id
                """
            ).fetchall()

        documents: Dict[int, Dict[str, Any]] = {}
        for row in rows:
            doc = documents.setdefault(row["document_id"], {"id": row["document_id"], "fields": {}})
            if row["name"] is not None:
                doc["fields"].setdefault(row["name"], []).append(row["value"])
        return list(documents.values())

    def get_stats(self) -> Dict[str, int]:
        with self._reading() as conn:
            document_count = conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
            value_count = conn.execute("SELECT COUNT(*) FROM field_values").fetchone()[0]
            field_count = conn.execute("SELECT COUNT(*) FROM schema_fields").fetchone()[0]
        return {
            "document_count": document_count,
            "value_count": value_count,
            "field_count": field_count,
        }
