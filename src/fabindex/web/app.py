"""FastAPI application exposing crawls and searches over HTTP."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from fabindex.config import AppConfig
from fabindex.errors import ConfigError, ContentNotFound, FabindexError, UnsupportedFieldType
from fabindex.fabric.store import DirectoryContentStore
from fabindex.index.crawler import Crawler
from fabindex.index.search import Searcher, SearchResult
from fabindex.index.storage import IndexReader, SQLiteIndexEngine
from fabindex.index.trie import PathToFieldsNode
from fabindex.ingestion.config_parser import parse_config
from fabindex.utils.files import iter_artifact_paths

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="fabindex", version="0.1.0")


class CrawlPayload(BaseModel):
    config: Dict[str, Any]
    store: str | None = None
    index_dir: str | None = None
    resolve_links: bool = True


class SearchPayload(BaseModel):
    query: str
    index: Path | None = None
    index_dir: Path | None = None
    fields: List[str] | None = None
    top_k: int = 10


class FieldsPayload(BaseModel):
    config: Dict[str, Any]


def _resolve_index_dir(index_dir: Path | str | None) -> Path:
    config = AppConfig(index_dir=Path(index_dir) if index_dir is not None else AppConfig().index_dir)
    return config.resolve_index_dir(Path.cwd())


def _status_for(exc: FabindexError) -> int:
    if isinstance(exc, (ConfigError, UnsupportedFieldType)):
        return 400
    if isinstance(exc, ContentNotFound):
        return 404
    return 500


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


def _run_crawl_job(payload: CrawlPayload) -> Dict[str, Any]:
    indexer_config, fabric_config = parse_config(payload.config)
    defaults = AppConfig()
    config = AppConfig(
        index_dir=Path(payload.index_dir) if payload.index_dir is not None else defaults.index_dir,
        store_dir=Path(payload.store) if payload.store is not None else defaults.store_dir,
        resolve_links=payload.resolve_links,
    )
    crawler = Crawler(
        DirectoryContentStore(config.store_dir),
        SQLiteIndexEngine(config.resolve_index_dir(Path.cwd())),
        indexer_config,
        fabric_config,
        app_config=config,
    )
    result = crawler.crawl()
    return {
        "root_hash": result.root_hash,
        "artifact": result.artifact.as_dict(),
        "stats": result.stats.as_dict(),
    }


@app.post("/crawl")
async def crawl_content(payload: CrawlPayload) -> Dict[str, Any]:
    try:
        result = await asyncio.to_thread(_run_crawl_job, payload)
    except FabindexError as exc:
        LOGGER.error("Crawl failed: %s", exc)
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return {"status": "ok", "result": result}


@app.post("/fields")
async def list_fields(payload: FieldsPayload) -> Dict[str, Any]:
    try:
        indexer_config, _ = parse_config(payload.config)
    except FabindexError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    trie = PathToFieldsNode.build(indexer_config.fields)
    registrations = [
        {"path": reg.path, "field": reg.field.name, "type": reg.field.field_type}
        for node in trie.walk()
        for reg in node.fields_at()
    ]
    return {"indexer_type": indexer_config.indexer_type, "registrations": registrations}


@app.post("/search")
async def search_index(payload: SearchPayload) -> Dict[str, List[SearchResult]]:
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")

    top_k = max(1, min(payload.top_k, 50))

    index = payload.index
    if index is None:
        index = next(iter_artifact_paths(_resolve_index_dir(payload.index_dir) / "artifacts"), None)
    if index is None or not index.exists():
        raise HTTPException(status_code=404, detail="Index not found. Run a crawl first.")

    reader = IndexReader(index)
    try:
        results = Searcher(reader).search(query, fields=payload.fields, top_k=top_k)
    except FabindexError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    finally:
        reader.close()
    return {"results": results}
