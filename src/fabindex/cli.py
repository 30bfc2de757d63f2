"""Command line interface for fabindex."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from fabindex.config import AppConfig
from fabindex.errors import FabindexError
from fabindex.fabric.store import DirectoryContentStore
from fabindex.index.crawler import Crawler
from fabindex.index.search import Searcher
from fabindex.index.storage import IndexReader, SQLiteIndexEngine
from fabindex.index.trie import PathToFieldsNode
from fabindex.ingestion.config_parser import load_config_file
from fabindex.utils.files import iter_artifact_paths
from fabindex.utils.text import snippet
from fabindex.web.app import app as web_app


console = Console()
app = typer.Typer(help="fabindex - crawl content metadata into a search index")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _fail(exc: Exception) -> None:
    console.print(f"[red]Error:[/red] {exc}")
    raise typer.Exit(code=1)


def _latest_artifact(index_dir: Path) -> Optional[Path]:
    return next(iter_artifact_paths(index_dir / "artifacts"), None)


@app.command()
def crawl(
    config_path: Path = typer.Argument(..., help="Indexer configuration (JSON).", exists=True, dir_okay=False),
    store: Path = typer.Option(AppConfig().store_dir, "--store", help="Content store directory"),
    index_dir: Path = typer.Option(None, "--index-dir", help="Index output directory"),
    resolve_links: bool = typer.Option(True, "--links/--no-links", help="Follow metadata links"),
    max_retries: int = typer.Option(AppConfig().max_retries, help="Retries for transient store errors"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Crawl the configured root object and archive the resulting index."""
    _setup_logging(verbose)
    config = AppConfig(
        index_dir=index_dir if index_dir is not None else AppConfig().index_dir,
        store_dir=store,
        max_retries=max_retries,
        resolve_links=resolve_links,
    )
    resolved_index_dir = config.resolve_index_dir(Path.cwd())

    try:
        indexer_config, fabric_config = load_config_file(config_path)
        crawler = Crawler(
            DirectoryContentStore(config.store_dir),
            SQLiteIndexEngine(resolved_index_dir),
            indexer_config,
            fabric_config,
            app_config=config,
        )
        console.print(f"Crawling into [bold]{resolved_index_dir}[/bold]...")
        result = crawler.crawl()
    except FabindexError as exc:
        _fail(exc)
        return

    stats = result.stats
    console.print(
        f"Documents: {stats.documents}, values: {stats.fields_written}, "
        f"links resolved: {stats.links_resolved}, links skipped: {stats.links_skipped}"
    )
    console.print(f"Artifact: [bold]{result.artifact.hash}[/bold] ({result.artifact.path})")


@app.command()
def fields(
    config_path: Path = typer.Argument(..., help="Indexer configuration (JSON).", exists=True, dir_okay=False),
    as_json: bool = typer.Option(False, "--json", help="Print registrations as JSON"),
) -> None:
    """Show where each configured field is read from."""
    try:
        indexer_config, _ = load_config_file(config_path)
    except FabindexError as exc:
        _fail(exc)
        return

    trie = PathToFieldsNode.build(indexer_config.fields)
    registrations = [reg for node in trie.walk() for reg in node.fields_at()]

    if as_json:
        payload = [
            {"path": reg.path, "field": reg.field.name, "type": reg.field.field_type}
            for reg in registrations
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Path")
    table.add_column("Field")
    table.add_column("Type")
    for reg in registrations:
        table.add_row(reg.path, reg.field.name, reg.field.field_type)
    console.print(table)
    console.print(f"{len(indexer_config.fields)} fields, {len(registrations)} registrations")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    index: Path = typer.Option(None, "--index", help="Index artifact to search"),
    index_dir: Path = typer.Option(None, "--index-dir", help="Index directory (newest artifact is used)"),
    field: Optional[List[str]] = typer.Option(None, "--field", "-f", help="Restrict to these fields"),
    top_k: int = typer.Option(10, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search an archived index."""
    _setup_logging(verbose)
    if index is None:
        config = AppConfig(index_dir=index_dir if index_dir is not None else AppConfig().index_dir)
        index = _latest_artifact(config.resolve_index_dir(Path.cwd()))
        if index is None:
            raise typer.BadParameter("No index artifact found; run 'crawl' first")
    if not index.exists():
        raise typer.BadParameter(f"Index not found: {index}")

    try:
        reader = IndexReader(index)
    except FabindexError as exc:
        _fail(exc)
        return
    try:
        results = Searcher(reader).search(query, fields=field or None, top_k=top_k)
    except FabindexError as exc:
        _fail(exc)
        return
    finally:
        reader.close()

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Document")
    table.add_column("Matched")
    table.add_column("Snippet")

    for result in results:
        first = result.matched_fields[0]
        table.add_row(
            f"{result.score:.1f}",
            str(result.document_id),
            ", ".join(result.matched_fields),
            snippet(" ".join(result.fields[first])),
        )

    console.print(table)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the HTTP interface."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    console.print(f"Starting web interface on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
