"""
CLI: ``indexspine reindex`` and ``indexspine indexes``.

``reindex`` rebuilds every configured index from the content store:

    indexspine reindex                       # only records never indexed
    indexspine reindex --force-all           # everything
    indexspine reindex --only-class Page --filter "title = 'Home'"
    indexspine reindex --clear-all --quiet   # wipe remote indexes first

Exit codes: 0 when every index finished without errors, 1 when any
summary carries errors, 2 for configuration problems.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer

from indexspine.core.config import load_reindex_config
from indexspine.core.errors import ConfigError
from indexspine.core.logging import configure_logging, get_logger
from indexspine.core.models import ReindexRequest
from indexspine.core.settings import get_settings
from indexspine.indexing.committer import SearchCommitter
from indexspine.indexing.export import RecordAttributeExporter
from indexspine.indexing.orchestrator import ReindexOrchestrator
from indexspine.indexing.pacing import limiter_for
from indexspine.indexing.progress import ConsoleProgress, NullProgress
from indexspine.cli.utils import (
    build_repository,
    build_search_service,
    console,
    err_console,
    output_summaries,
    print_indexes,
)

logger = get_logger(__name__)


def reindex(
    only_class: str | None = typer.Option(None, "--only-class", "-c", help="Only reindex this record type."),
    filter_: str | None = typer.Option(None, "--filter", "-f", help="Explicit filter, overrides defaults."),
    force_all: bool = typer.Option(False, "--force-all", help="Include records indexed before."),
    clear_all: bool = typer.Option(False, "--clear-all", help="Clear every configured index first."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="No progress output and no pacing."),
    json_out: bool = typer.Option(False, "--json", help="Print summaries as JSON."),
    config_file: Path | None = typer.Option(None, "--config", help="Index definitions (YAML)."),
    database: str | None = typer.Option(None, "--database", "-d", help="Content store URL."),
) -> None:
    """Rebuild the remote search indexes from the content store."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)

    try:
        config = load_reindex_config(config_file or settings.config_file)
        service = build_search_service(settings)
    except ConfigError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {e.message}", markup=True)
        raise typer.Exit(code=2) from e

    if only_class and only_class not in config.record_types:
        logger.warning("reindex.unknown_only_class", record_type=only_class, known=config.record_types)

    request = ReindexRequest(
        target_type=only_class or None,
        filter=filter_ or None,
        force_all=force_all,
        clear_all=clear_all,
        output=not (quiet or json_out),
    )

    limiter = limiter_for(settings.pacing_interval, output=request.output, burst=settings.pacing_burst)
    committer = SearchCommitter(service, limiter)
    orchestrator = ReindexOrchestrator(
        config.descriptors(),
        build_repository(settings, config, database),
        RecordAttributeExporter(),
        committer,
        batch_size=settings.batch_size,
        default_filters=config.default_filters,
        progress=ConsoleProgress(console) if request.output else NullProgress(),
    )

    summaries = orchestrator.run(request)

    if not request.output:
        output_summaries(summaries, as_json=json_out)

    if any(summary.has_errors for summary in summaries):
        raise typer.Exit(code=1)


def indexes(
    config_file: Path | None = typer.Option(None, "--config", help="Index definitions (YAML)."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List configured indexes and the record types they include."""
    settings = get_settings()

    try:
        config = load_reindex_config(config_file or settings.config_file)
    except ConfigError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {e.message}", markup=True)
        raise typer.Exit(code=2) from e

    if json_out:
        console.print_json(json.dumps(config.model_dump()))
        return
    print_indexes(config)
