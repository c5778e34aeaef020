"""
CLI utility helpers — wiring and output formatting.
"""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from indexspine.core.config import ReindexConfig
from indexspine.core.models import RunSummary
from indexspine.core.protocols import SearchService
from indexspine.core.settings import IndexSpineSettings, SearchBackend
from indexspine.records.orm import create_record_engine, create_schema
from indexspine.records.sql import SqlRecordRepository
from indexspine.search.algolia import AlgoliaSearchService
from indexspine.search.memory import InMemorySearchService

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True)


# ── Wiring ───────────────────────────────────────────────────────────────


def build_repository(
    settings: IndexSpineSettings,
    config: ReindexConfig,
    database: str | None = None,
) -> SqlRecordRepository:
    """Open the content store named by ``database`` or the settings."""
    url = database or settings.database_url
    if url.startswith("sqlite:///") and url != "sqlite:///:memory:":
        Path(url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
    engine = create_record_engine(url, echo=settings.database_echo)
    create_schema(engine)
    return SqlRecordRepository(
        engine,
        versioned_types=settings.versioned_types,
        record_types=config.record_types,
        tenant_id=settings.tenant_id,
    )


def build_search_service(settings: IndexSpineSettings) -> SearchService:
    """Instantiate the configured search backend."""
    if settings.search_backend == SearchBackend.MEMORY:
        return InMemorySearchService()
    return AlgoliaSearchService(
        settings.algolia_app_id,
        settings.algolia_api_key,
        timeout=settings.algolia_timeout,
    )


# ── Output helpers ───────────────────────────────────────────────────────


def output_summaries(summaries: list[RunSummary], *, as_json: bool = False) -> None:
    """Print run summaries (quiet and JSON modes)."""
    if as_json:
        console.print_json(json.dumps([summary.to_dict() for summary in summaries]))
        return

    for summary in summaries:
        console.print(summary.render(), markup=False, soft_wrap=True)
        for error in summary.errors:
            console.print(f"| [red]error[/red]: {escape(error)}", soft_wrap=True)


def print_indexes(config: ReindexConfig) -> None:
    """Render configured indexes as a Rich table."""
    if not config.indexes:
        console.print("[dim]No indexes configured.[/dim]")
        return

    table = Table(title="Indexes", show_lines=False, pad_edge=False)
    table.add_column("index")
    table.add_column("record type")
    table.add_column("include filter", overflow="fold")
    table.add_column("default filter", overflow="fold")
    for descriptor in config.descriptors():
        for record_type in descriptor.included_types:
            table.add_row(
                escape(descriptor.name),
                escape(record_type),
                escape(descriptor.filter_for(record_type) or ""),
                escape(config.default_filters.get(record_type, "")),
            )
    console.print(table)
