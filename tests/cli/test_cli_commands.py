"""Tests for indexspine.cli — command tests via CliRunner.

Commands run against a temporary SQLite file and a shared in-memory
search service; logs are sent to a buffer so stdout only carries command
output.
"""

from __future__ import annotations

import functools
import io
import json

import pytest
import structlog
from typer.testing import CliRunner

from indexspine.cli.app import app
from indexspine.core.logging import configure_logging
from indexspine.core.models import CandidateRecord
from indexspine.indexing.pacing import NullRateLimiter
from indexspine.records.orm import create_record_engine, create_schema
from indexspine.records.sql import SqlRecordRepository
from indexspine.search.memory import InMemorySearchService

pytestmark = pytest.mark.integration

runner = CliRunner()

CONFIG = """
indexes:
  pages:
    include_types: [Page]
  products:
    include_types: [Product]
default_filters:
  Product: "json_extract(attributes, '$.price') > 5"
"""


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Config file, seeded SQLite store and a shared memory search service."""
    monkeypatch.chdir(tmp_path)
    config_file = tmp_path / "indexspine.yaml"
    config_file.write_text(CONFIG, encoding="utf-8")
    database_url = f"sqlite:///{tmp_path / 'records.db'}"

    monkeypatch.setenv("INDEXSPINE_CONFIG_FILE", str(config_file))
    monkeypatch.setenv("INDEXSPINE_DATABASE_URL", database_url)
    monkeypatch.setenv("INDEXSPINE_SEARCH_BACKEND", "memory")
    monkeypatch.setenv("INDEXSPINE_PACING_INTERVAL", "0")

    engine = create_record_engine(database_url)
    create_schema(engine)
    repository = SqlRecordRepository(engine)
    for i in range(1, 4):
        repository.add(CandidateRecord(type="Page", id=i, attributes={"title": f"Page {i}"}))
    for i, price in enumerate([3, 8, 12], start=1):
        repository.add(CandidateRecord(type="Product", id=i, attributes={"price": price}))

    service = InMemorySearchService()
    monkeypatch.setattr("indexspine.cli.reindex.build_search_service", lambda settings: service)

    log_buffer = io.StringIO()
    monkeypatch.setattr(
        "indexspine.cli.reindex.configure_logging",
        functools.partial(configure_logging, output=log_buffer),
    )

    yield {"service": service, "repository": repository, "config_file": config_file, "logs": log_buffer}

    structlog.reset_defaults()
    engine.dispose()


# ─── Root ────────────────────────────────────────────────────────────────


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.stdout.startswith("indexspine ")


# ─── reindex ─────────────────────────────────────────────────────────────


class TestReindexCommand:
    """``indexspine reindex``."""

    def test_quiet_prints_summaries(self, cli_env):
        result = runner.invoke(app, ["reindex", "--quiet"])
        assert result.exit_code == 0, result.output
        assert "| Number of objects indexed in pages: 3, Skipped 0" in result.stdout
        assert "| Number of objects indexed in products: 3, Skipped 0" in result.stdout
        assert cli_env["service"].count("pages") == 3
        assert cli_env["repository"].reload("Page", 1).last_indexed_at is not None

    def test_json_output(self, cli_env):
        result = runner.invoke(app, ["reindex", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [entry["index_name"] for entry in data] == ["pages", "products"]
        assert data[0]["indexed_count"] == 3
        assert data[0]["errors"] == []

    def test_interactive_output(self, cli_env):
        result = runner.invoke(app, ["reindex"])
        assert result.exit_code == 0, result.output
        assert "Updating index pages" in result.stdout
        assert "| Found 3 Page remaining to index which match filter (last_indexed_at IS NULL,)" in result.stdout
        assert "..." in result.stdout
        assert result.stdout.rstrip().endswith("Done")

    def test_second_run_indexes_nothing(self, cli_env):
        runner.invoke(app, ["reindex", "--quiet"])
        result = runner.invoke(app, ["reindex", "--json", "--only-class", "Page"])
        assert json.loads(result.stdout)[0]["indexed_count"] == 0

    def test_only_class_uses_default_filter(self, cli_env):
        result = runner.invoke(app, ["reindex", "--json", "--only-class", "Product"])
        assert result.exit_code == 0, result.output
        products = json.loads(result.stdout)[1]
        assert products["indexed_count"] == 2
        assert cli_env["service"].count("products") == 2

    def test_only_class_with_explicit_filter(self, cli_env):
        result = runner.invoke(
            app, ["reindex", "--json", "--only-class", "Product", "--filter", "id = 1"]
        )
        assert result.exit_code == 0, result.output
        pages, products = json.loads(result.stdout)
        assert pages["indexed_count"] == 0
        assert products["indexed_count"] == 1
        assert cli_env["service"].count("pages") == 0

    def test_clear_all(self, cli_env):
        cli_env["service"].upsert("pages", [{"objectID": f"old-{i}"} for i in range(10)])
        result = runner.invoke(app, ["reindex", "--quiet", "--clear-all", "--only-class", "Page"])
        assert result.exit_code == 0, result.output
        assert cli_env["service"].count("pages") == 3

    def test_failed_batch_exits_1(self, cli_env):
        cli_env["service"].fail_on = lambda name, items: name == "products"
        result = runner.invoke(app, ["reindex", "--quiet"])
        assert result.exit_code == 1
        assert "error" in result.stdout
        assert cli_env["service"].count("pages") == 3

    def test_pacing_settings_reach_the_limiter(self, cli_env, monkeypatch):
        calls = []

        def recording_limiter_for(interval, *, output, burst):
            calls.append((interval, output, burst))
            return NullRateLimiter()

        monkeypatch.setattr("indexspine.cli.reindex.limiter_for", recording_limiter_for)
        monkeypatch.setenv("INDEXSPINE_PACING_INTERVAL", "2")
        monkeypatch.setenv("INDEXSPINE_PACING_BURST", "4")
        result = runner.invoke(app, ["reindex"])
        assert result.exit_code == 0, result.output
        assert calls == [(2.0, True, 4)]

    def test_missing_config_exits_2(self, cli_env, tmp_path):
        result = runner.invoke(app, ["reindex", "--config", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 2

    def test_algolia_without_credentials_exits_2(self, cli_env, monkeypatch):
        from indexspine.cli.utils import build_search_service

        monkeypatch.setattr("indexspine.cli.reindex.build_search_service", build_search_service)
        monkeypatch.setenv("INDEXSPINE_SEARCH_BACKEND", "algolia")
        monkeypatch.delenv("INDEXSPINE_ALGOLIA_APP_ID", raising=False)
        result = runner.invoke(app, ["reindex", "--quiet"])
        assert result.exit_code == 2


# ─── indexes ─────────────────────────────────────────────────────────────


class TestIndexesCommand:
    """``indexspine indexes``."""

    def test_table(self, cli_env):
        result = runner.invoke(app, ["indexes"])
        assert result.exit_code == 0, result.output
        assert "pages" in result.stdout
        assert "Product" in result.stdout

    def test_json(self, cli_env):
        result = runner.invoke(app, ["indexes", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["indexes"]["pages"]["include_types"] == ["Page"]
        assert "Product" in data["default_filters"]

    def test_missing_config(self, cli_env, tmp_path):
        result = runner.invoke(app, ["indexes", "--config", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2
