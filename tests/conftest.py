"""
Shared pytest fixtures for indexspine tests.

This module provides:
- Record factories for seeding repositories
- In-memory repository, search service and orchestrator builders
- An in-memory SQLite engine with the ``search_records`` schema
- Settings cache / logging context cleanup between tests

Usage:
    def test_something(memory_repo, search_service, make_orchestrator):
        orchestrator = make_orchestrator(batch_size=10)
        ...
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from datetime import UTC, datetime
from typing import Any

import pytest
import structlog

from indexspine.core.models import CandidateRecord, IndexDescriptor
from indexspine.core.settings import clear_settings_cache
from indexspine.indexing.committer import SearchCommitter
from indexspine.indexing.export import RecordAttributeExporter
from indexspine.indexing.orchestrator import ReindexOrchestrator
from indexspine.records.memory import InMemoryRecordRepository
from indexspine.search.memory import InMemorySearchService

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_settings_and_log_context() -> Generator[None, None, None]:
    """Fresh settings and an empty structlog context for every test."""
    clear_settings_cache()
    structlog.contextvars.clear_contextvars()
    yield
    clear_settings_cache()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Records
# =============================================================================


def make_record(record_type: str = "Page", record_id: int = 1, **kwargs: Any) -> CandidateRecord:
    """Build a CandidateRecord with a ``title`` attribute by default."""
    attributes = kwargs.pop("attributes", {"title": f"{record_type} {record_id}"})
    return CandidateRecord(type=record_type, id=record_id, attributes=attributes, **kwargs)


@pytest.fixture
def record_factory() -> Callable[..., CandidateRecord]:
    return make_record


@pytest.fixture
def memory_repo() -> InMemoryRecordRepository:
    """Empty repository that knows the Page and Product types."""
    return InMemoryRecordRepository(record_types=["Page", "Product"])


@pytest.fixture
def search_service() -> InMemorySearchService:
    return InMemorySearchService()


@pytest.fixture
def descriptors() -> list[IndexDescriptor]:
    return [IndexDescriptor(name="pages", included_types=("Page", "Product"))]


@pytest.fixture
def make_orchestrator(
    memory_repo: InMemoryRecordRepository,
    search_service: InMemorySearchService,
    descriptors: list[IndexDescriptor],
) -> Callable[..., ReindexOrchestrator]:
    """Factory for an orchestrator over the in-memory fixtures.

    Keyword arguments override constructor arguments.
    """

    def _make(**kwargs: Any) -> ReindexOrchestrator:
        indexes = kwargs.pop("indexes", descriptors)
        repository = kwargs.pop("repository", memory_repo)
        exporter = kwargs.pop("exporter", RecordAttributeExporter())
        committer = kwargs.pop("committer", SearchCommitter(search_service))
        kwargs.setdefault("clock", lambda: FIXED_NOW)
        return ReindexOrchestrator(indexes, repository, exporter, committer, **kwargs)

    return _make


# =============================================================================
# SQLite
# =============================================================================


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine with the record schema created."""
    from sqlalchemy.pool import StaticPool

    from indexspine.records.orm import create_record_engine, create_schema

    engine = create_record_engine("sqlite:///:memory:", poolclass=StaticPool)
    create_schema(engine)
    yield engine
    engine.dispose()
