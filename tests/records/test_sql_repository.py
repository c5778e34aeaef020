"""Tests for indexspine.records.sql — SqlRecordRepository on in-memory SQLite."""

import uuid
from datetime import UTC, datetime

import pytest

from indexspine.core.errors import FilterError, RepositoryError, UnknownRecordTypeError
from indexspine.core.protocols import RecordRepository
from indexspine.records.sql import SqlRecordRepository

pytestmark = pytest.mark.integration


@pytest.fixture
def repo(sqlite_engine, record_factory):
    repository = SqlRecordRepository(
        sqlite_engine,
        versioned_types=["Page"],
        record_types=["Page", "Product", "Empty"],
        tenant_id="acme",
    )
    for i in range(1, 6):
        repository.add(record_factory("Page", i, stage="live", tenant_id="acme" if i % 2 else "other"))
    repository.add(record_factory("Page", 6, stage="draft"))
    repository.add(record_factory("Product", 1, attributes={"price": 10}))
    return repository


class TestFetch:
    """Enumeration through SQL."""

    def test_is_record_repository(self, repo):
        assert isinstance(repo, RecordRepository)

    def test_live_stage_descending(self, repo):
        assert [r.id for r in repo.fetch("Page")] == [5, 4, 3, 2, 1]

    def test_count_and_paging(self, repo):
        candidates = repo.fetch("Page")
        assert candidates.count() == 5
        assert [r.id for r in candidates.page(0, 2)] == [5, 4]
        assert [r.id for r in candidates.page(2, 2)] == [3, 2]
        assert [r.id for r in candidates.page(4, 2)] == [1]

    def test_keyset_windows_survive_a_shrinking_set(self, repo):
        candidates = repo.fetch("Page", "last_indexed_at IS NULL")
        first = candidates.page_before(None, 2)
        assert [r.id for r in first] == [5, 4]
        for record in first:
            repo.mark_indexed(record, datetime(2026, 1, 15, tzinfo=UTC))
        assert [r.id for r in candidates.page_before(4, 2)] == [3, 2]
        assert [r.id for r in candidates.page_before(2, 2)] == [1]

    def test_exists(self, repo):
        assert repo.fetch("Product").exists()
        assert not repo.fetch("Empty").exists()

    def test_attributes_round_trip(self, repo):
        product = repo.fetch("Product").page(0, 1)[0]
        assert product.attributes == {"price": 10}

    def test_filters_are_anded(self, repo):
        candidates = repo.fetch("Page", "id > 1", "id < 4")
        assert [r.id for r in candidates] == [3, 2]

    def test_tenant_scope(self, repo):
        assert [r.id for r in repo.fetch("Page", include_all_tenants=False)] == [5, 3, 1]

    def test_unknown_type(self, repo):
        with pytest.raises(UnknownRecordTypeError):
            repo.fetch("Ghost")

    def test_bad_sql_filter_raises_filter_error(self, repo):
        candidates = repo.fetch("Page", "no_such_column = 1")
        with pytest.raises(FilterError) as exc_info:
            candidates.count()
        assert exc_info.value.expression == "no_such_column = 1"

    def test_known_types_from_table(self, sqlite_engine, record_factory):
        repository = SqlRecordRepository(sqlite_engine)
        repository.add(record_factory("News", 1))
        assert repository.known_types() == {"News"}


class TestPersistence:
    """Reload, external ids and indexed dates."""

    def test_reload(self, repo):
        record = repo.reload("Page", 3)
        assert record.id == 3
        assert record.attributes == {"title": "Page 3"}
        assert repo.reload("Page", 99) is None

    def test_save_external_id(self, repo):
        record = repo.reload("Page", 1)
        external = uuid.uuid4()
        repo.save_external_id(record, external)
        assert record.external_id == external
        assert repo.reload("Page", 1).external_id == external

    def test_external_id_is_write_once(self, repo):
        record = repo.reload("Page", 1)
        repo.save_external_id(record, uuid.uuid4())
        with pytest.raises(RepositoryError):
            repo.save_external_id(repo.reload("Page", 1), uuid.uuid4())

    def test_mark_indexed_removes_from_unindexed_filter(self, repo):
        record = repo.reload("Page", 5)
        at = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)
        repo.mark_indexed(record, at)
        assert record.last_indexed_at == at
        stored = repo.reload("Page", 5).last_indexed_at
        assert stored.replace(tzinfo=None) == at.replace(tzinfo=None)
        assert [r.id for r in repo.fetch("Page", "last_indexed_at IS NULL")] == [4, 3, 2, 1]
