"""Tests for indexspine.records.memory — InMemoryRecordRepository."""

import uuid
from datetime import UTC, datetime

import pytest

from indexspine.core.errors import FilterError, RepositoryError, UnknownRecordTypeError
from indexspine.core.models import CandidateRecord
from indexspine.core.protocols import CandidateSet, RecordRepository
from indexspine.records.memory import InMemoryRecordRepository


@pytest.fixture
def repo(record_factory):
    return InMemoryRecordRepository(
        [record_factory("Page", i) for i in range(1, 8)] + [record_factory("Product", 1)],
        record_types=["Page", "Product", "Empty"],
    )


class TestProtocolConformance:
    def test_is_record_repository(self, repo):
        assert isinstance(repo, RecordRepository)
        assert isinstance(repo.fetch("Page"), CandidateSet)


class TestFetch:
    """Enumeration."""

    def test_descending_id_order(self, repo):
        assert [r.id for r in repo.fetch("Page")] == [7, 6, 5, 4, 3, 2, 1]

    def test_count_and_exists(self, repo):
        assert repo.fetch("Page").count() == 7
        assert repo.fetch("Product").exists()
        assert not repo.fetch("Empty").exists()

    def test_pages_partition_the_set(self, repo):
        candidates = repo.fetch("Page")
        pages = [candidates.page(0, 3), candidates.page(3, 3), candidates.page(6, 3)]
        ids = [r.id for page in pages for r in page]
        assert ids == [7, 6, 5, 4, 3, 2, 1]
        assert candidates.page(9, 3) == []

    def test_keyset_windows(self, repo):
        candidates = repo.fetch("Page", "last_indexed_at IS NULL")
        first = candidates.page_before(None, 3)
        assert [r.id for r in first] == [7, 6, 5]
        for record in first:
            repo.mark_indexed(record, datetime(2026, 1, 15, tzinfo=UTC))
        assert [r.id for r in candidates.page_before(5, 3)] == [4, 3, 2]
        assert [r.id for r in candidates.page_before(2, 3)] == [1]
        assert candidates.page_before(1, 3) == []

    def test_unknown_type(self, repo):
        with pytest.raises(UnknownRecordTypeError):
            repo.fetch("Ghost")

    def test_filter_and_index_filter_are_anded(self, repo):
        repo.get("Page", 2).attributes["priority"] = 5
        repo.get("Page", 3).attributes["priority"] = 5
        repo.get("Page", 3).attributes["hidden"] = True
        candidates = repo.fetch("Page", "priority = 5", "hidden IS NULL")
        assert [r.id for r in candidates] == [2]

    def test_bad_filter_raises_filter_error(self, repo):
        with pytest.raises(FilterError):
            repo.fetch("Page", "title LIKE 'x'")

    def test_versioned_types_only_live(self, record_factory):
        repo = InMemoryRecordRepository(
            [
                record_factory("Page", 1, stage="live"),
                record_factory("Page", 2, stage="draft"),
                record_factory("Page", 3, stage="live"),
            ],
            versioned_types=["Page"],
        )
        assert [r.id for r in repo.fetch("Page")] == [3, 1]

    def test_tenant_scope(self, record_factory):
        repo = InMemoryRecordRepository(
            [record_factory("Page", 1, tenant_id="a"), record_factory("Page", 2, tenant_id="b")],
            tenant_id="a",
        )
        assert repo.fetch("Page").count() == 2
        assert [r.id for r in repo.fetch("Page", include_all_tenants=False)] == [1]

    def test_lazy_set_sees_later_changes(self, repo):
        candidates = repo.fetch("Page", "last_indexed_at IS NULL")
        assert candidates.count() == 7
        repo.get("Page", 7).last_indexed_at = datetime(2026, 1, 1, tzinfo=UTC)
        assert candidates.count() == 6

    def test_pages_are_projections(self, repo):
        projection = repo.fetch("Page").page(0, 1)[0]
        projection.attributes["title"] = "changed"
        assert repo.get("Page", 7).attributes["title"] == "Page 7"


class TestReload:
    def test_reload_returns_stored_instance(self, repo):
        assert repo.reload("Page", 3) is repo.get("Page", 3)

    def test_reload_missing(self, repo):
        assert repo.reload("Page", 99) is None
        assert repo.reload("Ghost", 1) is None


class TestPersistence:
    """External ids and indexed dates."""

    def test_save_external_id(self, repo):
        record = repo.reload("Page", 1)
        external = uuid.uuid4()
        repo.save_external_id(record, external)
        assert repo.get("Page", 1).external_id == external

    def test_save_same_external_id_twice_is_fine(self, repo):
        record = repo.reload("Page", 1)
        external = uuid.uuid4()
        repo.save_external_id(record, external)
        repo.save_external_id(record, external)

    def test_external_id_is_write_once(self, repo):
        record = repo.reload("Page", 1)
        repo.save_external_id(record, uuid.uuid4())
        with pytest.raises(RepositoryError):
            repo.save_external_id(record, uuid.uuid4())

    def test_mark_indexed_updates_both_copies(self, repo):
        projection = repo.fetch("Page").page(0, 1)[0]
        at = datetime(2026, 1, 15, tzinfo=UTC)
        repo.mark_indexed(projection, at)
        assert projection.last_indexed_at == at
        assert repo.get("Page", 7).last_indexed_at == at

    def test_mark_indexed_missing_record(self, repo):
        with pytest.raises(RepositoryError):
            repo.mark_indexed(CandidateRecord(type="Page", id=404), datetime.now(UTC))

    def test_remove(self, repo):
        repo.remove("Page", 7)
        assert repo.fetch("Page").count() == 6
