"""
In-memory record repository.

A complete :class:`~indexspine.core.protocols.RecordRepository` backed by
dictionaries. Used by the test-suite and for dry runs against fixture
data; it honours the same contract as the SQL repository: live-stage only
for versioned types, AND-composition of filters, optional tenant scope,
descending-id ordering, and write-once external identifiers.

Examples:
    >>> repo = InMemoryRecordRepository(versioned_types={"Page"})
    >>> repo.add(CandidateRecord(type="Page", id=1, stage="live"))
    >>> repo.fetch("Page", "last_indexed_at IS NULL").count()
    1
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Iterator
from datetime import datetime
from uuid import UUID

from indexspine.core.errors import RepositoryError, UnknownRecordTypeError
from indexspine.core.models import LIVE_STAGE, CandidateRecord, FilterExpr, TypeName
from indexspine.records.filters import RecordPredicate, compile_filter


class InMemoryCandidateSet:
    """Lazy view over the repository; re-evaluated on every call."""

    def __init__(self, repository: InMemoryRecordRepository, record_type: TypeName, predicates: list[RecordPredicate]):
        self._repository = repository
        self._record_type = record_type
        self._predicates = predicates

    def _matching(self) -> list[CandidateRecord]:
        records = self._repository._records.get(self._record_type, {})
        matched = [
            record
            for record in records.values()
            if all(predicate(record) for predicate in self._predicates)
        ]
        matched.sort(key=lambda record: record.id, reverse=True)
        return matched

    def count(self) -> int:
        return len(self._matching())

    def exists(self) -> bool:
        return self.count() > 0

    def page(self, offset: int, limit: int) -> list[CandidateRecord]:
        # Projections: callers must reload before trusting state.
        return [_project(record) for record in self._matching()[offset : offset + limit]]

    def page_before(self, before_id: int | None, limit: int) -> list[CandidateRecord]:
        matched = self._matching()
        if before_id is not None:
            matched = [record for record in matched if record.id < before_id]
        return [_project(record) for record in matched[:limit]]

    def __iter__(self) -> Iterator[CandidateRecord]:
        return (_project(record) for record in self._matching())


def _project(record: CandidateRecord) -> CandidateRecord:
    return dataclasses.replace(record, attributes=dict(record.attributes))


class InMemoryRecordRepository:
    """Dictionary-backed record store."""

    def __init__(
        self,
        records: Iterable[CandidateRecord] = (),
        *,
        versioned_types: Iterable[TypeName] = (),
        record_types: Iterable[TypeName] = (),
        tenant_id: str | None = None,
    ) -> None:
        self.versioned_types = set(versioned_types)
        self.tenant_id = tenant_id
        self._records: dict[TypeName, dict[int, CandidateRecord]] = {
            record_type: {} for record_type in record_types
        }
        for record in records:
            self.add(record)

    # -- seeding -----------------------------------------------------------

    def add(self, record: CandidateRecord) -> None:
        self._records.setdefault(record.type, {})[record.id] = record

    def remove(self, record_type: TypeName, record_id: int) -> None:
        self._records.get(record_type, {}).pop(record_id, None)

    def get(self, record_type: TypeName, record_id: int) -> CandidateRecord | None:
        """Stored instance (no copy); for assertions and seeding."""
        return self._records.get(record_type, {}).get(record_id)

    @property
    def record_types(self) -> list[TypeName]:
        return list(self._records)

    # -- RecordRepository --------------------------------------------------

    def fetch(
        self,
        record_type: TypeName,
        filter: FilterExpr | RecordPredicate | None = None,
        index_filter: FilterExpr | RecordPredicate | None = None,
        *,
        include_all_tenants: bool = True,
    ) -> InMemoryCandidateSet:
        if record_type not in self._records:
            raise UnknownRecordTypeError(record_type)

        predicates: list[RecordPredicate] = []
        if record_type in self.versioned_types:
            predicates.append(lambda record: record.stage == LIVE_STAGE)
        if filter:
            predicates.append(compile_filter(filter))
        if index_filter:
            predicates.append(compile_filter(index_filter))
        if not include_all_tenants and self.tenant_id is not None:
            tenant = self.tenant_id
            predicates.append(lambda record: record.tenant_id == tenant)

        return InMemoryCandidateSet(self, record_type, predicates)

    def reload(self, record_type: TypeName, record_id: int) -> CandidateRecord | None:
        return self.get(record_type, record_id)

    def save_external_id(self, record: CandidateRecord, external_id: UUID) -> None:
        stored = self._require(record)
        if stored.external_id is not None and stored.external_id != external_id:
            raise RepositoryError(
                f"{record.type} #{record.id} already has external id {stored.external_id}"
            ).with_context(record_type=record.type, record_id=record.id)
        stored.external_id = external_id
        record.external_id = external_id

    def mark_indexed(self, record: CandidateRecord, at: datetime) -> None:
        stored = self._require(record)
        stored.last_indexed_at = at
        record.last_indexed_at = at

    def _require(self, record: CandidateRecord) -> CandidateRecord:
        stored = self.get(record.type, record.id)
        if stored is None:
            raise RepositoryError(f"{record.type} #{record.id} no longer exists").with_context(
                record_type=record.type, record_id=record.id
            )
        return stored


__all__ = [
    "InMemoryCandidateSet",
    "InMemoryRecordRepository",
]
