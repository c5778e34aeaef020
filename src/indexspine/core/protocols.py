"""
Canonical protocol definitions for indexspine.

The reindex engine depends on three collaborators it does not own: the
content store, the attribute exporter and the remote search service. Each
is defined here as a structural protocol so any object with the right
shape plugs in, from the in-memory test doubles to the SQLAlchemy and
Algolia adapters.

Architecture:
    ::

        protocols.py
        ├── CandidateSet       — lazy, finite, pageable result of fetch()
        ├── RecordRepository   — enumerate, reload, persist id / indexed date
        ├── AttributeExporter  — record → flat attribute map
        └── SearchService      — clear_index / upsert on the remote index

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts — implementations live in
       indexspine.records and indexspine.search

Tags:
    protocol, repository, exporter, search-service, indexspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from indexspine.core.models import (
    AttributeMap,
    CandidateRecord,
    FilterExpr,
    TypeName,
    UpsertResponse,
)


@runtime_checkable
class CandidateSet(Protocol):
    """
    Lazy result of ``RecordRepository.fetch``.

    Ordered newest-first by identifier (descending) and deterministic
    across repeated calls against unchanged data. ``page()`` never
    duplicates or omits records as long as the underlying set doesn't
    change during iteration.
    """

    def count(self) -> int:
        """Total number of candidates."""
        ...

    def exists(self) -> bool:
        """True if at least one candidate matches."""
        ...

    def page(self, offset: int, limit: int) -> list[CandidateRecord]:
        """Candidates ``offset`` .. ``offset + limit`` in descending-id order."""
        ...

    def page_before(self, before_id: int | None, limit: int) -> list[CandidateRecord]:
        """Up to ``limit`` candidates with ids below ``before_id``, descending.

        ``None`` starts from the newest record. Keyset windows stay stable
        when earlier records drop out of the set.
        """
        ...

    def __iter__(self) -> Iterator[CandidateRecord]:
        ...


@runtime_checkable
class RecordRepository(Protocol):
    """Content store contract consumed by the reindex engine."""

    def fetch(
        self,
        record_type: TypeName,
        filter: FilterExpr | None = None,
        index_filter: FilterExpr | None = None,
        *,
        include_all_tenants: bool = True,
    ) -> CandidateSet:
        """Enumerate candidates of one type.

        Versioned types only yield live-stage records. ``filter`` and
        ``index_filter`` are combined with logical AND; either may be None.
        ``include_all_tenants`` suppresses tenant scoping.

        Raises:
            UnknownRecordTypeError: if the type isn't known to the store.
            FilterError: if a filter expression can't be applied.
        """
        ...

    def reload(self, record_type: TypeName, record_id: int) -> CandidateRecord | None:
        """Fetch the authoritative instance, or None if it no longer exists."""
        ...

    def save_external_id(self, record: CandidateRecord, external_id: UUID) -> None:
        """Persist a newly assigned external identifier."""
        ...

    def mark_indexed(self, record: CandidateRecord, at: datetime) -> None:
        """Persist ``last_indexed_at`` after a successful export."""
        ...


@runtime_checkable
class AttributeExporter(Protocol):
    """Turns one record into a flat, index-ready attribute map."""

    def export(self, record: CandidateRecord) -> AttributeMap:
        ...


@runtime_checkable
class SearchService(Protocol):
    """Remote search service contract."""

    def clear_index(self, name: str) -> None:
        """Remove every object from the named index.

        Raises:
            SearchServiceError: if the service refuses.
        """
        ...

    def upsert(
        self,
        name: str,
        items: Sequence[AttributeMap],
        *,
        auto_generate_id_if_absent: bool = True,
    ) -> UpsertResponse:
        """Add or replace ``items`` in one request.

        Raises:
            SearchServiceError: on transport failure or a rejected request.
        """
        ...

    def explorer_url(self, name: str) -> str | None:
        """Where a human can inspect the index, if the service has a console."""
        ...


__all__ = [
    "CandidateSet",
    "RecordRepository",
    "AttributeExporter",
    "SearchService",
]
