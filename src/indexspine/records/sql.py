"""
SQL record repository (SQLAlchemy 2.0).

Implements :class:`~indexspine.core.protocols.RecordRepository` over the
``search_records`` table. Filter expressions are SQL ``WHERE`` fragments
and are composed with ``AND`` as ``text()`` clauses; the per-type index
filter is added on top of the caller's filter.

Manifesto:
    Bulk reindex must see every eligible record regardless of who is
    running it. Tenant scoping is therefore an explicit argument to
    ``fetch()`` (``include_all_tenants``) instead of ambient session state
    that has to be switched off and back on around the query.

Features:
    - **Live stage only:** versioned types only yield ``stage = 'live'`` rows
    - **Deterministic paging:** ``ORDER BY id DESC`` with offset/limit
    - **Write-once external ids:** ``UPDATE ... WHERE external_id IS NULL``

Examples:
    >>> engine = create_record_engine("sqlite:///:memory:")
    >>> create_schema(engine)
    >>> repo = SqlRecordRepository(engine, versioned_types={"Page"})
    >>> repo.add(CandidateRecord(type="Page", id=1, stage="live"))
    >>> repo.fetch("Page", "last_indexed_at IS NULL").count()
    1

Tags:
    repository, sqlalchemy, sql, indexspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime
from uuid import UUID

from sqlalchemy import ColumnElement, func, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from indexspine.core.errors import FilterError, RepositoryError, UnknownRecordTypeError
from indexspine.core.logging import get_logger
from indexspine.core.models import LIVE_STAGE, CandidateRecord, FilterExpr, TypeName
from indexspine.records.orm import SearchRecordTable, record_session_factory

logger = get_logger(__name__)

_PAGE_STREAM_SIZE = 500


def _to_candidate(row: SearchRecordTable) -> CandidateRecord:
    return CandidateRecord(
        type=row.record_type,
        id=row.id,
        external_id=UUID(row.external_id) if row.external_id else None,
        last_indexed_at=row.last_indexed_at,
        stage=row.stage,
        tenant_id=row.tenant_id,
        attributes=dict(row.attributes or {}),
    )


class SqlCandidateSet:
    """Lazy candidate set; each call issues its own query."""

    def __init__(self, repository: SqlRecordRepository, record_type: TypeName, conditions: list[ColumnElement[bool]], expressions: list[str]):
        self._repository = repository
        self._record_type = record_type
        self._conditions = conditions
        self._expressions = expressions

    def _run(self, statement):
        try:
            with self._repository._session_factory() as session:
                return list(session.scalars(statement))
        except SQLAlchemyError as e:
            if self._expressions:
                raise FilterError(
                    " AND ".join(self._expressions),
                    f"Query for {self._record_type} failed: {e}",
                    cause=e,
                ) from e
            raise RepositoryError(f"Query for {self._record_type} failed: {e}", cause=e) from e

    def count(self) -> int:
        statement = select(func.count()).select_from(SearchRecordTable).where(*self._conditions)
        return int(self._run(statement)[0])

    def exists(self) -> bool:
        return self.count() > 0

    def page(self, offset: int, limit: int) -> list[CandidateRecord]:
        statement = (
            select(SearchRecordTable)
            .where(*self._conditions)
            .order_by(SearchRecordTable.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [_to_candidate(row) for row in self._run(statement)]

    def page_before(self, before_id: int | None, limit: int) -> list[CandidateRecord]:
        statement = select(SearchRecordTable).where(*self._conditions)
        if before_id is not None:
            statement = statement.where(SearchRecordTable.id < before_id)
        statement = statement.order_by(SearchRecordTable.id.desc()).limit(limit)
        return [_to_candidate(row) for row in self._run(statement)]

    def __iter__(self) -> Iterator[CandidateRecord]:
        before_id = None
        while True:
            rows = self.page_before(before_id, _PAGE_STREAM_SIZE)
            yield from rows
            if len(rows) < _PAGE_STREAM_SIZE:
                return
            before_id = rows[-1].id


class SqlRecordRepository:
    """Record store over a SQLAlchemy engine.

    Parameters:
        engine: SQLAlchemy engine with the ``search_records`` schema.
        versioned_types: Types whose enumeration is restricted to live stage.
        record_types: Known types. When omitted, the distinct
            ``record_type`` values present in the table are used.
        tenant_id: Tenant scope applied when ``include_all_tenants`` is False.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        versioned_types: Iterable[TypeName] = (),
        record_types: Iterable[TypeName] | None = None,
        tenant_id: str | None = None,
    ) -> None:
        self.engine = engine
        self.versioned_types = set(versioned_types)
        self.tenant_id = tenant_id
        self._record_types = set(record_types) if record_types is not None else None
        self._session_factory = record_session_factory(engine)

    # -- seeding -----------------------------------------------------------

    def add(self, record: CandidateRecord) -> None:
        with self._session_factory.begin() as session:
            session.merge(
                SearchRecordTable(
                    record_type=record.type,
                    id=record.id,
                    external_id=str(record.external_id) if record.external_id else None,
                    last_indexed_at=record.last_indexed_at,
                    stage=record.stage,
                    tenant_id=record.tenant_id,
                    attributes=dict(record.attributes),
                )
            )

    def known_types(self) -> set[TypeName]:
        if self._record_types is not None:
            return self._record_types
        with self._session_factory() as session:
            return set(session.scalars(select(SearchRecordTable.record_type).distinct()))

    # -- RecordRepository --------------------------------------------------

    def fetch(
        self,
        record_type: TypeName,
        filter: FilterExpr | None = None,
        index_filter: FilterExpr | None = None,
        *,
        include_all_tenants: bool = True,
    ) -> SqlCandidateSet:
        if record_type not in self.known_types():
            raise UnknownRecordTypeError(record_type)

        conditions: list[ColumnElement[bool]] = [SearchRecordTable.record_type == record_type]
        expressions: list[str] = []
        if record_type in self.versioned_types:
            conditions.append(SearchRecordTable.stage == LIVE_STAGE)
        for expression in (filter, index_filter):
            if expression:
                conditions.append(text(f"({expression})"))
                expressions.append(expression)
        if not include_all_tenants and self.tenant_id is not None:
            conditions.append(SearchRecordTable.tenant_id == self.tenant_id)

        logger.debug("records.fetch", record_type=record_type, filters=expressions)
        return SqlCandidateSet(self, record_type, conditions, expressions)

    def reload(self, record_type: TypeName, record_id: int) -> CandidateRecord | None:
        with self._session_factory() as session:
            row = session.get(SearchRecordTable, (record_type, record_id))
            return _to_candidate(row) if row is not None else None

    def save_external_id(self, record: CandidateRecord, external_id: UUID) -> None:
        statement = (
            update(SearchRecordTable)
            .where(
                SearchRecordTable.record_type == record.type,
                SearchRecordTable.id == record.id,
                SearchRecordTable.external_id.is_(None),
            )
            .values(external_id=str(external_id))
        )
        with self._session_factory.begin() as session:
            result = session.execute(statement)
        if result.rowcount != 1:
            raise RepositoryError(
                f"{record.type} #{record.id} is missing or already has an external id"
            ).with_context(record_type=record.type, record_id=record.id)
        record.external_id = external_id

    def mark_indexed(self, record: CandidateRecord, at: datetime) -> None:
        statement = (
            update(SearchRecordTable)
            .where(SearchRecordTable.record_type == record.type, SearchRecordTable.id == record.id)
            .values(last_indexed_at=at)
        )
        with self._session_factory.begin() as session:
            session.execute(statement)
        record.last_indexed_at = at


__all__ = [
    "SqlCandidateSet",
    "SqlRecordRepository",
]
