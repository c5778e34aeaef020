"""
Reindex orchestration — the bulk rebuild driver.

ReindexOrchestrator walks every configured index and every record type
included in it, enumerates candidates from the record store, and pushes
eligible records through identifier assignment, attribute export,
batching and paced commits. It returns one RunSummary per index.

Manifesto:
    A full rebuild must finish and report, even when parts of it fail.
    Only an enumeration that cannot start is fatal, and only for the index
    it belongs to. Everything else (a record that won't export, a batch the
    service rejects) is logged, counted and left behind while the run
    moves on.

    - **Filter precedence:** explicit > per-type default > "not yet indexed"
    - **Authoritative state:** eligibility is decided on the reloaded record
    - **Bounded batches:** committed on reaching capacity or end of pass
    - **Resumable:** re-running with the implicit filter picks up the rest

Architecture:
    ::

        run(request)
          ├── clear_all? → committer.clear(index) for every index
          └── for index in indexes
                └── for record_type in index.included_types
                      fetch → count → keyset windows of batch_size
                        └── reload → eligible? → ensure id → export
                              → accumulator.add → [full] commit → mark batch
                      flush trailing batch → commit → mark batch

    Record lifecycle::

        Enumerated → Reloaded → {Skipped | Eligible} → Exported
                   → Batched → {Committed | CommitFailed}

Examples:
    >>> orchestrator = ReindexOrchestrator(
    ...     indexes=config.descriptors(),
    ...     repository=repository,
    ...     exporter=RecordAttributeExporter(),
    ...     committer=SearchCommitter(service, FixedIntervalLimiter(1.0)),
    ... )
    >>> summaries = orchestrator.run(ReindexRequest(target_type="Page"))
    >>> summaries[0].indexed_count
    47

Guardrails:
    ❌ DON'T: Mark a record indexed before its export succeeded
    ✅ DO: Mark once the batch holding it was committed; a failed commit
       does not undo the mark

    ❌ DON'T: Pace commits in programmatic (output=False) runs
    ✅ DO: Let run() swap in an unpaced committer

Tags:
    orchestrator, reindex, batching, failure-isolation, indexspine

Doc-Types:
    - API Reference
    - Operations Guide
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import datetime

from indexspine.core.errors import (
    EnumerationError,
    ExportError,
    IndexSpineError,
    SearchServiceError,
)
from indexspine.core.logging import LogContext, get_logger
from indexspine.core.models import (
    DEFAULT_BATCH_SIZE,
    UNINDEXED_FILTER,
    AttributeMap,
    Batch,
    CandidateRecord,
    FilterExpr,
    IndexDescriptor,
    ReindexRequest,
    RunSummary,
    RunSummaryBuilder,
    TypeName,
)
from indexspine.core.protocols import AttributeExporter, CandidateSet, RecordRepository
from indexspine.core.result import Err, Ok, try_result
from indexspine.core.timestamps import utc_now
from indexspine.indexing.batching import BatchAccumulator
from indexspine.indexing.committer import SearchCommitter
from indexspine.indexing.eligibility import EligibilityRegistry
from indexspine.indexing.identifiers import IdentifierAssigner
from indexspine.indexing.progress import NullProgress

logger = get_logger(__name__)


class ReindexOrchestrator:
    """Top-level driver for a bulk reindex.

    Parameters:
        indexes: Index descriptors, processed in order.
        repository: Record store.
        exporter: Turns reloaded records into attribute maps.
        committer: Paced committer for the remote service.
        eligibility: Per-type predicates; default accepts everything.
        identifiers: External id assigner; default uses ``uuid4``.
        batch_size: Batch capacity and enumeration window size.
        default_filters: Per-type filters used when no explicit filter is given.
        progress: Progress sink for interactive runs.
        clock: Source of ``last_indexed_at`` timestamps.
    """

    def __init__(
        self,
        indexes: Sequence[IndexDescriptor],
        repository: RecordRepository,
        exporter: AttributeExporter,
        committer: SearchCommitter,
        *,
        eligibility: EligibilityRegistry | None = None,
        identifiers: IdentifierAssigner | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        default_filters: Mapping[TypeName, FilterExpr] | None = None,
        progress: NullProgress | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.indexes = list(indexes)
        self.repository = repository
        self.exporter = exporter
        self.committer = committer
        self.eligibility = eligibility if eligibility is not None else EligibilityRegistry()
        self.identifiers = identifiers if identifiers is not None else IdentifierAssigner(repository)
        self.batch_size = batch_size
        self.default_filters = dict(default_filters or {})
        self.progress = progress if progress is not None else NullProgress()
        self.clock = clock

    # -- filter resolution -------------------------------------------------

    def resolve_filter(self, request: ReindexRequest, record_type: TypeName) -> FilterExpr | None:
        """Explicit filter > per-type default > implicit "not yet indexed".

        The per-type default only applies when the request targets that
        type, so plain runs keep skipping records indexed before.
        """
        if request.filter:
            return request.filter
        if request.target_type == record_type:
            default = self.default_filters.get(record_type)
            if default:
                return default
        if not request.force_all:
            return UNINDEXED_FILTER
        return None

    # -- run ---------------------------------------------------------------

    def run(self, request: ReindexRequest) -> list[RunSummary]:
        """Reindex every configured index; always returns one summary per index."""
        committer = self.committer if request.output else self.committer.unpaced()
        progress = self.progress if request.output else NullProgress()

        logger.info(
            "reindex.started",
            indexes=[descriptor.name for descriptor in self.indexes],
            target_type=request.target_type,
            filter=request.filter,
            force_all=request.force_all,
            clear_all=request.clear_all,
        )

        builders = {descriptor.name: RunSummaryBuilder(descriptor.name) for descriptor in self.indexes}

        if request.clear_all:
            for descriptor in self.indexes:
                try:
                    committer.clear(descriptor.name)
                except SearchServiceError as e:
                    logger.error("index.clear_failed", index=descriptor.name, **e.to_dict())
                    builders[descriptor.name].error(f"Clearing {descriptor.name} failed: {e.message}")

        summaries: list[RunSummary] = []
        for descriptor in self.indexes:
            builder = builders[descriptor.name]
            progress.index_started(descriptor.name)
            with LogContext(index=descriptor.name):
                for record_type in descriptor.included_types:
                    if request.target_type and request.target_type != record_type:
                        continue
                    try:
                        builder.merge(
                            self._index_type(descriptor, record_type, request, committer, progress)
                        )
                    except EnumerationError as e:
                        logger.error("reindex.enumeration_failed", **e.to_dict())
                        builder.error(e.message)
                        break

            summary = builder.build()
            logger.info("reindex.index_finished", **summary.to_dict())
            progress.index_finished(summary, committer.service.explorer_url(descriptor.name))
            summaries.append(summary)

        progress.run_finished()
        return summaries

    def _index_type(
        self,
        descriptor: IndexDescriptor,
        record_type: TypeName,
        request: ReindexRequest,
        committer: SearchCommitter,
        progress: NullProgress,
    ) -> RunSummary:
        effective_filter = self.resolve_filter(request, record_type)
        index_filter = descriptor.filter_for(record_type)

        try:
            candidates = self.repository.fetch(
                record_type, effective_filter, index_filter, include_all_tenants=True
            )
            total = candidates.count()
        except Exception as e:
            message = e.message if isinstance(e, IndexSpineError) else str(e)
            raise EnumerationError(
                f"Cannot enumerate {record_type} for {descriptor.name}: {message}", cause=e
            ).with_context(index_name=descriptor.name, record_type=record_type) from e

        filters = [effective_filter or "", index_filter or ""]
        logger.info(
            "reindex.type_started",
            record_type=record_type,
            count=total,
            filter=effective_filter,
            index_filter=index_filter,
        )
        progress.type_started(descriptor.name, record_type, total, filters)

        if total < 1:
            return RunSummary(index_name=descriptor.name)

        return self.index_items(
            descriptor.name,
            record_type,
            candidates,
            total=total,
            committer=committer,
            progress=progress,
        )

    # -- single type -------------------------------------------------------

    def index_items(
        self,
        index_name: str,
        record_type: TypeName,
        candidates: CandidateSet,
        *,
        total: int | None = None,
        committer: SearchCommitter | None = None,
        progress: NullProgress | None = None,
    ) -> RunSummary:
        """Index one type's candidate set into ``index_name``.

        Candidates are read newest first in keyset windows of ``batch_size``
        (ids below the last one seen), so records marked indexed during the
        pass never shift the windows still to come. Exported records are
        marked as soon as the batch holding them has been committed.
        """
        committer = committer if committer is not None else self.committer
        progress = progress if progress is not None else self.progress
        total = candidates.count() if total is None else total

        builder = RunSummaryBuilder(index_name)
        accumulator = BatchAccumulator(self.batch_size)
        batched: list[CandidateRecord] = []
        position = 0
        before_id: int | None = None

        with LogContext(record_type=record_type):
            while True:
                try:
                    page = candidates.page_before(before_id, self.batch_size)
                except Exception as e:
                    logger.error("reindex.page_failed", before_id=before_id, error=str(e))
                    builder.error(f"Reading {record_type} candidates failed: {e}")
                    break

                for item in page:
                    position += 1
                    progress.record_processed(position, total)
                    exported = self._process(item, builder)
                    if exported is None:
                        continue
                    record, attributes = exported
                    batched.append(record)
                    batch = accumulator.add(index_name, record_type, attributes)
                    if batch is not None:
                        self._commit(committer, batch, builder)
                        self._mark_indexed(batched, builder)
                        batched = []

                if len(page) < self.batch_size:
                    break
                before_id = page[-1].id

            trailing = accumulator.flush(index_name, record_type)
            if trailing is not None:
                self._commit(committer, trailing, builder)
            self._mark_indexed(batched, builder)

        summary = builder.build()
        logger.info(
            "reindex.type_finished",
            indexed=summary.indexed_count,
            skipped=summary.skipped_count,
            errors=len(summary.errors),
        )
        return summary

    def _process(
        self, item: CandidateRecord, builder: RunSummaryBuilder
    ) -> tuple[CandidateRecord, AttributeMap] | None:
        """Reload, check, identify and export one candidate."""
        try:
            record = self.repository.reload(item.type, item.id)
        except Exception as e:
            logger.warning("record.reload_failed", record_id=item.id, error=str(e))
            builder.error(f"Reloading {item.type} #{item.id} failed: {e}")
            return None

        if record is None or not self.eligibility.is_indexable(record):
            builder.skipped()
            return None

        try:
            self.identifiers.ensure(record)
        except Exception as e:
            logger.warning("record.identifier_failed", record_id=record.id, error=str(e))
            builder.error(f"Assigning an external id to {record.type} #{record.id} failed: {e}")
            return None

        try:
            attributes = self.exporter.export(record)
        except Exception as e:
            error = e if isinstance(e, ExportError) else ExportError(
                f"Exporting {record.type} #{record.id} failed: {e}", cause=e
            ).with_context(record_type=record.type, record_id=record.id)
            logger.warning("record.export_failed", **error.to_dict())
            builder.error(error.message)
            return None

        builder.indexed()
        return record, attributes

    def _commit(self, committer: SearchCommitter, batch: Batch, builder: RunSummaryBuilder) -> None:
        match committer.commit(batch.index_name, batch):
            case Ok(count):
                builder.committed(count)
            case Err(error):
                details = error.to_dict() if isinstance(error, IndexSpineError) else {"message": str(error)}
                logger.error("batch.commit_failed", **details)
                builder.commit_failed(getattr(error, "message", str(error)))

    def _mark_indexed(self, records: list[CandidateRecord], builder: RunSummaryBuilder) -> None:
        at = self.clock()
        for record in records:
            try:
                self.repository.mark_indexed(record, at)
            except Exception as e:
                logger.warning("record.mark_failed", record_id=record.id, error=str(e))
                builder.error(f"Recording index date for {record.type} #{record.id} failed: {e}")

    # -- single record -----------------------------------------------------

    def index_record(self, index_name: str, record: CandidateRecord) -> bool:
        """Index one record immediately with a single-item commit.

        Returns True when the remote service acknowledged the record.
        """
        if not self.eligibility.is_indexable(record):
            return False

        def identify_and_export() -> AttributeMap:
            self.identifiers.ensure(record)
            return self.exporter.export(record)

        exported = try_result(identify_and_export)
        if exported.is_err():
            logger.warning(
                "record.export_failed", record_type=record.type, record_id=record.id, error=str(exported.error)
            )
            return False

        batch = Batch(index_name=index_name, record_type=record.type, capacity=1, items=[exported.unwrap()])
        result = self.committer.commit(index_name, batch)
        if result.is_err():
            logger.error("record.commit_failed", record_type=record.type, record_id=record.id, error=str(result.error))
            return False

        self.repository.mark_indexed(record, self.clock())
        return True


__all__ = [
    "ReindexOrchestrator",
]
