"""
Data model for a reindex run.

Manifesto:
    The engine moves records through a short, fixed lifecycle::

        Enumerated → Reloaded → {Skipped | Eligible} → Exported
                   → Batched → {Committed | CommitFailed}

    Each value here belongs to one stage of that lifecycle. Configuration
    values (IndexDescriptor) and invocation values (ReindexRequest) are
    frozen; CandidateRecord and Batch are working state; RunSummary is the
    frozen outcome handed back to the caller.

Features:
    - **IndexDescriptor:** remote index name, included types, per-type filters
    - **ReindexRequest:** onlyClass / filter / forceAll / clearAll parameters
    - **CandidateRecord:** a record located in the content store
    - **Batch:** bounded group of attribute maps for one (index, type)
    - **RunSummary / RunSummaryBuilder:** per-index outcome and its accumulator

Examples:
    >>> request = ReindexRequest.from_params({"onlyClass": "Page", "forceAll": "1"})
    >>> request.target_type, request.force_all
    ('Page', True)

Tags:
    data-model, dataclass, reindex, indexspine

Doc-Types:
    - API Reference

STDLIB ONLY — no Pydantic.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

TypeName = str
FilterExpr = str
AttributeMap = dict[str, Any]

#: Implicit filter applied when neither an explicit nor a default filter is
#: given and ``force_all`` is off: only records never indexed before.
UNINDEXED_FILTER: FilterExpr = "last_indexed_at IS NULL"

#: Stage value of published records for versioned types.
LIVE_STAGE = "live"

DEFAULT_BATCH_SIZE = 25

_TRUTHY = {"1", "true", "yes", "on"}


def _truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


# ---------------------------------------------------------------------------
# Configuration & invocation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IndexDescriptor:
    """A remote index and the record types that populate it.

    Attributes:
        name: Remote index name.
        included_types: Record types indexed into it, in processing order.
        include_filters: Per-type filter ANDed with the run's filter.
    """

    name: str
    included_types: tuple[TypeName, ...] = ()
    include_filters: Mapping[TypeName, FilterExpr] = field(default_factory=dict)

    def includes(self, record_type: TypeName) -> bool:
        return record_type in self.included_types

    def filter_for(self, record_type: TypeName) -> FilterExpr | None:
        return self.include_filters.get(record_type) or None


@dataclass(frozen=True, slots=True)
class ReindexRequest:
    """Caller-supplied parameters for one invocation.

    Attributes:
        target_type: Restrict the run to this record type (``onlyClass``).
        filter: Explicit filter overriding default and implicit filters.
        force_all: Suppress the implicit "not yet indexed" filter.
        clear_all: Wipe every configured index before indexing.
        output: Emit progress markers and pace commits. Programmatic callers
            pass ``False`` to get only the summaries back.
    """

    target_type: TypeName | None = None
    filter: FilterExpr | None = None
    force_all: bool = False
    clear_all: bool = False
    output: bool = True

    @classmethod
    def from_params(cls, params: Mapping[str, Any], *, output: bool = True) -> ReindexRequest:
        """Build a request from string parameters (HTTP query vars, task args).

        Recognised keys: ``onlyClass``, ``filter``, ``forceAll``, ``clearAll``.
        Empty strings count as absent.
        """
        return cls(
            target_type=params.get("onlyClass") or None,
            filter=params.get("filter") or None,
            force_all=_truthy(params.get("forceAll")),
            clear_all=_truthy(params.get("clearAll")),
            output=output,
        )


# ---------------------------------------------------------------------------
# Working state
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CandidateRecord:
    """A record located in the content store.

    Enumeration may hand back a lightweight projection; the orchestrator
    reloads the authoritative instance before deciding eligibility.

    Attributes:
        type: Record type name.
        id: Store identifier (sort key, descending).
        external_id: Stable UUID used as the remote object key.
        last_indexed_at: When the record was last successfully exported.
        stage: Versioning stage (``"live"`` for published records) or None.
        tenant_id: Owning tenant, for multi-tenant stores.
        attributes: Domain fields handed to the attribute exporter.
    """

    type: TypeName
    id: int
    external_id: UUID | None = None
    last_indexed_at: datetime | None = None
    stage: str | None = None
    tenant_id: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[TypeName, int]:
        return (self.type, self.id)


@dataclass(slots=True)
class Batch:
    """Exported attribute maps waiting to be committed to one index."""

    index_name: str
    record_type: TypeName
    capacity: int = DEFAULT_BATCH_SIZE
    items: list[AttributeMap] = field(default_factory=list)

    def append(self, attributes: AttributeMap) -> None:
        if self.is_full:
            raise ValueError(
                f"Batch for {self.index_name}/{self.record_type} is full ({self.capacity})"
            )
        self.items.append(attributes)

    @property
    def is_full(self) -> bool:
        return len(self.items) >= self.capacity

    def __len__(self) -> int:
        return len(self.items)


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UpsertResponse:
    """What the remote service reported for one upsert request.

    ``valid`` is False when the service accepted the request but its
    response is incomplete (missing task id, fewer object ids than items).
    """

    valid: bool
    object_ids: tuple[str, ...] = ()
    task_id: int | str | None = None
    message: str | None = None

    @property
    def committed_count(self) -> int:
        return len(self.object_ids)


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Outcome of reindexing one index.

    ``indexed_count`` counts successful exports (records handed to a batch),
    matching the "attempted" semantics of ``last_indexed_at``;
    ``committed_count`` counts items the remote service acknowledged.
    """

    index_name: str
    indexed_count: int = 0
    skipped_count: int = 0
    errors: tuple[str, ...] = ()
    committed_count: int = 0
    failed_batches: int = 0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def render(self) -> str:
        return (
            f"| Number of objects indexed in {self.index_name}: "
            f"{self.indexed_count}, Skipped {self.skipped_count}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "index_name": self.index_name,
            "indexed_count": self.indexed_count,
            "skipped_count": self.skipped_count,
            "committed_count": self.committed_count,
            "failed_batches": self.failed_batches,
            "errors": list(self.errors),
        }


@dataclass(slots=True)
class RunSummaryBuilder:
    """Mutable counters for one index, owned by a single orchestrator run."""

    index_name: str
    indexed_count: int = 0
    skipped_count: int = 0
    committed_count: int = 0
    failed_batches: int = 0
    errors: list[str] = field(default_factory=list)

    def indexed(self) -> None:
        self.indexed_count += 1

    def skipped(self) -> None:
        self.skipped_count += 1

    def committed(self, count: int) -> None:
        self.committed_count += count

    def commit_failed(self, message: str) -> None:
        self.failed_batches += 1
        self.errors.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def merge(self, other: RunSummary) -> None:
        """Fold a single-type summary into this index-wide one."""
        self.indexed_count += other.indexed_count
        self.skipped_count += other.skipped_count
        self.committed_count += other.committed_count
        self.failed_batches += other.failed_batches
        self.errors.extend(other.errors)

    def build(self) -> RunSummary:
        return RunSummary(
            index_name=self.index_name,
            indexed_count=self.indexed_count,
            skipped_count=self.skipped_count,
            errors=tuple(self.errors),
            committed_count=self.committed_count,
            failed_batches=self.failed_batches,
        )


__all__ = [
    "TypeName",
    "FilterExpr",
    "AttributeMap",
    "UNINDEXED_FILTER",
    "LIVE_STAGE",
    "DEFAULT_BATCH_SIZE",
    "IndexDescriptor",
    "ReindexRequest",
    "CandidateRecord",
    "Batch",
    "UpsertResponse",
    "RunSummary",
    "RunSummaryBuilder",
]
