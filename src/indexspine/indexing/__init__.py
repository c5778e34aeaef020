"""indexspine.indexing -- the reindex pipeline.

Architecture::

    orchestrator.py   ReindexOrchestrator (run / index_items / index_record)
    eligibility.py    Per-type "should this be indexed" predicates
    identifiers.py    Stable external id assignment
    export.py         Default record -> attribute map exporter
    batching.py       Bounded (index, type) batch accumulation
    committer.py      Result-returning upserts to the search service
    pacing.py         Rate limiters gating each commit
    progress.py       Console / silent progress sinks
"""

from indexspine.indexing.batching import BatchAccumulator
from indexspine.indexing.committer import SearchCommitter
from indexspine.indexing.eligibility import EligibilityRegistry
from indexspine.indexing.export import RecordAttributeExporter
from indexspine.indexing.identifiers import IdentifierAssigner
from indexspine.indexing.orchestrator import ReindexOrchestrator
from indexspine.indexing.pacing import (
    FixedIntervalLimiter,
    NullRateLimiter,
    RateLimiter,
    TokenBucketLimiter,
    limiter_for,
)
from indexspine.indexing.progress import ConsoleProgress, NullProgress

__all__ = [
    "BatchAccumulator",
    "SearchCommitter",
    "EligibilityRegistry",
    "RecordAttributeExporter",
    "IdentifierAssigner",
    "ReindexOrchestrator",
    "RateLimiter",
    "NullRateLimiter",
    "FixedIntervalLimiter",
    "TokenBucketLimiter",
    "limiter_for",
    "ConsoleProgress",
    "NullProgress",
]
