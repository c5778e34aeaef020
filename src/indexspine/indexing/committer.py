"""
Batch commits to the remote search service.

SearchCommitter sends one batch per request with upsert semantics: items
that already carry an ``objectID`` replace the existing object, items
without one get an id generated by the service. Every outcome comes back
as a Result so the orchestrator can log a failed batch and carry on; no
exception from the service escapes ``commit()``.

Manifesto:
    A bulk reindex commits hundreds of batches. One rejected batch is a
    line in the run summary, never the end of the run. This layer does
    not retry: a failed batch's records keep their ``last_indexed_at`` and
    are not resubmitted in the same run.

Examples:
    >>> committer = SearchCommitter(InMemorySearchService(), NullRateLimiter())
    >>> committer.commit("pages", batch)
    Ok(25)

Tags:
    commit, upsert, batch, result-pattern, indexspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from indexspine.core.errors import CommitError, SearchServiceError, is_retryable
from indexspine.core.logging import get_logger
from indexspine.core.models import Batch
from indexspine.core.protocols import SearchService
from indexspine.core.result import Err, Ok, Result
from indexspine.indexing.pacing import NullRateLimiter, RateLimiter

logger = get_logger(__name__)


class SearchCommitter:
    """Paced, failure-isolated commits to a SearchService."""

    def __init__(self, service: SearchService, limiter: RateLimiter | None = None) -> None:
        self.service = service
        self.limiter = limiter if limiter is not None else NullRateLimiter()

    def unpaced(self) -> SearchCommitter:
        """Same service, no pacing."""
        if isinstance(self.limiter, NullRateLimiter):
            return self
        return SearchCommitter(self.service, NullRateLimiter())

    def commit(self, index_name: str, batch: Batch) -> Result[int]:
        """Upsert every item of ``batch`` into ``index_name`` in one request.

        Returns:
            ``Ok(committed_count)`` or ``Err(CommitError)``.
        """
        if not len(batch):
            return Ok(0)

        self.limiter.acquire(block=True)

        try:
            response = self.service.upsert(
                index_name, list(batch.items), auto_generate_id_if_absent=True
            )
        except SearchServiceError as e:
            error = CommitError(
                f"Commit of {len(batch)} {batch.record_type} items to {index_name} failed: {e.message}",
                retryable=e.retryable,
                cause=e,
            )
            return Err(self._context(error, index_name, batch))
        except Exception as e:
            error = CommitError(
                f"Commit of {len(batch)} {batch.record_type} items to {index_name} failed: {e}",
                retryable=is_retryable(e),
                cause=e,
            )
            return Err(self._context(error, index_name, batch))

        if not response.valid or response.committed_count != len(batch):
            detail = response.message or (
                f"service acknowledged {response.committed_count} of {len(batch)} items"
            )
            error = CommitError(
                f"Commit of {len(batch)} {batch.record_type} items to {index_name} "
                f"returned an invalid result: {detail}"
            )
            return Err(self._context(error, index_name, batch))

        logger.debug(
            "batch.committed",
            index=index_name,
            record_type=batch.record_type,
            items=len(batch),
            task_id=response.task_id,
        )
        return Ok(response.committed_count)

    def clear(self, index_name: str) -> None:
        """Remove every object from ``index_name``.

        Raises:
            SearchServiceError: if the service refuses.
        """
        self.service.clear_index(index_name)
        logger.info("index.cleared", index=index_name)

    @staticmethod
    def _context(error: CommitError, index_name: str, batch: Batch) -> CommitError:
        error.with_context(index_name=index_name, record_type=batch.record_type, batch_size=len(batch))
        return error


__all__ = [
    "SearchCommitter",
]
