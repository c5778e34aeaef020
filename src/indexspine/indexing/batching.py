"""
Batch accumulation keyed by (index, record type).

Exported attribute maps are grouped into fixed-capacity batches, one open
batch per ``(index_name, record_type)`` key. ``add()`` hands back a batch
the moment it fills; ``flush()`` / ``flush_all()`` drain partial batches
when a type's enumeration is exhausted so no trailing items are lost.

Examples:
    >>> acc = BatchAccumulator(capacity=2)
    >>> acc.add("pages", "Page", {"objectID": "a"}) is None
    True
    >>> len(acc.add("pages", "Page", {"objectID": "b"}))
    2
    >>> acc.flush_all()
    []
"""

from __future__ import annotations

from indexspine.core.models import DEFAULT_BATCH_SIZE, AttributeMap, Batch, TypeName

BatchKey = tuple[str, TypeName]


class BatchAccumulator:
    """Open batches for one run; never shared across runs."""

    def __init__(self, capacity: int = DEFAULT_BATCH_SIZE) -> None:
        if capacity < 1:
            raise ValueError(f"Batch capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._open: dict[BatchKey, Batch] = {}

    def add(self, index_name: str, record_type: TypeName, attributes: AttributeMap) -> Batch | None:
        """Append to the open batch for the key; return it if now full."""
        key = (index_name, record_type)
        batch = self._open.get(key)
        if batch is None:
            batch = self._open[key] = Batch(
                index_name=index_name, record_type=record_type, capacity=self.capacity
            )
        batch.append(attributes)
        if batch.is_full:
            del self._open[key]
            return batch
        return None

    def flush(self, index_name: str, record_type: TypeName) -> Batch | None:
        """Drain one key's open batch, if it holds anything."""
        batch = self._open.pop((index_name, record_type), None)
        if batch is None or not len(batch):
            return None
        return batch

    def flush_all(self) -> list[Batch]:
        """Drain every non-empty open batch, in key insertion order."""
        batches = [batch for batch in self._open.values() if len(batch)]
        self._open.clear()
        return batches

    @property
    def pending(self) -> list[BatchKey]:
        return list(self._open)

    def __len__(self) -> int:
        """Items waiting across all open batches."""
        return sum(len(batch) for batch in self._open.values())


__all__ = [
    "BatchKey",
    "BatchAccumulator",
]
