"""
Eligibility predicates per record type.

A record is indexable when every predicate registered for its type
returns True. Types without registrations are always indexable.

Examples:
    >>> registry = EligibilityRegistry()
    >>> @registry.predicate("Page")
    ... def published(record):
    ...     return record.attributes.get("show_in_search", True)
    >>> registry.is_indexable(CandidateRecord(type="Page", id=1))
    True
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable

from indexspine.core.logging import get_logger
from indexspine.core.models import CandidateRecord, TypeName

logger = get_logger(__name__)

EligibilityPredicate = Callable[[CandidateRecord], bool]


class EligibilityRegistry:
    """Registered predicates keyed by record type."""

    def __init__(self) -> None:
        self._predicates: dict[TypeName, list[EligibilityPredicate]] = defaultdict(list)

    def register(self, record_type: TypeName, predicate: EligibilityPredicate) -> EligibilityPredicate:
        self._predicates[record_type].append(predicate)
        return predicate

    def predicate(self, record_type: TypeName) -> Callable[[EligibilityPredicate], EligibilityPredicate]:
        """Decorator form of :meth:`register`."""

        def decorator(fn: EligibilityPredicate) -> EligibilityPredicate:
            return self.register(record_type, fn)

        return decorator

    def predicates_for(self, record_type: TypeName) -> list[EligibilityPredicate]:
        return list(self._predicates.get(record_type, ()))

    def is_indexable(self, record: CandidateRecord) -> bool:
        """AND of every predicate for the record's type.

        A predicate that raises makes the record ineligible for this run.
        """
        for predicate in self._predicates.get(record.type, ()):
            try:
                if not predicate(record):
                    return False
            except Exception as e:
                logger.warning(
                    "eligibility.predicate_failed",
                    record_type=record.type,
                    record_id=record.id,
                    predicate=getattr(predicate, "__name__", repr(predicate)),
                    error=str(e),
                )
                return False
        return True


__all__ = [
    "EligibilityPredicate",
    "EligibilityRegistry",
]
