"""Stable external identifiers for indexed records."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from uuid import UUID

from indexspine.core.logging import get_logger
from indexspine.core.models import CandidateRecord
from indexspine.core.protocols import RecordRepository

logger = get_logger(__name__)


class IdentifierAssigner:
    """Ensures a record carries an external identifier before its first commit.

    An identifier, once set, is returned as-is and never regenerated, so
    calling ``ensure()`` on every run is safe and has no side effects for
    records that were indexed before.
    """

    def __init__(
        self,
        repository: RecordRepository,
        factory: Callable[[], UUID] = uuid.uuid4,
    ) -> None:
        self._repository = repository
        self._factory = factory

    def ensure(self, record: CandidateRecord) -> UUID:
        if record.external_id is not None:
            return record.external_id

        external_id = self._factory()
        self._repository.save_external_id(record, external_id)
        record.external_id = external_id
        logger.debug(
            "identifier.assigned",
            record_type=record.type,
            record_id=record.id,
            external_id=str(external_id),
        )
        return external_id
