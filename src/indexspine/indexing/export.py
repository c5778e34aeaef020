"""
Default attribute exporter.

Flattens a record into the attribute map sent to the search service::

    {
        "objectID": "3f0c…",            # external identifier
        "objectClassName": "Page",
        "objectRecordID": 42,
        "title": "About us",            # record attributes
        "last_edited": "2026-01-02T…",  # datetimes as ISO 8601
    }

Applications with richer needs implement
:class:`~indexspine.core.protocols.AttributeExporter` themselves.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from indexspine.core.errors import ExportError
from indexspine.core.models import AttributeMap, CandidateRecord

_RESERVED = ("objectID", "objectClassName", "objectRecordID")


def _export_value(value: Any, path: str) -> Any:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _export_value(v, f"{path}.{k}") for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_export_value(v, f"{path}[]") for v in value]
    raise TypeError(f"attribute {path!r} has unsupported type {type(value).__name__}")


class RecordAttributeExporter:
    """Exports record attributes, optionally restricted to ``fields``."""

    def __init__(self, fields: Iterable[str] | None = None) -> None:
        self.fields = list(fields) if fields is not None else None

    def export(self, record: CandidateRecord) -> AttributeMap:
        if record.external_id is None:
            raise ExportError(
                f"{record.type} #{record.id} has no external id"
            ).with_context(record_type=record.type, record_id=record.id)

        names = self.fields if self.fields is not None else list(record.attributes)
        data: AttributeMap = {
            "objectID": str(record.external_id),
            "objectClassName": record.type,
            "objectRecordID": record.id,
        }
        for name in names:
            if name in _RESERVED:
                continue
            try:
                data[name] = _export_value(record.attributes.get(name), name)
            except TypeError as e:
                raise ExportError(
                    f"Cannot export {record.type} #{record.id}: {e}", cause=e
                ).with_context(record_type=record.type, record_id=record.id) from e
        return data


__all__ = [
    "RecordAttributeExporter",
]
