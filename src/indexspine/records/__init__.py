"""Record store implementations of :class:`~indexspine.core.protocols.RecordRepository`.

    memory.py     InMemoryRecordRepository (dicts, small filter language)
    sql.py        SqlRecordRepository (SQLAlchemy 2.0, SQL WHERE fragments)
    orm.py        search_records table, engine and session factories
    filters.py    Filter expression parser used by the in-memory store

The SQL implementation is imported lazily so the in-memory store works
without touching SQLAlchemy.
"""

from indexspine.records.memory import InMemoryCandidateSet, InMemoryRecordRepository

__all__ = [
    "InMemoryCandidateSet",
    "InMemoryRecordRepository",
]
