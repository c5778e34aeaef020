"""Declarative base, record table and engine factory for the SQL record store.

Uses SQLAlchemy 2.0 ``DeclarativeBase`` with a ``type_annotation_map``
that maps Python built-in types to portable SA column types.

Every indexable record lives in ``search_records``, keyed by
``(record_type, id)``. Domain fields are kept in the ``attributes`` JSON
column; the columns the reindex engine reads and writes are first-class
so filter expressions can reference them directly::

    last_indexed_at IS NULL AND tenant_id = 'acme'

Tags:
    orm, sqlalchemy, session, engine, indexspine

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, Text, event
from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker


class IndexSpineBase(DeclarativeBase):
    """Shared declarative base for indexspine tables.

    * ``str``   → ``Text``
    * ``int``   → ``Integer``
    * ``datetime.datetime`` → ``DateTime``
    * ``dict``  → ``JSON``
    """

    type_annotation_map = {
        str: Text,
        int: Integer,
        datetime.datetime: DateTime(timezone=True),
        dict: JSON,
    }


class SearchRecordTable(IndexSpineBase):
    __tablename__ = "search_records"

    record_type: Mapped[str] = mapped_column(Text, primary_key=True)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    external_id: Mapped[str | None] = mapped_column(Text, unique=True)
    last_indexed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True))
    stage: Mapped[str | None] = mapped_column(Text)
    tenant_id: Mapped[str | None] = mapped_column(Text)
    attributes: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)


def create_record_engine(
    url: str = "sqlite:///indexspine.db",
    *,
    echo: bool = False,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql://…``, etc.)
    echo:
        If ``True``, log all SQL.
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return _sa_create_engine(url, echo=echo, **kwargs)


def create_schema(engine: Engine) -> None:
    """Create the record table if it doesn't exist."""
    IndexSpineBase.metadata.create_all(engine)


def record_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a ``sessionmaker`` bound to *engine* with ``expire_on_commit=False``."""
    return sessionmaker(bind=engine, expire_on_commit=False)


__all__ = [
    "IndexSpineBase",
    "SearchRecordTable",
    "create_record_engine",
    "create_schema",
    "record_session_factory",
]
