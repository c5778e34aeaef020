"""
In-memory search service.

Keeps one dict of objects per index, keyed by ``objectID``. Used by the
``memory`` search backend and throughout the test suite. Failures can be
injected per index to exercise the engine's failure isolation.

Examples:
    >>> service = InMemorySearchService()
    >>> response = service.upsert("pages", [{"objectID": "a", "title": "Home"}])
    >>> response.object_ids
    ('a',)
    >>> service.count("pages")
    1
"""

from __future__ import annotations

import itertools
import threading
import uuid
from collections.abc import Callable, Sequence

from indexspine.core.errors import RemoteRequestError
from indexspine.core.models import AttributeMap, UpsertResponse

FailurePredicate = Callable[[str, Sequence[AttributeMap]], bool]


class InMemorySearchService:
    """A SearchService backed by dicts.

    Args:
        fail_on: Called as ``fail_on(index_name, items)`` before every
            upsert; a true result makes the upsert raise
            :class:`RemoteRequestError` with status 503.
    """

    def __init__(self, fail_on: FailurePredicate | None = None) -> None:
        self.fail_on = fail_on
        self.indexes: dict[str, dict[str, AttributeMap]] = {}
        self.requests: list[tuple[str, int]] = []
        self._task_ids = itertools.count(1)
        self._lock = threading.Lock()

    def clear_index(self, name: str) -> None:
        with self._lock:
            self.indexes[name] = {}

    def upsert(
        self,
        name: str,
        items: Sequence[AttributeMap],
        *,
        auto_generate_id_if_absent: bool = True,
    ) -> UpsertResponse:
        if self.fail_on is not None and self.fail_on(name, items):
            raise RemoteRequestError(f"Upsert into {name} rejected", http_status=503)

        with self._lock:
            objects = self.indexes.setdefault(name, {})
            object_ids: list[str] = []
            for item in items:
                object_id = item.get("objectID")
                if not object_id:
                    if not auto_generate_id_if_absent:
                        return UpsertResponse(valid=False, message="item without objectID")
                    object_id = str(uuid.uuid4())
                objects[str(object_id)] = {**item, "objectID": str(object_id)}
                object_ids.append(str(object_id))
            self.requests.append((name, len(items)))
            return UpsertResponse(valid=True, object_ids=tuple(object_ids), task_id=next(self._task_ids))

    def explorer_url(self, name: str) -> str | None:
        return None

    # -- inspection --------------------------------------------------------

    def objects(self, name: str) -> list[AttributeMap]:
        with self._lock:
            return list(self.indexes.get(name, {}).values())

    def count(self, name: str) -> int:
        with self._lock:
            return len(self.indexes.get(name, {}))


__all__ = [
    "InMemorySearchService",
]
