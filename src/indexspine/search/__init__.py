"""Remote search service implementations of :class:`~indexspine.core.protocols.SearchService`.

    memory.py     InMemorySearchService (dicts, injectable failures)
    algolia.py    AlgoliaSearchService (httpx REST client)
"""

from indexspine.search.algolia import AlgoliaSearchService
from indexspine.search.memory import InMemorySearchService

__all__ = [
    "AlgoliaSearchService",
    "InMemorySearchService",
]
