"""
indexspine — bulk reindexing of content records into remote search indexes.

Walks configured indexes, enumerates candidate records from a content
store, exports eligible ones into bounded batches and commits them to a
remote search service (Algolia or in-memory), reporting a summary per
index.

Packages:
    core        errors, result envelope, models, protocols, settings, logging
    records     content store implementations (in-memory, SQLAlchemy)
    indexing    orchestrator, eligibility, batching, commits, pacing
    search      search service implementations (Algolia REST, in-memory)
    cli         typer command-line interface
"""

__version__ = "0.1.0"
