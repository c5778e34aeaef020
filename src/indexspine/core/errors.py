"""
Structured error types for indexspine.

Provides a typed hierarchy of errors carrying the metadata a bulk reindex
needs for logging and reporting: what kind of failure it was, whether the
operation could succeed if attempted again, and which index, record type
or record it concerns.

Manifesto:
    A bulk reindex touches three external systems (the record store, the
    attribute exporter and the remote search service) and must keep going
    when any one record or batch misbehaves. Plain exceptions lose the
    context needed to produce a useful run summary, so every failure the
    engine captures is an IndexSpineError subclass that knows:

    - **Category:** which collaborator failed (repository, export, search)
    - **Retryable:** whether trying again later has a chance of succeeding
    - **Context:** index name, record type, record id, URL, HTTP status
    - **Cause:** the original exception, chained for root cause analysis

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     IndexSpineError                          │
        │        (category, retryable, context, cause)                 │
        ├─────────────────────────────────────────────────────────────┤
        │  ConfigError          RepositoryError     SearchServiceError │
        │  (CONFIG)             (REPOSITORY)        (SEARCH)           │
        │      │                    │                   │              │
        │  MissingConfigError   EnumerationError    RemoteRequestError │
        │  InvalidConfigError   FilterError         CommitError        │
        │  UnknownRecordType                                           │
        │                                                              │
        │  ExportError (EXPORT)                                        │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = CommitError("Upsert rejected").with_context(
    ...     index_name="pages", record_type="Page", batch_size=25
    ... )
    >>> error.context.index_name
    'pages'
    >>> error.retryable
    False

Guardrails:
    ❌ DON'T: Raise bare Exception from a collaborator adapter
    ✅ DO: Raise the matching IndexSpineError subclass with cause=

    ❌ DON'T: Treat an ineligible record as an error
    ✅ DO: Count it as skipped; skips are not exceptions

Tags:
    error-handling, exception-hierarchy, reindex, indexspine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories used for classification in logs and run summaries.

    Attributes:
        CONFIG: Missing or invalid settings and index definitions
        REPOSITORY: Record store enumeration, reload or persistence
        EXPORT: Attribute extraction for a single record
        SEARCH: Remote search service requests and responses
        NETWORK: Transport-level failures talking to a remote service
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    CONFIG = "CONFIG"
    REPOSITORY = "REPOSITORY"
    EXPORT = "EXPORT"
    SEARCH = "SEARCH"
    NETWORK = "NETWORK"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that are set are emitted by ``to_dict()``. Anything that
    doesn't have a dedicated field goes into ``metadata``.

    Attributes:
        index_name: Remote index the failure concerns
        record_type: Record type being processed
        record_id: Identifier of the record in the content store
        url: Remote URL that was being accessed
        http_status: HTTP status code returned by the remote service
        metadata: Additional key-value pairs
    """

    index_name: str | None = None
    record_type: str | None = None
    record_id: int | str | None = None
    url: str | None = None
    http_status: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["index_name", "record_type", "record_id", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class IndexSpineError(Exception):
    """
    Base exception for all indexspine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so callers
    only pass what differs from the defaults.

    Examples:
        >>> try:
        ...     raise ValueError("bad date")
        ... except ValueError as e:
        ...     err = ExportError("Could not export Page #4", cause=e)
        >>> err.to_dict()["cause"]
        'bad date'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> IndexSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise CommitError("Rejected").with_context(
                index_name="pages",
                batch_size=25,
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS (Never Retryable)
# =============================================================================


class ConfigError(IndexSpineError):
    """Missing or invalid configuration."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """Required configuration is absent."""

    def __init__(self, key: str, message: str | None = None):
        super().__init__(message or f"Missing required configuration: {key}")
        self.key = key


class InvalidConfigError(ConfigError):
    """Configuration value failed validation."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")
        self.key = key
        self.value = value


class UnknownRecordTypeError(ConfigError):
    """A record type named in configuration is not known to the repository."""

    def __init__(self, record_type: str):
        super().__init__(
            f"Unknown record type: {record_type}",
            context=ErrorContext(record_type=record_type),
        )
        self.record_type = record_type


# =============================================================================
# REPOSITORY ERRORS
# =============================================================================


class RepositoryError(IndexSpineError):
    """Record store failure (query, reload, persistence)."""

    default_category = ErrorCategory.REPOSITORY
    default_retryable = False


class EnumerationError(RepositoryError):
    """
    Candidate enumeration could not begin.

    This is the only failure that aborts work for a whole index: without
    a candidate set there is nothing to batch.
    """


class FilterError(RepositoryError):
    """A filter expression could not be parsed or applied."""

    def __init__(self, expression: str, message: str | None = None, **kwargs: Any):
        super().__init__(message or f"Invalid filter expression: {expression!r}", **kwargs)
        self.expression = expression


# =============================================================================
# EXPORT ERRORS
# =============================================================================


class ExportError(IndexSpineError):
    """Attribute extraction raised for a single record."""

    default_category = ErrorCategory.EXPORT
    default_retryable = False


# =============================================================================
# SEARCH SERVICE ERRORS
# =============================================================================


class SearchServiceError(IndexSpineError):
    """Remote search service failure."""

    default_category = ErrorCategory.SEARCH
    default_retryable = False


class RemoteRequestError(SearchServiceError):
    """
    HTTP or transport failure talking to the search service.

    Transport errors and 5xx responses are retryable; 4xx responses are not.
    """

    def __init__(
        self,
        message: str,
        *,
        http_status: int | None = None,
        url: str | None = None,
        cause: Exception | None = None,
    ):
        retryable = http_status is None or http_status >= 500
        super().__init__(
            message,
            category=ErrorCategory.NETWORK if http_status is None else ErrorCategory.SEARCH,
            retryable=retryable,
            context=ErrorContext(url=url, http_status=http_status),
            cause=cause,
        )


class CommitError(SearchServiceError):
    """The remote service rejected a batch or returned an invalid/incomplete result."""


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, IndexSpineError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "IndexSpineError",
    # Config
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "UnknownRecordTypeError",
    # Repository
    "RepositoryError",
    "EnumerationError",
    "FilterError",
    # Export
    "ExportError",
    # Search
    "SearchServiceError",
    "RemoteRequestError",
    "CommitError",
    # Utilities
    "is_retryable",
]
