"""indexspine.core -- types, errors and cross-cutting concerns.

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (IndexSpineError, CommitError)
        result.py          Result[T] envelope (Ok / Err / try_result)
        models.py          IndexDescriptor, ReindexRequest, Batch, RunSummary
        protocols.py       RecordRepository, AttributeExporter, SearchService
        timestamps.py      UTC helpers (stdlib-only)

    Layer 2 -- Cross-Cutting Concerns
        logging.py         Structured logging (structlog)
        settings.py        IndexSpineSettings (pydantic-settings)
        config.py          YAML index definitions (pydantic + PyYAML)
"""

from indexspine.core.errors import (
    CommitError,
    ConfigError,
    EnumerationError,
    ErrorCategory,
    ErrorContext,
    ExportError,
    FilterError,
    IndexSpineError,
    InvalidConfigError,
    MissingConfigError,
    RemoteRequestError,
    RepositoryError,
    SearchServiceError,
    UnknownRecordTypeError,
)
from indexspine.core.models import (
    DEFAULT_BATCH_SIZE,
    LIVE_STAGE,
    UNINDEXED_FILTER,
    Batch,
    CandidateRecord,
    IndexDescriptor,
    ReindexRequest,
    RunSummary,
    RunSummaryBuilder,
    UpsertResponse,
)
from indexspine.core.protocols import (
    AttributeExporter,
    CandidateSet,
    RecordRepository,
    SearchService,
)
from indexspine.core.result import Err, Ok, Result, try_result

__all__ = [
    # errors
    "IndexSpineError",
    "ErrorCategory",
    "ErrorContext",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "UnknownRecordTypeError",
    "RepositoryError",
    "EnumerationError",
    "FilterError",
    "ExportError",
    "SearchServiceError",
    "RemoteRequestError",
    "CommitError",
    # models
    "DEFAULT_BATCH_SIZE",
    "LIVE_STAGE",
    "UNINDEXED_FILTER",
    "Batch",
    "CandidateRecord",
    "IndexDescriptor",
    "ReindexRequest",
    "RunSummary",
    "RunSummaryBuilder",
    "UpsertResponse",
    # protocols
    "AttributeExporter",
    "CandidateSet",
    "RecordRepository",
    "SearchService",
    # result
    "Ok",
    "Err",
    "Result",
    "try_result",
]
