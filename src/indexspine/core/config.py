"""
Index definitions loaded from YAML.

The configuration file names every remote index, the record types that
populate it, optional per-type include filters, and optional per-type
default filters applied when the caller gives no explicit filter::

    indexes:
      pages:
        include_types: [Page, NewsArticle]
        include_filters:
          NewsArticle: "show_in_search = 1"
      products:
        include_types: [Product]

    default_filters:
      Page: "expired = 0"

Validation uses pydantic; any problem surfaces as a ConfigError so the CLI
can report it before touching the content store.

Tags:
    configuration, yaml, pydantic, index-definitions, indexspine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from indexspine.core.errors import InvalidConfigError, MissingConfigError
from indexspine.core.models import IndexDescriptor


class IndexDefinition(BaseModel):
    """One remote index as written in the configuration file."""

    model_config = ConfigDict(extra="forbid")

    include_types: list[str] = Field(default_factory=list)
    include_filters: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _filters_reference_included_types(self) -> IndexDefinition:
        unknown = sorted(set(self.include_filters) - set(self.include_types))
        if unknown:
            raise ValueError(f"include_filters name types not in include_types: {unknown}")
        if len(set(self.include_types)) != len(self.include_types):
            raise ValueError("include_types contains duplicates")
        return self


class ReindexConfig(BaseModel):
    """Whole configuration file."""

    model_config = ConfigDict(extra="forbid")

    indexes: dict[str, IndexDefinition] = Field(default_factory=dict)
    default_filters: dict[str, str] = Field(default_factory=dict)

    def descriptors(self) -> list[IndexDescriptor]:
        """Index descriptors in file order."""
        return [
            IndexDescriptor(
                name=name,
                included_types=tuple(definition.include_types),
                include_filters=dict(definition.include_filters),
            )
            for name, definition in self.indexes.items()
        ]

    @property
    def record_types(self) -> list[str]:
        """Every record type referenced by any index, first occurrence order."""
        seen: dict[str, None] = {}
        for definition in self.indexes.values():
            for record_type in definition.include_types:
                seen.setdefault(record_type, None)
        return list(seen)


def parse_reindex_config(data: dict[str, Any] | None, *, source: str = "<config>") -> ReindexConfig:
    """Validate already-loaded configuration data."""
    try:
        return ReindexConfig.model_validate(data or {})
    except ValidationError as e:
        raise InvalidConfigError(source, data, message=f"Invalid reindex configuration in {source}: {e}") from e


def load_reindex_config(path: Path | str) -> ReindexConfig:
    """Read and validate a YAML configuration file.

    Raises:
        MissingConfigError: the file doesn't exist.
        InvalidConfigError: the file isn't valid YAML or fails validation.
    """
    path = Path(path)
    if not path.is_file():
        raise MissingConfigError(str(path), f"Reindex configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise InvalidConfigError(str(path), None, message=f"Malformed YAML in {path}: {e}") from e

    if data is not None and not isinstance(data, dict):
        raise InvalidConfigError(str(path), data, message=f"{path} must contain a mapping")

    return parse_reindex_config(data, source=str(path))


__all__ = [
    "IndexDefinition",
    "ReindexConfig",
    "parse_reindex_config",
    "load_reindex_config",
]
