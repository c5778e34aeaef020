"""Tests for indexspine.core.config — YAML index definitions."""

import pytest

from indexspine.core.config import load_reindex_config, parse_reindex_config
from indexspine.core.errors import InvalidConfigError, MissingConfigError
from indexspine.core.models import IndexDescriptor

VALID_YAML = """
indexes:
  pages:
    include_types: [Page, NewsArticle]
    include_filters:
      NewsArticle: "show_in_search = TRUE"
  products:
    include_types: [Product, Page]

default_filters:
  Page: "expired = FALSE"
"""


class TestLoadReindexConfig:
    """Reading the YAML file."""

    def test_valid_file(self, tmp_path):
        path = tmp_path / "indexspine.yaml"
        path.write_text(VALID_YAML, encoding="utf-8")
        config = load_reindex_config(path)
        assert list(config.indexes) == ["pages", "products"]
        assert config.default_filters == {"Page": "expired = FALSE"}

    def test_descriptors_keep_file_order(self, tmp_path):
        path = tmp_path / "indexspine.yaml"
        path.write_text(VALID_YAML, encoding="utf-8")
        descriptors = load_reindex_config(path).descriptors()
        assert descriptors[0] == IndexDescriptor(
            name="pages",
            included_types=("Page", "NewsArticle"),
            include_filters={"NewsArticle": "show_in_search = TRUE"},
        )
        assert descriptors[1].included_types == ("Product", "Page")

    def test_record_types_deduplicated(self, tmp_path):
        path = tmp_path / "indexspine.yaml"
        path.write_text(VALID_YAML, encoding="utf-8")
        assert load_reindex_config(path).record_types == ["Page", "NewsArticle", "Product"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(MissingConfigError):
            load_reindex_config(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("indexes: [unclosed", encoding="utf-8")
        with pytest.raises(InvalidConfigError, match="Malformed YAML"):
            load_reindex_config(path)

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- pages\n- products\n", encoding="utf-8")
        with pytest.raises(InvalidConfigError, match="mapping"):
            load_reindex_config(path)

    def test_empty_file_is_empty_config(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        config = load_reindex_config(path)
        assert config.indexes == {}
        assert config.descriptors() == []


class TestParseReindexConfig:
    """Model validation."""

    def test_include_filter_for_unknown_type(self):
        data = {"indexes": {"pages": {"include_types": ["Page"], "include_filters": {"News": "x = 1"}}}}
        with pytest.raises(InvalidConfigError, match="include_filters"):
            parse_reindex_config(data)

    def test_duplicate_types(self):
        with pytest.raises(InvalidConfigError):
            parse_reindex_config({"indexes": {"pages": {"include_types": ["Page", "Page"]}}})

    def test_unknown_keys_rejected(self):
        with pytest.raises(InvalidConfigError):
            parse_reindex_config({"indexes": {"pages": {"include_classes": ["Page"]}}})

    def test_none_is_empty(self):
        assert parse_reindex_config(None).indexes == {}
