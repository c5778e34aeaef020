"""Tests for indexspine.indexing.export — RecordAttributeExporter."""

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from indexspine.core.errors import ExportError
from indexspine.core.protocols import AttributeExporter
from indexspine.indexing.export import RecordAttributeExporter

EXTERNAL = uuid.UUID("12345678-1234-5678-1234-567812345678")


class TestExport:
    """Attribute maps."""

    def test_conforms_to_protocol(self):
        assert isinstance(RecordAttributeExporter(), AttributeExporter)

    def test_identity_fields(self, record_factory):
        record = record_factory("Page", 42, external_id=EXTERNAL, attributes={"title": "About"})
        assert RecordAttributeExporter().export(record) == {
            "objectID": str(EXTERNAL),
            "objectClassName": "Page",
            "objectRecordID": 42,
            "title": "About",
        }

    def test_values_are_json_friendly(self, record_factory):
        record = record_factory(
            "Page",
            1,
            external_id=EXTERNAL,
            attributes={
                "edited": datetime(2026, 1, 2, 3, 4, tzinfo=UTC),
                "published": date(2026, 1, 1),
                "price": Decimal("9.90"),
                "owner": EXTERNAL,
                "tags": ("a", "b"),
                "meta": {"depth": 2, "seen": [date(2026, 1, 3)]},
            },
        )
        data = RecordAttributeExporter().export(record)
        assert data["edited"] == "2026-01-02T03:04:00+00:00"
        assert data["published"] == "2026-01-01"
        assert data["price"] == "9.90"
        assert data["owner"] == str(EXTERNAL)
        assert data["tags"] == ["a", "b"]
        assert data["meta"] == {"depth": 2, "seen": ["2026-01-03"]}

    def test_reserved_attributes_cannot_override_identity(self, record_factory):
        record = record_factory("Page", 1, external_id=EXTERNAL, attributes={"objectID": "spoof"})
        assert RecordAttributeExporter().export(record)["objectID"] == str(EXTERNAL)

    def test_field_selection(self, record_factory):
        record = record_factory("Page", 1, external_id=EXTERNAL, attributes={"title": "x", "body": "y"})
        data = RecordAttributeExporter(fields=["title", "missing"]).export(record)
        assert data["title"] == "x"
        assert data["missing"] is None
        assert "body" not in data


class TestExportErrors:
    def test_missing_external_id(self, record_factory):
        with pytest.raises(ExportError, match="no external id"):
            RecordAttributeExporter().export(record_factory("Page", 1))

    def test_unsupported_value(self, record_factory):
        record = record_factory("Page", 7, external_id=EXTERNAL, attributes={"blob": object()})
        with pytest.raises(ExportError) as exc_info:
            RecordAttributeExporter().export(record)
        assert exc_info.value.context.record_id == 7
        assert "blob" in exc_info.value.message
