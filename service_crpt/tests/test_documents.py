"""
Unit tests for CRPT document records.
"""

import json
from datetime import date, datetime

import pytest

from service_crpt.app.documents.models import Document, Product
from shared.errors import DocumentDecodeError


class TestDocumentCodec:
    """Test cases for Document wire serialization."""

    @pytest.fixture
    def document(self):
        """Create a populated document."""
        return Document(
            participant_tax_id="7700000001",
            doc_id="doc-1",
            doc_status="DRAFT",
            doc_type="LP_INTRODUCE_GOODS",
            import_request=True,
            owner_tax_id="7700000002",
            producer_tax_id="7700000003",
            production_date=date(2024, 1, 15),
            production_type="OWN_PRODUCTION",
            products=[
                Product(
                    certificate_document="CONFORMITY_CERTIFICATE",
                    certificate_document_date=date(2023, 12, 1),
                    certificate_document_number="CERT-42",
                    owner_tax_id="7700000002",
                    producer_tax_id="7700000003",
                    production_date=date(2024, 1, 10),
                    tnved_code="6401100000",
                    uit_code="010461111111111121",
                    uitu_code=None
                )
            ],
            reg_date=date(2024, 2, 1),
            reg_number="REG-7"
        )

    def test_to_wire_uses_wire_names(self, document):
        """Test that serialization uses the API field names."""
        wire = document.to_wire()

        assert wire["participant_inn"] == "7700000001"
        assert wire["owner_inn"] == "7700000002"
        assert wire["producer_inn"] == "7700000003"
        assert wire["import_request"] is True
        assert "participant_tax_id" not in wire
        assert set(wire) == {
            "participant_inn", "doc_id", "doc_status", "doc_type", "import_request",
            "owner_inn", "producer_inn", "production_date", "production_type",
            "products", "reg_date", "reg_number"
        }

    def test_dates_formatted_as_plain_dates(self, document):
        """Test that dates are sent as yyyy-MM-dd strings."""
        wire = document.to_wire()

        assert wire["production_date"] == "2024-01-15"
        assert wire["reg_date"] == "2024-02-01"
        assert wire["products"][0]["certificate_document_date"] == "2023-12-01"
        assert wire["products"][0]["production_date"] == "2024-01-10"

    def test_product_wire_names(self, document):
        """Test that product fields use the API field names."""
        product = document.to_wire()["products"][0]

        assert product["owner_inn"] == "7700000002"
        assert product["tnved_code"] == "6401100000"
        assert product["uitu_code"] is None
        assert "owner_tax_id" not in product

    def test_unset_fields_sent_as_null(self):
        """Test that every field is present on the wire even when unset."""
        wire = Document().to_wire()

        assert wire["doc_id"] is None
        assert wire["reg_date"] is None
        assert wire["import_request"] is False
        assert wire["products"] == []

    def test_to_json(self, document):
        """Test JSON string serialization."""
        payload = json.loads(document.to_json())

        assert payload["doc_type"] == "LP_INTRODUCE_GOODS"
        assert payload["products"][0]["uit_code"] == "010461111111111121"


class TestDocumentDecoding:
    """Test cases for Document decoding."""

    def test_from_wire_dict(self):
        """Test decoding a payload keyed by wire names."""
        document = Document.from_wire({
            "participant_inn": "7700000001",
            "doc_id": "doc-9",
            "reg_date": "2024-03-05",
            "products": [{"owner_inn": "7700000002", "production_date": "2024-03-01"}]
        })

        assert document.participant_tax_id == "7700000001"
        assert document.reg_date == date(2024, 3, 5)
        assert document.products[0].owner_tax_id == "7700000002"
        assert document.products[0].production_date == date(2024, 3, 1)

    def test_from_wire_json_bytes(self):
        """Test decoding raw JSON bytes."""
        document = Document.from_wire(b'{"doc_id": "doc-3", "doc_status": "CHECKED_OK"}')

        assert document.doc_id == "doc-3"
        assert document.doc_status == "CHECKED_OK"

    def test_unknown_fields_ignored(self):
        """Test that extra response fields are dropped."""
        document = Document.from_wire({"doc_id": "doc-1", "unexpected": 1})

        assert document.doc_id == "doc-1"
        assert "unexpected" not in document.to_wire()

    def test_null_products_become_empty(self):
        """Test that a null product list decodes as empty."""
        assert Document.from_wire({"products": None}).products == []

    def test_datetime_truncated_to_date(self):
        """Test that datetimes are accepted and stored as dates."""
        document = Document(production_date=datetime(2024, 5, 6, 13, 45))

        assert document.production_date == date(2024, 5, 6)
        assert document.to_wire()["production_date"] == "2024-05-06"

    def test_invalid_date_raises_decode_error(self):
        """Test that a badly formatted date is rejected."""
        with pytest.raises(DocumentDecodeError) as exc_info:
            Document.from_wire({"reg_date": "05.03.2024"})

        assert exc_info.value.code == "DOCUMENT_DECODE_ERROR"
        assert exc_info.value.details["errors"]

    def test_invalid_json_raises_decode_error(self):
        """Test that a non-JSON body is rejected."""
        with pytest.raises(DocumentDecodeError):
            Document.from_wire("<html>gateway timeout</html>")
