"""
Document and product records exchanged with the CRPT API.

Internal field names differ from the wire names; dates travel as
``yyyy-MM-dd`` strings.
"""

import json
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic import ValidationError as PydanticValidationError

from shared.errors import DocumentDecodeError

WIRE_DATE_FORMAT = "%Y-%m-%d"


def _parse_wire_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and value:
        try:
            return datetime.strptime(value, WIRE_DATE_FORMAT).date()
        except ValueError as e:
            raise ValueError(f"date must be formatted as yyyy-MM-dd, got {value!r}") from e
    return value


def _format_wire_date(value: Optional[date]) -> Optional[str]:
    return value.strftime(WIRE_DATE_FORMAT) if value is not None else None


class WireModel(BaseModel):
    """Base for records serialized under their wire aliases."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to a JSON-ready dict keyed by wire names."""
        return self.model_dump(by_alias=True, mode="json")


class Product(WireModel):
    """One product line of a document."""

    certificate_document: Optional[str] = Field(default=None, alias="certificate_document")
    certificate_document_date: Optional[date] = Field(default=None, alias="certificate_document_date")
    certificate_document_number: Optional[str] = Field(default=None, alias="certificate_document_number")
    owner_tax_id: Optional[str] = Field(default=None, alias="owner_inn")
    producer_tax_id: Optional[str] = Field(default=None, alias="producer_inn")
    production_date: Optional[date] = Field(default=None, alias="production_date")
    tnved_code: Optional[str] = Field(default=None, alias="tnved_code")
    uit_code: Optional[str] = Field(default=None, alias="uit_code")
    uitu_code: Optional[str] = Field(default=None, alias="uitu_code")

    @field_validator("certificate_document_date", "production_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Any:
        return _parse_wire_date(v)

    @field_serializer("certificate_document_date", "production_date")
    def serialize_dates(self, v: Optional[date]) -> Optional[str]:
        return _format_wire_date(v)


class Document(WireModel):
    """Document introducing goods produced in the Russian Federation into circulation."""

    participant_tax_id: Optional[str] = Field(default=None, alias="participant_inn")
    doc_id: Optional[str] = Field(default=None, alias="doc_id")
    doc_status: Optional[str] = Field(default=None, alias="doc_status")
    doc_type: Optional[str] = Field(default=None, alias="doc_type")
    import_request: bool = Field(default=False, alias="import_request")
    owner_tax_id: Optional[str] = Field(default=None, alias="owner_inn")
    producer_tax_id: Optional[str] = Field(default=None, alias="producer_inn")
    production_date: Optional[date] = Field(default=None, alias="production_date")
    production_type: Optional[str] = Field(default=None, alias="production_type")
    products: List[Product] = Field(default_factory=list, alias="products")
    reg_date: Optional[date] = Field(default=None, alias="reg_date")
    reg_number: Optional[str] = Field(default=None, alias="reg_number")

    @field_validator("production_date", "reg_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Any:
        return _parse_wire_date(v)

    @field_validator("products", mode="before")
    @classmethod
    def null_products(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_serializer("production_date", "reg_date")
    def serialize_dates(self, v: Optional[date]) -> Optional[str]:
        return _format_wire_date(v)

    def to_json(self) -> str:
        """Serialize to a JSON string keyed by wire names."""
        return json.dumps(self.to_wire(), ensure_ascii=False)

    @classmethod
    def from_wire(cls, payload: Any) -> "Document":
        """Decode a wire payload (dict, JSON string or bytes) into a Document."""
        try:
            if isinstance(payload, (str, bytes, bytearray)):
                return cls.model_validate_json(payload)
            return cls.model_validate(payload)
        except PydanticValidationError as e:
            raise DocumentDecodeError(
                details={"errors": e.errors(include_url=False, include_context=False, include_input=False)}
            ) from e
