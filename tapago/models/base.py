from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Dict

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, Field, ConfigDict

from tapago.utils.money import to_decimal, to_decimal128


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_document_id() -> str:
    """Opaque id for documents the service creates itself (debts)."""
    return str(ObjectId())


# Amounts are stored as Decimal128 and read back as 2-place Decimals
Money = Annotated[Decimal, BeforeValidator(to_decimal)]


def encode_document(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Convert Python values the BSON encoder does not accept."""
    return {
        key: to_decimal128(value) if isinstance(value, Decimal) else value
        for key, value in fields.items()
    }


class MongoModel(BaseModel):
    id: str = Field(alias="_id")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )

    def to_document(self) -> Dict[str, Any]:
        return encode_document(self.model_dump(by_alias=True))
