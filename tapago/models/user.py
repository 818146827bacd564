"""
User model - profile, friend list and the ledger's running totals.

Field ownership:
- friends is written only by the friend graph
- totalToReceive / totalToPay are written only by the debt ledger
Every write goes through one of the typed partial updates below, so an
operation can only touch the fields it owns.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict

from tapago.models.base import MongoModel, Money, encode_document, utcnow
from tapago.utils.money import ZERO

USERNAME_PATTERN = r"^[a-zA-Z0-9_]{3,20}$"


class User(MongoModel):
    """User document as stored in the users collection."""
    username: str
    email: str
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    friends: List[str] = Field(default_factory=list)
    total_to_receive: Money = Field(default=ZERO, alias="totalToReceive")
    total_to_pay: Money = Field(default=ZERO, alias="totalToPay")


class UserTotals(BaseModel):
    """Pair of derived totals returned by reconciliation."""
    total_to_receive: Decimal
    total_to_pay: Decimal


class UserFieldsUpdate(BaseModel):
    """Base for partial user updates. Unset fields are left untouched."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    def to_fields(self) -> Dict[str, Any]:
        fields = self.model_dump(by_alias=True, exclude_none=True)
        fields["updatedAt"] = utcnow()
        return encode_document(fields)


class UserTotalsUpdate(UserFieldsUpdate):
    total_to_receive: Optional[Decimal] = Field(default=None, alias="totalToReceive")
    total_to_pay: Optional[Decimal] = Field(default=None, alias="totalToPay")


class UserFriendsUpdate(UserFieldsUpdate):
    friends: List[str]


class Credential(BaseModel):
    """Login secret, stored apart from the user profile."""
    id: str = Field(alias="_id")
    email: str
    password_hash: str = Field(alias="passwordHash")

    model_config = ConfigDict(populate_by_name=True)
