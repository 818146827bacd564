"""
Debt model - a one-directional obligation from debtor to creditor.

Invariants:
- creditor_id != debtor_id
- amount > 0, two decimal places
- description is non-empty
- paid goes False -> True exactly once; nothing else changes after creation
"""

from typing import Any, Dict

from pydantic import BaseModel, Field, ConfigDict

from tapago.models.base import MongoModel, Money, utcnow


class Debt(MongoModel):
    creditor_id: str = Field(alias="creditorId")
    debtor_id: str = Field(alias="debtorId")
    amount: Money
    description: str
    paid: bool = False


class DebtPaidUpdate(BaseModel):
    """The only mutation a debt ever receives."""

    model_config = ConfigDict(frozen=True)

    def to_fields(self) -> Dict[str, Any]:
        return {"paid": True, "updatedAt": utcnow()}
