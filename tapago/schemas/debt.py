from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from tapago.schemas.user import UserProfile
from tapago.utils.money import MAX_AMOUNT


class DebtCreate(BaseModel):
    """Request body to create a debt owed to the current user."""
    debtor_id: str
    amount: Decimal = Field(..., lt=MAX_AMOUNT)
    description: str = Field(..., max_length=200)


class DebtCreatedResponse(BaseModel):
    debt_id: str


class DebtResponse(BaseModel):
    id: str
    creditor_id: str
    debtor_id: str
    amount: Decimal
    description: str
    paid: bool
    created_at: datetime
    updated_at: datetime


class LedgerEntryResponse(DebtResponse):
    """Unpaid debt with the other party's profile attached."""
    counterparty: Optional[UserProfile] = None


class UserTotalsResponse(BaseModel):
    total_to_receive: Decimal
    total_to_pay: Decimal


class LedgerSummaryResponse(BaseModel):
    receivable: List[LedgerEntryResponse]
    payable: List[LedgerEntryResponse]
    totals: UserTotalsResponse
    reconciled: bool


class MarkPaidResponse(BaseModel):
    debt_id: str
    paid: bool = True
    already_paid: bool = False
