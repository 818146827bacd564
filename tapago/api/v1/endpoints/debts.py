from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from tapago.api.deps import get_debt_service
from tapago.core.auth import get_current_user
from tapago.core.exceptions import AlreadyPaidError
from tapago.models.user import User
from tapago.schemas.debt import (
    DebtCreate,
    DebtCreatedResponse,
    DebtResponse,
    LedgerSummaryResponse,
    MarkPaidResponse,
    UserTotalsResponse,
)
from tapago.services.debt_service import DebtService, debt_response

router = APIRouter()

@router.post("", response_model=DebtCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_debt(
    debt_in: DebtCreate,
    current_user: User = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service)
):
    """Charge a friend: debtor_id now owes the current user"""
    debt_id = await service.create_debt(
        current_user.id, debt_in.debtor_id, debt_in.amount, debt_in.description
    )
    return DebtCreatedResponse(debt_id=debt_id)

@router.get("/receivable", response_model=List[DebtResponse])
async def list_receivable(
    current_user: User = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service)
):
    """Unpaid debts owed to the current user"""
    return [debt_response(debt) for debt in await service.get_debts_as_creditor(current_user.id)]

@router.get("/payable", response_model=List[DebtResponse])
async def list_payable(
    current_user: User = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service)
):
    """Unpaid debts the current user owes"""
    return [debt_response(debt) for debt in await service.get_debts_as_debtor(current_user.id)]

@router.get("/summary", response_model=LedgerSummaryResponse)
async def get_summary(
    current_user: User = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service)
):
    """Ledger overview. Repairs the current user's stored totals if they drifted."""
    return await service.get_ledger_summary(current_user.id)

@router.post("/reconcile", response_model=UserTotalsResponse)
async def reconcile_totals(
    current_user: User = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service)
):
    """Recompute the current user's totals from their unpaid debts"""
    totals = await service.update_user_totals(current_user.id)
    return UserTotalsResponse(**totals.model_dump())

@router.get("/{debt_id}", response_model=DebtResponse)
async def get_debt(
    debt_id: str,
    current_user: User = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service)
):
    debt = await service.get_debt(debt_id)
    if current_user.id not in (debt.creditor_id, debt.debtor_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a party to this debt")
    return debt_response(debt)

@router.post("/{debt_id}/pay", response_model=MarkPaidResponse)
async def mark_debt_as_paid(
    debt_id: str,
    current_user: User = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service)
):
    """Mark a debt as paid. Paying an already paid debt is a no-op."""
    debt = await service.get_debt(debt_id)
    if current_user.id not in (debt.creditor_id, debt.debtor_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a party to this debt")

    try:
        await service.mark_debt_as_paid(debt_id)
    except AlreadyPaidError:
        return MarkPaidResponse(debt_id=debt_id, already_paid=True)
    return MarkPaidResponse(debt_id=debt_id)
