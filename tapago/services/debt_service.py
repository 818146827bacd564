"""
DebtService - the debt ledger.

Each user carries two cached totals: totalToReceive (sum of unpaid debts
where they are creditor) and totalToPay (sum where they are debtor).
create_debt and mark_debt_as_paid keep them in step with the debts inside
the same store transaction as the debt write; update_user_totals recomputes
them from the debts to repair drift.
"""

import asyncio
import logging
from typing import Any, List, Optional

from tapago.core.config import settings
from tapago.core.exceptions import AlreadyPaidError, InvalidArgumentError, TaPagoError
from tapago.db.store import DocumentStore, Transaction, TransactionBody, run_in_transaction
from tapago.models.base import new_document_id, utcnow
from tapago.models.debt import Debt
from tapago.models.user import UserTotals, UserTotalsUpdate
from tapago.repositories.debt_repo import DebtRepository
from tapago.repositories.user_repo import UserRepository
from tapago.schemas.debt import (
    DebtResponse,
    LedgerEntryResponse,
    LedgerSummaryResponse,
    UserTotalsResponse,
)
from tapago.schemas.user import UserProfile
from tapago.services.friend_service import FriendService
from tapago.utils.money import parse_amount, sum_money

logger = logging.getLogger(__name__)


class DebtService:

    def __init__(
        self,
        store: DocumentStore,
        max_attempts: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
        require_friendship: Optional[bool] = None,
    ):
        self.store = store
        self.users = UserRepository(store)
        self.debts = DebtRepository(store)
        self.max_attempts = max_attempts if max_attempts is not None else settings.TRANSACTION_MAX_ATTEMPTS
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else settings.TRANSACTION_RETRY_BASE_DELAY
        )
        self.require_friendship = (
            require_friendship if require_friendship is not None else settings.REQUIRE_FRIENDSHIP_FOR_DEBT
        )

    async def _run(self, body: TransactionBody) -> Any:
        return await run_in_transaction(self.store, body, self.max_attempts, self.retry_base_delay)

    async def create_debt(self, creditor_id: str, debtor_id: str, amount: Any, description: str) -> str:
        """
        Record that debtor owes creditor `amount`.

        The debt insert and both total increments commit together or not at all.

        Returns:
            The new debt's id

        Raises:
            InvalidArgumentError: self-debt, non-positive amount, blank description,
                or (when friendship is required) the parties are not friends
            NotFoundError: either user does not exist
            ConflictError: still contended after every retry
        """
        amount = parse_amount(amount)
        if not creditor_id or not debtor_id:
            raise InvalidArgumentError("Creditor and debtor are required")
        if creditor_id == debtor_id:
            raise InvalidArgumentError("A user cannot owe themselves")
        if not isinstance(description, str) or not description.strip():
            raise InvalidArgumentError("Description must not be empty")
        description = description.strip()

        debt_id = new_document_id()

        async def body(tx: Transaction) -> None:
            # All reads before any write
            creditor = await self.users.get_user_in(tx, creditor_id)
            debtor = await self.users.get_user_in(tx, debtor_id)

            if self.require_friendship and not FriendService.are_friends(creditor, debtor):
                raise InvalidArgumentError("Debts can only be created between friends")

            now = utcnow()
            debt = Debt(
                id=debt_id,
                creditor_id=creditor_id,
                debtor_id=debtor_id,
                amount=amount,
                description=description,
                paid=False,
                created_at=now,
                updated_at=now
            )
            await self.debts.insert_debt_in(tx, debt)
            await self.users.update_user_fields(
                tx, creditor_id, UserTotalsUpdate(total_to_receive=creditor.total_to_receive + amount)
            )
            await self.users.update_user_fields(
                tx, debtor_id, UserTotalsUpdate(total_to_pay=debtor.total_to_pay + amount)
            )

        await self._run(body)
        logger.info(f"Debt {debt_id} created: {debtor_id} owes {creditor_id} {amount}")
        return debt_id

    async def get_debt(self, debt_id: str) -> Debt:
        return await self.debts.get_debt(debt_id)

    async def get_debts_as_creditor(self, user_id: str) -> List[Debt]:
        """Unpaid debts owed to user_id. Order is not defined."""
        return await self.debts.list_unpaid_as_creditor(user_id)

    async def get_debts_as_debtor(self, user_id: str) -> List[Debt]:
        """Unpaid debts owed by user_id. Order is not defined."""
        return await self.debts.list_unpaid_as_debtor(user_id)

    async def mark_debt_as_paid(self, debt_id: str) -> Debt:
        """
        Flip a debt to paid and take its amount off both parties' totals.

        Totals are not clamped at zero; a total that goes negative means the
        cached value had drifted and is logged so it can be reconciled.

        Raises:
            NotFoundError: the debt (or one of its parties) does not exist
            AlreadyPaidError: the debt was already paid; nothing was changed
            ConflictError: still contended after every retry
        """
        async def body(tx: Transaction) -> tuple:
            debt = await self.debts.get_debt_in(tx, debt_id)
            if debt.paid:
                raise AlreadyPaidError(debt_id)

            creditor = await self.users.get_user_in(tx, debt.creditor_id)
            debtor = await self.users.get_user_in(tx, debt.debtor_id)
            to_receive = creditor.total_to_receive - debt.amount
            to_pay = debtor.total_to_pay - debt.amount

            await self.debts.mark_paid_in(tx, debt_id)
            await self.users.update_user_fields(
                tx, debt.creditor_id, UserTotalsUpdate(total_to_receive=to_receive)
            )
            await self.users.update_user_fields(
                tx, debt.debtor_id, UserTotalsUpdate(total_to_pay=to_pay)
            )
            return debt, to_receive, to_pay

        try:
            debt, to_receive, to_pay = await self._run(body)
        except AlreadyPaidError:
            logger.info(f"Debt {debt_id} was already paid")
            raise

        if to_receive < 0:
            logger.warning(f"User {debt.creditor_id} totalToReceive went negative ({to_receive})")
        if to_pay < 0:
            logger.warning(f"User {debt.debtor_id} totalToPay went negative ({to_pay})")

        logger.info(f"Debt {debt_id} paid: {debt.debtor_id} -> {debt.creditor_id} {debt.amount}")
        debt.paid = True
        return debt

    async def update_user_totals(self, user_id: str) -> UserTotals:
        """
        Recompute both totals from the unpaid debts and store them.

        Runs outside a transaction. The user document is only written when the
        stored totals differ from the recomputed ones, so a repeated call with
        no debt changes in between writes nothing.

        Raises:
            NotFoundError: the user does not exist
        """
        user = await self.users.get_user(user_id)
        as_creditor, as_debtor = await asyncio.gather(
            self.get_debts_as_creditor(user_id),
            self.get_debts_as_debtor(user_id)
        )
        totals = UserTotals(
            total_to_receive=sum_money(debt.amount for debt in as_creditor),
            total_to_pay=sum_money(debt.amount for debt in as_debtor)
        )

        if (user.total_to_receive, user.total_to_pay) != (totals.total_to_receive, totals.total_to_pay):
            logger.warning(
                f"Reconciling totals for user {user_id}: "
                f"toReceive {user.total_to_receive} -> {totals.total_to_receive}, "
                f"toPay {user.total_to_pay} -> {totals.total_to_pay}"
            )
            await self.users.overwrite_user_fields(
                user_id,
                UserTotalsUpdate(
                    total_to_receive=totals.total_to_receive,
                    total_to_pay=totals.total_to_pay
                )
            )
        return totals

    async def get_ledger_summary(self, user_id: str) -> LedgerSummaryResponse:
        """
        Both unpaid-debt lists with counterparty profiles, plus reconciled totals.

        Not read-only: reconciliation rewrites the user's stored totals when they
        have drifted, so GET /debts/summary can write the user document.
        A failed reconciliation is logged and the cached totals are returned.
        """
        user = await self.users.get_user(user_id)
        receivable, payable = await asyncio.gather(
            self.get_debts_as_creditor(user_id),
            self.get_debts_as_debtor(user_id)
        )

        party_ids = {debt.debtor_id for debt in receivable} | {debt.creditor_id for debt in payable}
        profiles = {
            party.id: UserProfile.from_user(party)
            for party in await self.users.list_users(party_ids)
        }

        reconciled = True
        try:
            totals = await self.update_user_totals(user_id)
        except TaPagoError as exc:
            logger.warning(f"Could not reconcile totals for user {user_id}: {exc.message}")
            reconciled = False
            totals = UserTotals(total_to_receive=user.total_to_receive, total_to_pay=user.total_to_pay)

        return LedgerSummaryResponse(
            receivable=[
                _ledger_entry(debt, profiles.get(debt.debtor_id)) for debt in receivable
            ],
            payable=[
                _ledger_entry(debt, profiles.get(debt.creditor_id)) for debt in payable
            ],
            totals=UserTotalsResponse(**totals.model_dump()),
            reconciled=reconciled
        )


def debt_response(debt: Debt) -> DebtResponse:
    return DebtResponse(**debt.model_dump())


def _ledger_entry(debt: Debt, counterparty: Optional[UserProfile]) -> LedgerEntryResponse:
    return LedgerEntryResponse(**debt.model_dump(), counterparty=counterparty)
