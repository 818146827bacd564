"""
DebtRepository - persistence for debts.

Debts are only ever inserted and flipped to paid, both inside the ledger's
transactions. Reads by party always filter on paid == False.
"""

from typing import List

from tapago.core.exceptions import NotFoundError
from tapago.db.store import DocumentStore, Transaction
from tapago.models.debt import Debt, DebtPaidUpdate


class DebtRepository:
    """Repository for debts between two users."""

    collection = "debts"

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_debt(self, debt_id: str) -> Debt:
        doc = await self.store.get(self.collection, debt_id)
        if doc is None:
            raise NotFoundError(f"Debt {debt_id} not found")
        return Debt(**doc)

    async def get_debt_in(self, tx: Transaction, debt_id: str) -> Debt:
        doc = await tx.get(self.collection, debt_id)
        if doc is None:
            raise NotFoundError(f"Debt {debt_id} not found")
        return Debt(**doc)

    async def insert_debt_in(self, tx: Transaction, debt: Debt) -> None:
        await tx.set(self.collection, debt.id, debt.to_document())

    async def mark_paid_in(self, tx: Transaction, debt_id: str) -> None:
        await tx.update(self.collection, debt_id, DebtPaidUpdate().to_fields())

    async def list_unpaid_as_creditor(self, user_id: str) -> List[Debt]:
        """Unpaid debts owed to the user."""
        docs = await self.store.query(self.collection, {"creditorId": user_id, "paid": False})
        return [Debt(**doc) for doc in docs]

    async def list_unpaid_as_debtor(self, user_id: str) -> List[Debt]:
        """Unpaid debts the user owes."""
        docs = await self.store.query(self.collection, {"debtorId": user_id, "paid": False})
        return [Debt(**doc) for doc in docs]
