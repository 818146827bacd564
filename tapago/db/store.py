"""
Document store contract consumed by the ledger, user directory and friend graph.

The store supplies get/query/insert/update over named collections and an
atomic transaction primitive. A transaction either commits every write made
through its handle or none of them; a concurrent conflicting write makes it
fail with ConflictError, which run_in_transaction retries with backoff.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from tapago.core.exceptions import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Document = Dict[str, Any]


class Transaction(ABC):
    """Read/write handle scoped to a single transaction."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def set(self, collection: str, doc_id: str, document: Document) -> None:
        """Create or replace a whole document."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        """Overwrite the given top-level fields of an existing document."""


TransactionBody = Callable[[Transaction], Awaitable[T]]


class DocumentStore(ABC):

    @abstractmethod
    async def transaction(self, body: TransactionBody) -> Any:
        """
        Run body(tx) and commit its writes atomically.

        Raises:
            ConflictError: a concurrent transaction wrote a document this one touched
            StoreUnavailableError: transport or backend failure
            Anything raised by body, after the transaction is aborted
        """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def query(self, collection: str, filters: Document) -> List[Document]:
        """All documents whose fields equal every value in filters."""

    @abstractmethod
    async def insert(self, collection: str, doc_id: str, document: Document) -> None:
        ...

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Document) -> bool:
        """Non-transactional field overwrite. Returns False if the document is missing."""

    async def close(self) -> None:
        pass


async def run_in_transaction(
    store: DocumentStore,
    body: TransactionBody,
    max_attempts: int = 5,
    base_delay: float = 0.05,
) -> Any:
    """
    Run body in a store transaction, retrying on ConflictError.

    The body is re-executed from scratch on every attempt, so it must
    read everything it needs through the transaction handle. Delays grow
    as base_delay * 2**attempt. The last ConflictError propagates.
    """
    max_attempts = max(max_attempts, 1)
    for attempt in range(max_attempts):
        try:
            return await store.transaction(body)
        except ConflictError:
            if attempt == max_attempts - 1:
                logger.error(f"Transaction still conflicting after {max_attempts} attempts")
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                f"Transaction conflict (attempt {attempt + 1}/{max_attempts}), retrying in {delay:.3f}s"
            )
            await asyncio.sleep(delay)
