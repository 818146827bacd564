import logging
from typing import Optional

from tapago.core.config import settings
from tapago.core.exceptions import StoreUnavailableError
from tapago.db.memory import InMemoryDocumentStore
from tapago.db.mongo import connect_to_mongo
from tapago.db.store import DocumentStore

logger = logging.getLogger(__name__)


class StoreHolder:
    store: Optional[DocumentStore] = None

holder = StoreHolder()


async def open_store() -> DocumentStore:
    """Open the store selected by STORE_BACKEND."""
    if settings.STORE_BACKEND == "memory":
        holder.store = InMemoryDocumentStore()
        logger.info("Using in-memory document store")
    else:
        holder.store = await connect_to_mongo()
    return holder.store


async def close_store():
    if holder.store is not None:
        await holder.store.close()
    holder.store = None


def get_store() -> DocumentStore:
    """Return the active document store."""
    if holder.store is None:
        raise StoreUnavailableError("Document store is not connected")
    return holder.store
