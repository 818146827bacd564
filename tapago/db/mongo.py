import logging
from contextlib import contextmanager
from typing import Any, List, Optional

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorDatabase,
)
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from tapago.core.config import settings
from tapago.core.exceptions import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
    StoreUnavailableError,
    TaPagoError,
)
from tapago.db.store import Document, DocumentStore, Transaction, TransactionBody

logger = logging.getLogger(__name__)

WRITE_CONFLICT_CODE = 112


def translate_error(exc: PyMongoError) -> TaPagoError:
    """Map a driver error onto the store error taxonomy."""
    # The commit may or may not have been applied: retrying could apply it twice
    if exc.has_error_label("UnknownTransactionCommitResult"):
        return StoreUnavailableError("Transaction commit result unknown", details=str(exc))
    if exc.has_error_label("TransientTransactionError"):
        return ConflictError(details=str(exc))
    if isinstance(exc, OperationFailure) and exc.code == WRITE_CONFLICT_CODE:
        return ConflictError(details=str(exc))
    if isinstance(exc, DuplicateKeyError):
        return AlreadyExistsError("Document already exists", details=str(exc))
    return StoreUnavailableError(details=str(exc))


@contextmanager
def translate_errors():
    try:
        yield
    except PyMongoError as exc:
        error = translate_error(exc)
        logger.error(f"MongoDB operation failed: {error.error_type}: {exc}")
        raise error from exc


class MongoTransaction(Transaction):
    """Transaction handle bound to a Motor client session."""

    def __init__(self, db: AsyncIOMotorDatabase, session: AsyncIOMotorClientSession):
        self.db = db
        self.session = session

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        return await self.db[collection].find_one({"_id": doc_id}, session=self.session)

    async def set(self, collection: str, doc_id: str, document: Document) -> None:
        await self.db[collection].replace_one(
            {"_id": doc_id},
            {**document, "_id": doc_id},
            upsert=True,
            session=self.session
        )

    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        result = await self.db[collection].update_one(
            {"_id": doc_id},
            {"$set": fields},
            session=self.session
        )
        if result.matched_count == 0:
            raise NotFoundError(f"{collection}/{doc_id} not found")


class MongoDocumentStore(DocumentStore):
    """DocumentStore backed by MongoDB. Transactions need a replica set."""

    def __init__(self, client: AsyncIOMotorClient, db: AsyncIOMotorDatabase):
        self.client = client
        self.db = db

    async def transaction(self, body: TransactionBody) -> Any:
        with translate_errors():
            async with await self.client.start_session() as session:
                async with session.start_transaction():
                    return await body(MongoTransaction(self.db, session))

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with translate_errors():
            return await self.db[collection].find_one({"_id": doc_id})

    async def query(self, collection: str, filters: Document) -> List[Document]:
        with translate_errors():
            return await self.db[collection].find(filters).to_list(None)

    async def insert(self, collection: str, doc_id: str, document: Document) -> None:
        with translate_errors():
            await self.db[collection].insert_one({**document, "_id": doc_id})

    async def update(self, collection: str, doc_id: str, fields: Document) -> bool:
        with translate_errors():
            result = await self.db[collection].update_one({"_id": doc_id}, {"$set": fields})
        return result.matched_count > 0

    async def close(self) -> None:
        self.client.close()
        logger.info("Disconnected from MongoDB")


async def connect_to_mongo() -> MongoDocumentStore:
    """Connect to MongoDB and return a store over the configured database."""
    client = AsyncIOMotorClient(settings.MONGODB_URI)
    db = client[settings.MONGODB_DB]

    with translate_errors():
        await create_indexes(db)
    logger.info(f"Connected to MongoDB: {settings.MONGODB_DB}")
    return MongoDocumentStore(client, db)

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    # Login lookup
    await db["credentials"].create_index("email", unique=True)

    # Users
    await db["users"].create_index("username", unique=True)

    # Ledger queries: unpaid debts by party
    await db["debts"].create_index([("creditorId", 1), ("paid", 1)])
    await db["debts"].create_index([("debtorId", 1), ("paid", 1)])
