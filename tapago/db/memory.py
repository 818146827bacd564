"""
In-process DocumentStore with optimistic concurrency.

Every document carries a version. A transaction remembers the version of
each document it reads and buffers its writes; at commit the read versions
are checked under a lock and, if any document changed in the meantime, the
whole transaction is rejected with ConflictError and nothing is applied.

Used for local development (STORE_BACKEND=memory) and the test suite.
"""

import asyncio
import copy
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from tapago.core.exceptions import AlreadyExistsError, ConflictError, NotFoundError
from tapago.db.store import Document, DocumentStore, Transaction, TransactionBody


Key = Tuple[str, str]


class InMemoryTransaction(Transaction):

    def __init__(self, store: "InMemoryDocumentStore"):
        self.store = store
        self.read_versions: Dict[Key, int] = {}
        self.writes: List[Tuple[str, str, str, Document]] = []

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        # Yield like a network round trip so concurrent transactions interleave
        await asyncio.sleep(0)
        version, document = self.store._read(collection, doc_id)
        self.read_versions.setdefault((collection, doc_id), version)

        # Read-your-writes
        for op, c, i, payload in self.writes:
            if (c, i) != (collection, doc_id):
                continue
            if op == "set":
                document = copy.deepcopy(payload)
            elif document is not None:
                document.update(copy.deepcopy(payload))
        return document

    async def set(self, collection: str, doc_id: str, document: Document) -> None:
        self.writes.append(("set", collection, doc_id, {**copy.deepcopy(document), "_id": doc_id}))

    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        self.writes.append(("update", collection, doc_id, copy.deepcopy(fields)))


class InMemoryDocumentStore(DocumentStore):

    def __init__(self):
        self._collections: Dict[str, Dict[str, Tuple[int, Document]]] = defaultdict(dict)
        self._commit_lock = asyncio.Lock()
        self.conflicts = 0

    def _read(self, collection: str, doc_id: str) -> Tuple[int, Optional[Document]]:
        entry = self._collections[collection].get(doc_id)
        if entry is None:
            return 0, None
        version, document = entry
        return version, copy.deepcopy(document)

    def _version(self, key: Key) -> int:
        entry = self._collections[key[0]].get(key[1])
        return entry[0] if entry else 0

    async def transaction(self, body: TransactionBody) -> Any:
        tx = InMemoryTransaction(self)
        result = await body(tx)

        async with self._commit_lock:
            for key, version in tx.read_versions.items():
                if self._version(key) != version:
                    self.conflicts += 1
                    raise ConflictError(details={"collection": key[0], "id": key[1]})

            # Stage everything first so a failing update leaves no partial writes
            staged: Dict[Key, Document] = {}
            for op, collection, doc_id, payload in tx.writes:
                key = (collection, doc_id)
                if op == "set":
                    staged[key] = payload
                    continue
                current = staged.get(key)
                if current is None:
                    current = self._read(collection, doc_id)[1]
                if current is None:
                    raise NotFoundError(f"{collection}/{doc_id} not found")
                current.update(payload)
                staged[key] = current

            for (collection, doc_id), document in staged.items():
                version = self._version((collection, doc_id))
                self._collections[collection][doc_id] = (version + 1, document)

        return result

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        await asyncio.sleep(0)
        return self._read(collection, doc_id)[1]

    async def query(self, collection: str, filters: Document) -> List[Document]:
        await asyncio.sleep(0)
        return [
            copy.deepcopy(document)
            for _, document in self._collections[collection].values()
            if all(document.get(field) == value for field, value in filters.items())
        ]

    async def insert(self, collection: str, doc_id: str, document: Document) -> None:
        async with self._commit_lock:
            if doc_id in self._collections[collection]:
                raise AlreadyExistsError("Document already exists", details={"collection": collection, "id": doc_id})
            self._collections[collection][doc_id] = (1, {**copy.deepcopy(document), "_id": doc_id})

    async def update(self, collection: str, doc_id: str, fields: Document) -> bool:
        async with self._commit_lock:
            entry = self._collections[collection].get(doc_id)
            if entry is None:
                return False
            version, document = entry
            document = {**document, **copy.deepcopy(fields)}
            self._collections[collection][doc_id] = (version + 1, document)
        return True
