"""Tests for the in-memory document store and the retry helper."""
import asyncio
import pytest
from unittest.mock import AsyncMock

from tapago.core.exceptions import AlreadyExistsError, ConflictError, NotFoundError
from tapago.db.store import run_in_transaction


@pytest.mark.asyncio
class TestInMemoryDocumentStore:

    async def test_insert_get_query_update(self, store):
        await store.insert("users", "u1", {"username": "alice", "paid": False})
        await store.insert("users", "u2", {"username": "bob", "paid": True})

        assert await store.get("users", "u1") == {"_id": "u1", "username": "alice", "paid": False}
        assert await store.get("users", "missing") is None
        assert [doc["_id"] for doc in await store.query("users", {"paid": False})] == ["u1"]
        assert await store.update("users", "u1", {"username": "alicia"}) is True
        assert (await store.get("users", "u1"))["username"] == "alicia"
        assert await store.update("users", "missing", {"username": "x"}) is False

    async def test_insert_existing_document_conflicts(self, store):
        await store.insert("users", "u1", {"username": "alice"})
        with pytest.raises(AlreadyExistsError):
            await store.insert("users", "u1", {"username": "bob"})

    async def test_returned_documents_are_copies(self, store):
        await store.insert("users", "u1", {"friends": []})

        doc = await store.get("users", "u1")
        doc["friends"].append("u2")

        assert (await store.get("users", "u1"))["friends"] == []

    async def test_transaction_commits_all_writes(self, store):
        await store.insert("users", "u1", {"total": 1})

        async def body(tx):
            user = await tx.get("users", "u1")
            await tx.update("users", "u1", {"total": user["total"] + 1})
            await tx.set("debts", "d1", {"amount": 5})
            return "done"

        assert await store.transaction(body) == "done"
        assert (await store.get("users", "u1"))["total"] == 2
        assert await store.get("debts", "d1") == {"_id": "d1", "amount": 5}

    async def test_transaction_sees_its_own_writes(self, store):
        await store.insert("users", "u1", {"total": 1})

        async def body(tx):
            await tx.update("users", "u1", {"total": 10})
            return await tx.get("users", "u1")

        assert (await store.transaction(body))["total"] == 10

    async def test_failing_body_writes_nothing(self, store):
        await store.insert("users", "u1", {"total": 1})

        async def body(tx):
            await tx.update("users", "u1", {"total": 99})
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await store.transaction(body)
        assert (await store.get("users", "u1"))["total"] == 1

    async def test_update_of_missing_document_aborts_whole_transaction(self, store):
        async def body(tx):
            await tx.set("debts", "d1", {"amount": 5})
            await tx.update("users", "ghost", {"total": 5})

        with pytest.raises(NotFoundError):
            await store.transaction(body)
        assert await store.get("debts", "d1") is None

    async def test_stale_read_conflicts(self, store):
        await store.insert("users", "u1", {"total": 0})
        read_done = asyncio.Event()
        write_done = asyncio.Event()

        async def slow_body(tx):
            user = await tx.get("users", "u1")
            read_done.set()
            await write_done.wait()
            await tx.update("users", "u1", {"total": user["total"] + 1})

        async def fast_body(tx):
            user = await tx.get("users", "u1")
            await tx.update("users", "u1", {"total": user["total"] + 10})

        slow = asyncio.create_task(store.transaction(slow_body))
        await read_done.wait()
        await store.transaction(fast_body)
        write_done.set()

        with pytest.raises(ConflictError):
            await slow
        assert (await store.get("users", "u1"))["total"] == 10
        assert store.conflicts == 1

    async def test_non_transactional_update_invalidates_open_reads(self, store):
        await store.insert("users", "u1", {"total": 0})
        read_done = asyncio.Event()
        write_done = asyncio.Event()

        async def body(tx):
            user = await tx.get("users", "u1")
            read_done.set()
            await write_done.wait()
            await tx.update("users", "u1", {"total": user["total"] + 1})

        task = asyncio.create_task(store.transaction(body))
        await read_done.wait()
        await store.update("users", "u1", {"total": 50})
        write_done.set()

        with pytest.raises(ConflictError):
            await task


@pytest.mark.asyncio
class TestRunInTransaction:

    async def test_retries_until_success(self):
        store = AsyncMock()
        store.transaction.side_effect = [ConflictError(), ConflictError(), "ok"]

        assert await run_in_transaction(store, AsyncMock(), max_attempts=5, base_delay=0) == "ok"
        assert store.transaction.await_count == 3

    async def test_gives_up_after_max_attempts(self):
        store = AsyncMock()
        store.transaction.side_effect = ConflictError()

        with pytest.raises(ConflictError):
            await run_in_transaction(store, AsyncMock(), max_attempts=4, base_delay=0)
        assert store.transaction.await_count == 4

    async def test_other_errors_propagate_immediately(self):
        store = AsyncMock()
        store.transaction.side_effect = NotFoundError()

        with pytest.raises(NotFoundError):
            await run_in_transaction(store, AsyncMock(), max_attempts=4, base_delay=0)
        assert store.transaction.await_count == 1

    async def test_retried_conflict_recovers_lost_update(self, store):
        await store.insert("users", "u1", {"total": 0})

        async def increment(tx):
            user = await tx.get("users", "u1")
            await tx.update("users", "u1", {"total": user["total"] + 1})

        await asyncio.gather(*(run_in_transaction(store, increment, 10, 0) for _ in range(5)))

        assert (await store.get("users", "u1"))["total"] == 5
