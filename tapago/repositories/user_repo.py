import asyncio
from typing import Iterable, List, Optional

from tapago.core.exceptions import NotFoundError
from tapago.db.store import DocumentStore, Transaction
from tapago.models.user import Credential, User, UserFieldsUpdate

class UserRepository:
    """User directory operations."""

    collection = "users"
    usernames = "usernames"
    credentials = "credentials"
    emails = "emails"

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_user(self, user_id: str) -> User:
        """Get user by ID."""
        doc = await self.store.get(self.collection, user_id)
        if doc is None:
            raise NotFoundError(f"User {user_id} not found")
        return User(**doc)

    async def get_user_in(self, tx: Transaction, user_id: str) -> User:
        """Get user by ID inside a transaction."""
        doc = await tx.get(self.collection, user_id)
        if doc is None:
            raise NotFoundError(f"User {user_id} not found")
        return User(**doc)

    async def list_users(self, user_ids: Iterable[str]) -> List[User]:
        """Get the users with the given IDs, skipping missing ones."""
        docs = await asyncio.gather(
            *(self.store.get(self.collection, user_id) for user_id in user_ids)
        )
        return [User(**doc) for doc in docs if doc is not None]

    async def find_by_username(self, username: str) -> Optional[User]:
        docs = await self.store.query(self.collection, {"username": username})
        if docs:
            return User(**docs[0])
        return None

    async def create_user_in(self, tx: Transaction, user: User) -> None:
        await tx.set(self.collection, user.id, user.to_document())

    async def update_user_fields(self, tx: Transaction, user_id: str, update: UserFieldsUpdate) -> None:
        """Apply a typed partial update inside a transaction."""
        await tx.update(self.collection, user_id, update.to_fields())

    async def overwrite_user_fields(self, user_id: str, update: UserFieldsUpdate) -> None:
        """Apply a typed partial update outside a transaction (reconciliation, backfill)."""
        if not await self.store.update(self.collection, user_id, update.to_fields()):
            raise NotFoundError(f"User {user_id} not found")

    # ===== USERNAMES =====

    async def get_username_owner(self, username: str) -> Optional[str]:
        doc = await self.store.get(self.usernames, username)
        return doc["uid"] if doc else None

    async def get_username_owner_in(self, tx: Transaction, username: str) -> Optional[str]:
        doc = await tx.get(self.usernames, username)
        return doc["uid"] if doc else None

    async def reserve_username_in(self, tx: Transaction, username: str, user_id: str) -> None:
        await tx.set(self.usernames, username, {"uid": user_id})

    # ===== EMAILS =====

    async def get_email_owner(self, email: str) -> Optional[str]:
        doc = await self.store.get(self.emails, email)
        return doc["uid"] if doc else None

    async def get_email_owner_in(self, tx: Transaction, email: str) -> Optional[str]:
        doc = await tx.get(self.emails, email)
        return doc["uid"] if doc else None

    async def reserve_email_in(self, tx: Transaction, email: str, user_id: str) -> None:
        await tx.set(self.emails, email, {"uid": user_id})

    # ===== CREDENTIALS =====

    async def get_credential_by_email(self, email: str) -> Optional[Credential]:
        """Credential of the user holding the email reservation."""
        user_id = await self.get_email_owner(email)
        if user_id is None:
            return None
        doc = await self.store.get(self.credentials, user_id)
        return Credential(**doc) if doc else None

    async def set_credential_in(self, tx: Transaction, credential: Credential) -> None:
        await tx.set(self.credentials, credential.id, credential.model_dump(by_alias=True))
