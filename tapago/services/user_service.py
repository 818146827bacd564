import logging
import re
from typing import Optional

from tapago.core.config import settings
from tapago.core.exceptions import AuthenticationError, ConflictError, InvalidArgumentError, NotFoundError
from tapago.core.security import hash_password, verify_password
from tapago.db.store import DocumentStore, Transaction, run_in_transaction
from tapago.models.base import new_document_id
from tapago.models.user import (
    USERNAME_PATTERN,
    Credential,
    User,
    UserFriendsUpdate,
    UserTotalsUpdate,
)
from tapago.repositories.user_repo import UserRepository
from tapago.utils.money import ZERO

logger = logging.getLogger(__name__)


class UserService:
    """Registration, login and profile upkeep."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.users = UserRepository(store)

    async def is_username_available(self, username: str) -> bool:
        return await self.users.get_username_owner(username) is None

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        photo_url: Optional[str] = None
    ) -> User:
        """
        Create a user with no friends and zero totals.

        The username and email reservations, the user document and the
        credential are written in one transaction, so concurrent sign-ups
        cannot both claim the same username or email.

        Raises:
            InvalidArgumentError: malformed username or password
            ConflictError: username or email already in use
        """
        if not re.fullmatch(USERNAME_PATTERN, username or ""):
            raise InvalidArgumentError(
                "Username must be 3 to 20 characters of letters, digits and underscores"
            )
        if not password or len(password) < 8:
            raise InvalidArgumentError("Password must be at least 8 characters")

        email = email.strip().lower()
        if await self.users.get_email_owner(email) is not None:
            raise ConflictError("Email already registered")

        user = User(id=new_document_id(), username=username, email=email, photo_url=photo_url)
        credential = Credential(id=user.id, email=email, password_hash=hash_password(password))

        async def body(tx: Transaction) -> Optional[str]:
            if await self.users.get_username_owner_in(tx, username) is not None:
                return "Username already taken"
            if await self.users.get_email_owner_in(tx, email) is not None:
                return "Email already registered"
            await self.users.reserve_username_in(tx, username, user.id)
            await self.users.reserve_email_in(tx, email, user.id)
            await self.users.create_user_in(tx, user)
            await self.users.set_credential_in(tx, credential)
            return None

        taken = await run_in_transaction(
            self.store, body, settings.TRANSACTION_MAX_ATTEMPTS, settings.TRANSACTION_RETRY_BASE_DELAY
        )
        if taken:
            raise ConflictError(taken)

        logger.info(f"Registered user {user.id} ({username})")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials and return the (backfilled) user."""
        credential = await self.users.get_credential_by_email(email.strip().lower())
        if credential is None or not verify_password(password, credential.password_hash):
            raise AuthenticationError("Invalid email or password")
        return await self.initialize_user(credential.id)

    async def initialize_user(self, user_id: str) -> User:
        """
        Backfill friends and totals on user documents that predate them.

        Raises:
            NotFoundError: the user does not exist
        """
        doc = await self.store.get(self.users.collection, user_id)
        if doc is None:
            raise NotFoundError(f"User {user_id} not found")
        if all(field in doc for field in ("friends", "totalToReceive", "totalToPay")):
            return User(**doc)

        if "friends" not in doc:
            await self.users.overwrite_user_fields(user_id, UserFriendsUpdate(friends=[]))
        totals = UserTotalsUpdate(
            total_to_receive=None if "totalToReceive" in doc else ZERO,
            total_to_pay=None if "totalToPay" in doc else ZERO
        )
        if totals.total_to_receive is not None or totals.total_to_pay is not None:
            await self.users.overwrite_user_fields(user_id, totals)

        logger.info(f"Backfilled missing fields for user {user_id}")
        return await self.users.get_user(user_id)
