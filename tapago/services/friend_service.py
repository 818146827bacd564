"""
FriendService - the friend graph.

Friendship is symmetric: if A lists B then B lists A. Both users' friend
lists are written in one transaction so the relation is never observed
half-applied.
"""

import logging
from typing import List, Optional

from tapago.core.config import settings
from tapago.core.exceptions import InvalidArgumentError
from tapago.db.store import DocumentStore, Transaction, run_in_transaction
from tapago.models.user import User, UserFriendsUpdate
from tapago.repositories.user_repo import UserRepository
from tapago.schemas.user import UserProfile

logger = logging.getLogger(__name__)


class FriendService:

    def __init__(
        self,
        store: DocumentStore,
        max_attempts: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
    ):
        self.store = store
        self.users = UserRepository(store)
        self.max_attempts = max_attempts if max_attempts is not None else settings.TRANSACTION_MAX_ATTEMPTS
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else settings.TRANSACTION_RETRY_BASE_DELAY
        )

    @staticmethod
    def are_friends(user: User, other: User) -> bool:
        return other.id in user.friends and user.id in other.friends

    async def list_friends(self, user_id: str) -> List[UserProfile]:
        """Profiles of the user's friends. Dangling ids are skipped."""
        user = await self.users.get_user(user_id)
        if not user.friends:
            return []
        friends = await self.users.list_users(user.friends)
        return [UserProfile.from_user(friend) for friend in friends]

    async def add_friend(self, user_id: str, friend_id: str) -> bool:
        """
        Link two users both ways.

        Returns:
            False if they were already friends, True otherwise
        """
        if user_id == friend_id:
            raise InvalidArgumentError("A user cannot befriend themselves")

        async def body(tx: Transaction) -> bool:
            user = await self.users.get_user_in(tx, user_id)
            friend = await self.users.get_user_in(tx, friend_id)
            if self.are_friends(user, friend):
                return False

            if friend_id not in user.friends:
                await self.users.update_user_fields(
                    tx, user_id, UserFriendsUpdate(friends=user.friends + [friend_id])
                )
            if user_id not in friend.friends:
                await self.users.update_user_fields(
                    tx, friend_id, UserFriendsUpdate(friends=friend.friends + [user_id])
                )
            return True

        added = await run_in_transaction(self.store, body, self.max_attempts, self.retry_base_delay)
        if added:
            logger.info(f"Users {user_id} and {friend_id} are now friends")
        return added

    async def remove_friend(self, user_id: str, friend_id: str) -> bool:
        """
        Unlink two users both ways.

        Returns:
            False if neither listed the other, True otherwise
        """
        async def body(tx: Transaction) -> bool:
            user = await self.users.get_user_in(tx, user_id)
            friend = await self.users.get_user_in(tx, friend_id)
            if friend_id not in user.friends and user_id not in friend.friends:
                return False

            await self.users.update_user_fields(
                tx, user_id, UserFriendsUpdate(friends=[f for f in user.friends if f != friend_id])
            )
            await self.users.update_user_fields(
                tx, friend_id, UserFriendsUpdate(friends=[f for f in friend.friends if f != user_id])
            )
            return True

        removed = await run_in_transaction(self.store, body, self.max_attempts, self.retry_base_delay)
        if removed:
            logger.info(f"Users {user_id} and {friend_id} are no longer friends")
        return removed
