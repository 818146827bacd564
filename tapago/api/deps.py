"""Service providers for the endpoints"""

from fastapi import Depends

from tapago.db.session import get_store
from tapago.db.store import DocumentStore
from tapago.services.debt_service import DebtService
from tapago.services.friend_service import FriendService
from tapago.services.user_service import UserService


def get_debt_service(store: DocumentStore = Depends(get_store)) -> DebtService:
    return DebtService(store)


def get_friend_service(store: DocumentStore = Depends(get_store)) -> FriendService:
    return FriendService(store)


def get_user_service(store: DocumentStore = Depends(get_store)) -> UserService:
    return UserService(store)
