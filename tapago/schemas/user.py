from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel

from tapago.models.user import User


class UserProfile(BaseModel):
    """Public profile, as shown in friend lists and next to debts."""
    id: str
    username: str
    email: str
    photo_url: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            photo_url=user.photo_url
        )


class UserResponse(UserProfile):
    """The current user's own record, totals included."""
    friends: List[str]
    total_to_receive: Decimal
    total_to_pay: Decimal

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            photo_url=user.photo_url,
            friends=user.friends,
            total_to_receive=user.total_to_receive,
            total_to_pay=user.total_to_pay
        )
