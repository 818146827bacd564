from typing import List
from fastapi import APIRouter, Depends, status
from tapago.api.deps import get_friend_service
from tapago.core.auth import get_current_user
from tapago.models.user import User
from tapago.schemas.user import UserProfile
from tapago.services.friend_service import FriendService

router = APIRouter()

@router.get("", response_model=List[UserProfile])
async def list_friends(
    current_user: User = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    return await service.list_friends(current_user.id)

@router.post("/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_friend(
    friend_id: str,
    current_user: User = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    await service.add_friend(current_user.id, friend_id)

@router.delete("/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_friend(
    friend_id: str,
    current_user: User = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    await service.remove_friend(current_user.id, friend_id)
