from fastapi import APIRouter, Depends, HTTPException, Query, status
from tapago.api.deps import get_user_service
from tapago.core.auth import get_current_user
from tapago.models.user import User
from tapago.schemas.user import UserProfile, UserResponse
from tapago.services.user_service import UserService

router = APIRouter()

@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Current user's profile, friend ids and cached totals"""
    return UserResponse.from_user(current_user)

@router.get("/search", response_model=UserProfile)
async def search_by_username(
    username: str = Query(..., min_length=3, max_length=20),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Find a user by exact username, e.g. to add them as a friend"""
    user = await service.users.find_by_username(username)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserProfile.from_user(user)

@router.get("/{user_id}", response_model=UserProfile)
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    return UserProfile.from_user(await service.users.get_user(user_id))
