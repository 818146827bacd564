from fastapi import APIRouter, Depends, status
from tapago.api.deps import get_user_service
from tapago.core.auth import create_access_token
from tapago.schemas.auth import TokenResponse, UserLogin, UserSignup, UsernameAvailability
from tapago.schemas.user import UserResponse
from tapago.services.user_service import UserService

router = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserSignup,
    service: UserService = Depends(get_user_service)
):
    """Register a new user"""
    user = await service.register(
        user_data.username,
        user_data.email,
        user_data.password,
        user_data.photo_url
    )
    return TokenResponse(
        access_token=create_access_token(user.id),
        user=UserResponse.from_user(user)
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    service: UserService = Depends(get_user_service)
):
    """Login with email and password"""
    user = await service.authenticate(credentials.email, credentials.password)
    return TokenResponse(
        access_token=create_access_token(user.id),
        user=UserResponse.from_user(user)
    )


@router.get("/username-available/{username}", response_model=UsernameAvailability)
async def username_available(
    username: str,
    service: UserService = Depends(get_user_service)
):
    return UsernameAvailability(
        username=username,
        available=await service.is_username_available(username)
    )
