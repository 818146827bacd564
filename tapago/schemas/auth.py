from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from tapago.models.user import USERNAME_PATTERN
from tapago.schemas.user import UserResponse


class UserSignup(BaseModel):
    """Schema for user signup"""
    username: str = Field(..., pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    photo_url: Optional[str] = None


class UserLogin(BaseModel):
    """Schema for user login"""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Schema for authentication token response"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class UsernameAvailability(BaseModel):
    username: str
    available: bool
