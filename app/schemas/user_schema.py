from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from uuid import UUID
from app.models.user_model import UserRole


class UserRegister(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = None


class UserOut(BaseModel):
    id: UUID
    email: Optional[str] = None
    username: Optional[str] = None
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.user
    is_banned: bool = False
    city: Optional[str] = None
    has_location: bool = False
    display_name: str
    created_at: datetime

    class Config:
        from_attributes = True


class MyProfileOut(UserOut):
    # exact coordinates are only shown to the user themselves
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    location_updated_at: Optional[datetime] = None


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1)
    phone_number: Optional[str] = None
    avatar_url: Optional[str] = None


class LocationUpdate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90, example=-6.9175)
    longitude: float = Field(..., ge=-180, le=180, example=107.6191)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100, example="Bandung")


class UserLogin(BaseModel):
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    user: UserOut


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class RefreshTokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str


class AdminUserOut(UserOut):
    ban_reason: Optional[str] = None
    reports_count: Optional[int] = None


class UserActionResponse(BaseModel):
    message: str
    user_id: UUID
