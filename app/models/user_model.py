from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, field_validator


class UserRole(str, Enum):
    user = "user"
    admin = "admin"


class UserProfile(BaseModel):
    id: str
    email: Optional[str] = None
    username: Optional[str] = None
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.user
    is_banned: bool = False
    ban_reason: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    location_updated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("role", mode="before")
    @classmethod
    def role_defaults_to_user(cls, v):
        try:
            return UserRole(str(v).lower()) if v else UserRole.user
        except ValueError:
            return UserRole.user

    @field_validator("is_banned", mode="before")
    @classmethod
    def not_banned_by_default(cls, v):
        return bool(v)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or self.email or "Unknown"
