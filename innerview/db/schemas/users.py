import uuid
from typing import Optional
from pydantic import Field, field_validator

from innerview.utils.role_permissions import UserRole
from .common import ApiModel, TimestampedModel


def _normalize_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValueError("Invalid email address")
    return value


class UserBase(ApiModel):
    email: str
    name: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _email(cls, value):
        return _normalize_email(value)


class UserCreate(UserBase):
    password: str = Field(min_length=6)
    role: str = UserRole.TEACHER.value
    school_id: Optional[uuid.UUID] = None


class UserUpdate(ApiModel):
    email: Optional[str] = None
    name: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[str] = None
    school_id: Optional[uuid.UUID] = None

    @field_validator("email")
    @classmethod
    def _email(cls, value):
        return _normalize_email(value)


class User(UserBase, TimestampedModel):
    id: uuid.UUID
    role: str
    school_id: Optional[uuid.UUID] = None


class LoginRequest(ApiModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, value):
        return value.strip().lower()


class RefreshRequest(ApiModel):
    refresh_token: str


class AuthUser(ApiModel):
    id: uuid.UUID
    email: str
    name: str
    role: str


class AuthResponse(ApiModel):
    user: AuthUser
    access_token: str
    refresh_token: str
