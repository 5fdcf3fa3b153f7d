"""Request/response schemas for account administration."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from compssa.core.security import (
    FULL_NAME_MAX_LEN,
    FULL_NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)

Role = Literal["admin", "clerk"]


class AccountPublic(BaseModel):
    """Account as exposed to clients (no password hash, no lockout counters)."""

    id: int
    username: str
    full_name: str
    role: Role
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class AccountCreate(BaseModel):
    """Body for POST /users."""

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, description="Username"
    )
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )
    full_name: str = Field(
        ..., min_length=FULL_NAME_MIN_LEN, max_length=FULL_NAME_MAX_LEN, description="Full name"
    )
    role: Role = Field(default="clerk", description="admin or clerk")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not v.isalnum() or not v.isascii():
            raise ValueError("username must contain only letters and digits")
        return v.lower()


class AccountUpdate(BaseModel):
    """Body for PATCH /users/{id}. Username and lockout state cannot be changed."""

    full_name: str | None = Field(
        default=None, min_length=FULL_NAME_MIN_LEN, max_length=FULL_NAME_MAX_LEN
    )
    role: Role | None = None
    password: str | None = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )
    is_active: bool | None = None

    class Config:
        extra = "forbid"


class AccountListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[AccountPublic]
