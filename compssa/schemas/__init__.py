"""Pydantic request/response schemas."""

from compssa.schemas.account import (
    AccountCreate,
    AccountListResponse,
    AccountPublic,
    AccountUpdate,
)
from compssa.schemas.auth import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
)
from compssa.schemas.health import HealthResponse

__all__ = [
    "AccountCreate",
    "AccountListResponse",
    "AccountPublic",
    "AccountUpdate",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "RefreshRequest",
    "RefreshResponse",
]
