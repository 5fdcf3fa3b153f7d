"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, Field

from compssa.schemas.account import AccountPublic


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class LoginResponse(BaseModel):
    """Tokens and account returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    account: AccountPublic


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class RefreshResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Error body for authentication failures."""

    error: str = Field(..., description="Human-readable message")
    code: str = Field(..., description="Machine-readable error code")
    retry_after: int | None = Field(
        default=None, description="Seconds until a locked account may retry"
    )
