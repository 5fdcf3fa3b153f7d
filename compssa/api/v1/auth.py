"""JWT login/refresh/logout and auth dependencies (get_current_account, require_role)."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from compssa.core.config import get_settings
from compssa.core.database import get_db
from compssa.core.security import TOKEN_TYPE_REFRESH
from compssa.models.account import ROLE_ADMIN, ROLE_CLERK, Account
from compssa.schemas.account import AccountPublic
from compssa.schemas.auth import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
)
from compssa.services.auth import (
    AuthBackendError,
    InsufficientPermissions,
    TokenMissing,
    authenticate,
    issue_access_token,
    verify_token,
)

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

AUTH_ERROR_RESPONSES = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    423: {"model": ErrorResponse},
}


def get_current_account(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> Account:
    """Dependency: require a valid Bearer access token and return the live account."""
    if credentials is None or not credentials.credentials:
        raise TokenMissing()
    try:
        return verify_token(db, credentials.credentials)
    except SQLAlchemyError as e:
        logger.exception("Database error during token verification")
        raise AuthBackendError() from e


def require_role(*roles: str) -> Callable[[Account], Account]:
    """Dependency factory: require an authenticated account with one of `roles`."""

    def dependency(
        current: Annotated[Account, Depends(get_current_account)],
    ) -> Account:
        if current.role not in roles:
            raise InsufficientPermissions()
        return current

    return dependency


require_admin = require_role(ROLE_ADMIN)
require_staff = require_role(ROLE_ADMIN, ROLE_CLERK)


@router.post("/login", response_model=LoginResponse, responses=AUTH_ERROR_RESPONSES)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> LoginResponse:
    """
    Authenticate with username and password; returns access and refresh tokens.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    try:
        result = authenticate(db, body.username, body.password, get_settings())
    except SQLAlchemyError as e:
        raise AuthBackendError("Login failed") from e
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        token_type="bearer",
        expires_in=result.expires_in,
        account=AccountPublic.model_validate(result.account),
    )


@router.post("/refresh", response_model=RefreshResponse, responses=AUTH_ERROR_RESPONSES)
def refresh(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
) -> RefreshResponse:
    """Exchange a refresh token for a new access token. Account state is re-checked."""
    try:
        account = verify_token(db, body.refresh_token, kind=TOKEN_TYPE_REFRESH)
    except SQLAlchemyError as e:
        raise AuthBackendError("Token refresh failed") from e
    settings = get_settings()
    return RefreshResponse(
        access_token=issue_access_token(account, settings),
        token_type="bearer",
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )


@router.post("/logout", response_model=MessageResponse, responses=AUTH_ERROR_RESPONSES)
def logout(
    current: Annotated[Account, Depends(get_current_account)],
) -> MessageResponse:
    """Tokens are stateless; the client discards them. Logged for audit."""
    logger.info(
        "Account logged out",
        extra={"account_id": current.id, "username": current.username},
    )
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=AccountPublic, responses=AUTH_ERROR_RESPONSES)
def me(
    current: Annotated[Account, Depends(require_staff)],
) -> AccountPublic:
    """Return the authenticated account as currently stored."""
    return AccountPublic.model_validate(current)
