"""
Authentication: password login with account lockout, and bearer-token verification.

The login path reads the account row under a row lock (SELECT ... FOR UPDATE),
applies the lockout state machine and commits before answering, so the
failure counter survives restarts and concurrent wrong attempts on one
account cannot read the same stale count. Token verification re-reads the
account on every call so deactivation, lockout and role changes apply to the
next request rather than at token expiry.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from compssa.core.security import (
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from compssa.models.account import Account, as_utc
from compssa.services.lockout import (
    LockoutState,
    lockout_state,
    register_failure,
    register_success,
    retry_after_seconds,
)

if TYPE_CHECKING:
    from compssa.core.config import Settings

logger = logging.getLogger(__name__)

# Compared against when the username is unknown so both paths pay one bcrypt check.
_DUMMY_HASH = hash_password("compssa-unknown-account")


class AuthError(Exception):
    """Base for authentication outcomes that end a request."""

    code = "AUTH_ERROR"
    status_code = 401
    default_message = "Authentication failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class TokenMissing(AuthError):
    code = "TOKEN_MISSING"
    default_message = "Access token required"


class TokenInvalid(AuthError):
    code = "TOKEN_INVALID"
    default_message = "Invalid token"


class TokenExpired(AuthError):
    code = "TOKEN_EXPIRED"
    default_message = "Token expired"


class AccountNotFound(AuthError):
    code = "USER_NOT_FOUND"
    default_message = "Invalid token - user not found"


class InvalidCredentials(AuthError):
    """Wrong password or unknown username; the two are indistinguishable."""

    code = "INVALID_CREDENTIALS"
    default_message = "Invalid username or password"


class AccountDeactivated(AuthError):
    code = "ACCOUNT_DEACTIVATED"
    status_code = 403
    default_message = "Account is deactivated"


class AccountLocked(AuthError):
    code = "ACCOUNT_LOCKED"
    status_code = 423
    default_message = (
        "Account is temporarily locked due to too many failed login attempts"
    )

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class AuthBackendError(AuthError):
    """The account store failed mid-request; the attempt is treated as failed."""

    code = "AUTH_ERROR"
    status_code = 500
    default_message = "Authentication failed"


class InsufficientPermissions(AuthError):
    code = "INSUFFICIENT_PERMISSIONS"
    status_code = 403
    default_message = "Insufficient permissions"


@dataclass
class LoginResult:
    """Tokens and account returned by a successful login."""

    access_token: str
    refresh_token: str
    expires_in: int
    account: Account


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _log_extra(account: Account) -> dict[str, Any]:
    locked_until = as_utc(account.locked_until)
    return {
        "account_id": account.id,
        "username": account.username,
        "failed_login_count": account.failed_login_count,
        "locked_until": locked_until.isoformat() if locked_until else None,
    }


def authenticate(
    db: Session,
    username: str,
    password: str,
    settings: "Settings",
    now: datetime | None = None,
) -> LoginResult:
    """
    Verify username/password and issue tokens.

    Raises InvalidCredentials, AccountDeactivated or AccountLocked. Lockout
    counters are committed before any of these is raised. Database errors
    roll back and propagate; they never yield a successful login.
    """
    now = now or _utcnow()
    normalized = username.strip().lower()

    try:
        account = (
            db.query(Account)
            .filter(Account.username == normalized)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if account is None:
            verify_password(password, _DUMMY_HASH)
            db.rollback()
            logger.warning("Login attempt with unknown username", extra={"username": normalized})
            raise InvalidCredentials()

        if not account.is_active:
            db.rollback()
            logger.warning("Login attempt on deactivated account", extra=_log_extra(account))
            raise AccountDeactivated()

        if lockout_state(account, now) is LockoutState.LOCKED:
            retry_after = retry_after_seconds(account, now)
            db.rollback()
            logger.warning("Login attempt on locked account", extra=_log_extra(account))
            raise AccountLocked(retry_after)

        if not verify_password(password, account.password_hash):
            locked_now = register_failure(
                account,
                now,
                max_attempts=settings.MAX_LOGIN_ATTEMPTS,
                lockout=timedelta(minutes=settings.LOCKOUT_MINUTES),
            )
            db.commit()
            if locked_now:
                logger.warning("Account locked after repeated failures", extra=_log_extra(account))
                raise AccountLocked(retry_after_seconds(account, now))
            logger.warning("Failed login attempt", extra=_log_extra(account))
            raise InvalidCredentials()

        register_success(account, now)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Database error during login", extra={"username": normalized})
        raise

    access_token = issue_access_token(account, settings)
    refresh_token = create_refresh_token(account.id, settings.JWT_REFRESH_EXPIRE_MINUTES)
    logger.info("Successful login", extra=_log_extra(account))
    return LoginResult(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        account=account,
    )


def _decode(token: str, kind: str) -> dict[str, Any]:
    decoder = decode_refresh_token if kind == TOKEN_TYPE_REFRESH else decode_access_token
    try:
        payload = decoder(token)
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired() from e
    except jwt.PyJWTError as e:
        raise TokenInvalid() from e
    if payload.get("type") != kind:
        raise TokenInvalid("Invalid token type")
    return payload


def verify_token(
    db: Session,
    token: str,
    now: datetime | None = None,
    kind: str = TOKEN_TYPE_ACCESS,
) -> Account:
    """
    Resolve a bearer token to its live Account.

    Only the account id is taken from the token; active and lock state are
    read from the database. Raises TokenInvalid, TokenExpired,
    AccountNotFound, AccountDeactivated or AccountLocked.
    """
    if not token:
        raise TokenMissing()
    payload = _decode(token, kind)
    try:
        account_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise TokenInvalid("Invalid token payload") from e

    now = now or _utcnow()
    account = (
        db.query(Account)
        .filter(Account.id == account_id)
        .populate_existing()
        .first()
    )
    if account is None:
        raise AccountNotFound()
    if not account.is_active:
        raise AccountDeactivated()
    if lockout_state(account, now) is LockoutState.LOCKED:
        raise AccountLocked(retry_after_seconds(account, now))
    return account


def issue_access_token(account: Account, settings: "Settings") -> str:
    """Access token for a verified account, lifetime from the given settings."""
    return create_access_token(
        account.id, account.username, account.role, settings.JWT_EXPIRE_MINUTES
    )


def reset_lockout(db: Session, usernames: list[str] | None = None) -> int:
    """
    Clear failed_login_count and locked_until for the named accounts (all when None).

    Returns the number of rows updated.
    """
    stmt = update(Account).values(failed_login_count=0, locked_until=None)
    if usernames:
        stmt = stmt.where(Account.username.in_([u.strip().lower() for u in usernames]))
    result = db.execute(stmt)
    db.commit()
    logger.info("Lockout reset", extra={"accounts_updated": result.rowcount})
    return result.rowcount
