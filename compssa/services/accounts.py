"""Account administration: create, update and deactivate staff accounts."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from compssa.core.security import hash_password
from compssa.models.account import ROLE_ADMIN, ROLES, Account

logger = logging.getLogger(__name__)


class AccountServiceError(Exception):
    """Base for account administration errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UsernameTaken(AccountServiceError):
    pass


class LastAdminError(AccountServiceError):
    pass


def normalize_username(username: str) -> str:
    return username.strip().lower()


def get_account(db: Session, account_id: int) -> Account | None:
    return db.query(Account).filter(Account.id == account_id).first()


def list_accounts(db: Session, include_inactive: bool = True) -> list[Account]:
    query = db.query(Account)
    if not include_inactive:
        query = query.filter(Account.is_active.is_(True))
    return query.order_by(Account.id).all()


def create_account(
    db: Session,
    username: str,
    password: str,
    full_name: str,
    role: str = "clerk",
) -> Account:
    """Create an active account with a hashed password. Raises UsernameTaken on collision."""
    if role not in ROLES:
        raise ValueError(f"role must be one of {', '.join(ROLES)}")
    username = normalize_username(username)
    if db.query(Account).filter(Account.username == username).first() is not None:
        raise UsernameTaken("Username already exists")

    account = Account(
        username=username,
        password_hash=hash_password(password),
        full_name=full_name.strip(),
        role=role,
        is_active=True,
        failed_login_count=0,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise UsernameTaken("Username already exists") from e
    db.refresh(account)
    logger.info(
        "Account created",
        extra={"account_id": account.id, "username": account.username, "role": role},
    )
    return account


def _active_admin_count(db: Session) -> int:
    return (
        db.query(Account)
        .filter(Account.role == ROLE_ADMIN, Account.is_active.is_(True))
        .count()
    )


def _guard_last_admin(db: Session, account: Account) -> None:
    if account.role == ROLE_ADMIN and account.is_active and _active_admin_count(db) <= 1:
        raise LastAdminError("Cannot remove the last active admin user")


def update_account(
    db: Session,
    account: Account,
    *,
    full_name: str | None = None,
    role: str | None = None,
    password: str | None = None,
    is_active: bool | None = None,
) -> Account:
    """
    Apply a profile update. Username and lockout counters are not writable here.

    Raises LastAdminError if the change would leave no active admin.
    """
    if role is not None and role not in ROLES:
        raise ValueError(f"role must be one of {', '.join(ROLES)}")
    demoting = role is not None and role != ROLE_ADMIN
    if demoting or is_active is False:
        _guard_last_admin(db, account)

    if full_name is not None:
        account.full_name = full_name.strip()
    if role is not None:
        account.role = role
    if password is not None:
        account.password_hash = hash_password(password)
    if is_active is not None:
        account.is_active = is_active
    db.commit()
    db.refresh(account)
    logger.info("Account updated", extra={"account_id": account.id, "username": account.username})
    return account


def deactivate_account(db: Session, account: Account) -> Account:
    """Soft delete: mark inactive so the account can no longer authenticate."""
    return update_account(db, account, is_active=False)
