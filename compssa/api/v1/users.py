"""Account administration endpoints (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from compssa.api.v1.auth import require_admin
from compssa.core.database import get_db
from compssa.models.account import Account
from compssa.schemas.account import (
    AccountCreate,
    AccountListResponse,
    AccountPublic,
    AccountUpdate,
)
from compssa.services.accounts import (
    LastAdminError,
    UsernameTaken,
    create_account,
    deactivate_account,
    get_account,
    list_accounts,
    update_account,
)

router = APIRouter()


def _get_or_404(db: Session, account_id: int) -> Account:
    account = get_account(db, account_id)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return account


@router.get("", response_model=AccountListResponse)
def get_users(
    _admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    include_inactive: bool = True,
) -> AccountListResponse:
    """List accounts ordered by id."""
    accounts = list_accounts(db, include_inactive=include_inactive)
    return AccountListResponse(users=[AccountPublic.model_validate(a) for a in accounts])


@router.get("/{account_id}", response_model=AccountPublic)
def get_user(
    account_id: int,
    _admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> AccountPublic:
    return AccountPublic.model_validate(_get_or_404(db, account_id))


@router.post("", response_model=AccountPublic, status_code=status.HTTP_201_CREATED)
def post_user(
    body: AccountCreate,
    _admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> AccountPublic:
    """Create an account. Usernames are stored lowercase and must be unique."""
    try:
        account = create_account(
            db,
            username=body.username,
            password=body.password,
            full_name=body.full_name,
            role=body.role,
        )
    except UsernameTaken as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    return AccountPublic.model_validate(account)


@router.patch("/{account_id}", response_model=AccountPublic)
def patch_user(
    account_id: int,
    body: AccountUpdate,
    _admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> AccountPublic:
    """Update full name, role, password or active flag."""
    account = _get_or_404(db, account_id)
    try:
        account = update_account(db, account, **body.model_dump(exclude_unset=True))
    except LastAdminError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    return AccountPublic.model_validate(account)


@router.delete("/{account_id}", response_model=AccountPublic)
def delete_user(
    account_id: int,
    _admin: Annotated[Account, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> AccountPublic:
    """Deactivate an account (soft delete). The last active admin cannot be removed."""
    account = _get_or_404(db, account_id)
    try:
        account = deactivate_account(db, account)
    except LastAdminError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    return AccountPublic.model_validate(account)
