"""SQLAlchemy ORM models."""

from compssa.models.account import ROLE_ADMIN, ROLE_CLERK, ROLES, Account
from compssa.models.base import Base

__all__ = ["ROLE_ADMIN", "ROLE_CLERK", "ROLES", "Account", "Base"]
