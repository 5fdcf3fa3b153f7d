"""ORM model for staff accounts (credential store and lockout state)."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, func

from compssa.models.base import Base

ROLE_ADMIN = "admin"
ROLE_CLERK = "clerk"
ROLES = (ROLE_ADMIN, ROLE_CLERK)


def as_utc(value: datetime | None) -> datetime | None:
    """Return value as an aware UTC datetime; naive values (SQLite) are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Account(Base):
    """
    Staff account used for JWT authentication and role-based access.

    role: 'admin' or 'clerk'. Deactivation (is_active=False) is the only
    form of deletion. failed_login_count and locked_until are written only
    by the authentication service.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('admin', 'clerk')", name="ck_users_role"),
        CheckConstraint("failed_login_count >= 0", name="ck_users_failed_login_count"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    role = Column(String(16), nullable=False, default=ROLE_CLERK)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    failed_login_count = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Account id={self.id} username={self.username!r} role={self.role!r}>"
