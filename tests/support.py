"""Shared helpers for tests: throwaway databases and seeded accounts."""

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from compssa.models import Account, Base
from compssa.services.accounts import create_account

ADMIN_PASSWORD = "admin-pass-123"
CLERK_PASSWORD = "clerk-pass-123"


def make_sessionmaker() -> sessionmaker:
    """Fresh in-memory database with the schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def seed_admin(db: Session, username: str = "admin") -> Account:
    return create_account(db, username, ADMIN_PASSWORD, "System Admin", role="admin")


def seed_clerk(db: Session, username: str = "clerk") -> Account:
    return create_account(db, username, CLERK_PASSWORD, "Front Desk Clerk", role="clerk")
