"""Declarative base shared by the COMPSSA ORM models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Root of the model registry; Alembic autogenerates from Base.metadata."""
