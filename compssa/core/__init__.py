"""Core app configuration and database."""

from compssa.core.config import get_settings, settings
from compssa.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
