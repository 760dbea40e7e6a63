"""Core app configuration, database, errors, roles and security."""

from formula_access.core.config import get_settings, settings
from formula_access.core.database import db_operation, get_db
from formula_access.core.errors import AppError

__all__ = ["AppError", "db_operation", "get_settings", "get_db", "settings"]
