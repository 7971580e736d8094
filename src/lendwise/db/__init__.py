"""Database module for local SQLite storage."""

from .models import AccountRow, Base, ItemRow, LoanRow
from .sqlite import Database, get_db, reset_db

__all__ = [
    "AccountRow",
    "Base",
    "ItemRow",
    "LoanRow",
    "Database",
    "get_db",
    "reset_db",
]
