"""Lending engine module.

Provides functionality for:
- Managing a catalog of loanable items
- Registering and authenticating accounts
- Borrowing and returning with due dates and fines
- Persisting state through a gateway
"""

from .engine import LendingEngine, parse_item_id, require_text
from .gateway import PersistenceError, PersistenceGateway, PersistencePolicy, SqliteGateway
from .records import Account, Item, Loan
from .schemas import (
    AccountView,
    BorrowReceipt,
    ErrorKind,
    LoanView,
    Result,
    ReturnReceipt,
    Role,
)

__all__ = [
    "LendingEngine",
    "parse_item_id",
    "require_text",
    "PersistenceError",
    "PersistenceGateway",
    "PersistencePolicy",
    "SqliteGateway",
    "Account",
    "Item",
    "Loan",
    "AccountView",
    "BorrowReceipt",
    "ErrorKind",
    "LoanView",
    "Result",
    "ReturnReceipt",
    "Role",
]
