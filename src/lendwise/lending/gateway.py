"""Persistence gateway for the lending engine.

The engine keeps all state in memory and hands whole-collection
snapshots to a gateway after every committed mutation. Loads happen
once, when the engine starts.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from enum import Enum
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from ..db.models import AccountRow, ItemRow, LoanRow
from ..db.sqlite import Database, get_db
from .records import Account, Item, Loan

logger = logging.getLogger(__name__)

SAVE_ERRORS = (SQLAlchemyError, OSError)
# A malformed stored value (e.g. a bad ISO date) surfaces as ValueError
LOAD_ERRORS = (SQLAlchemyError, OSError, ValueError)


class PersistenceError(Exception):
    """A snapshot could not be written to or read from the store."""

    pass


class PersistencePolicy(str, Enum):
    """What the engine does when a save fails."""

    LOG = "log"  # Log and keep going; the in-memory change stands
    RAISE = "raise"  # Raise PersistenceError to the caller


class PersistenceGateway(ABC):
    """Load-all / save-all contract for items and accounts."""

    @abstractmethod
    def load_items(self) -> list[Item]:
        """Return every stored item, or an empty list for an empty store."""
        pass

    @abstractmethod
    def save_items(self, items: list[Item]) -> None:
        """Replace the stored items with ``items``.

        Raises:
            PersistenceError: If the snapshot could not be written
        """
        pass

    @abstractmethod
    def load_accounts(self) -> list[Account]:
        """Return every stored account with its loans."""
        pass

    @abstractmethod
    def save_accounts(self, accounts: list[Account]) -> None:
        """Replace the stored accounts (and their loans) with ``accounts``.

        Raises:
            PersistenceError: If the snapshot could not be written
        """
        pass


class SqliteGateway(PersistenceGateway):
    """Gateway storing snapshots in SQLite through SQLAlchemy."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize gateway.

        Args:
            db: Database instance
        """
        self.db = db or get_db()
        self.db.create_tables()

    def load_items(self) -> list[Item]:
        try:
            with self.db.get_session() as session:
                rows = session.execute(select(ItemRow).order_by(ItemRow.id)).scalars().all()
                items = [
                    Item(id=row.id, title=row.title, author=row.author, genre=row.genre, issued=row.issued)
                    for row in rows
                ]
        except LOAD_ERRORS as e:
            raise PersistenceError(f"Could not load items: {e}") from e
        logger.info("Loaded %d items from %s", len(items), self.db.db_path)
        return items

    def save_items(self, items: list[Item]) -> None:
        try:
            with self.db.get_session() as session:
                session.execute(delete(ItemRow))
                session.add_all(
                    ItemRow(
                        id=item.id,
                        title=item.title,
                        author=item.author,
                        genre=item.genre,
                        issued=item.issued,
                    )
                    for item in items
                )
        except SAVE_ERRORS as e:
            raise PersistenceError(f"Could not save items: {e}") from e
        logger.debug("Saved %d items", len(items))

    def load_accounts(self) -> list[Account]:
        try:
            with self.db.get_session() as session:
                rows = session.execute(select(AccountRow).order_by(AccountRow.id)).scalars().all()
                accounts = [self._to_account(row) for row in rows]
        except LOAD_ERRORS as e:
            raise PersistenceError(f"Could not load accounts: {e}") from e
        logger.info("Loaded %d accounts from %s", len(accounts), self.db.db_path)
        return accounts

    def save_accounts(self, accounts: list[Account]) -> None:
        try:
            with self.db.get_session() as session:
                session.execute(delete(LoanRow))
                session.execute(delete(AccountRow))
                session.add_all(self._to_row(account) for account in accounts)
        except SAVE_ERRORS as e:
            raise PersistenceError(f"Could not save accounts: {e}") from e
        logger.debug("Saved %d accounts", len(accounts))

    @staticmethod
    def _to_account(row: AccountRow) -> Account:
        return Account(
            id=row.id,
            name=row.name,
            username=row.username,
            secret=row.secret,
            role=row.role,
            loans=[
                Loan(
                    item_id=loan.item_id,
                    issue_date=date.fromisoformat(loan.issue_date),
                    due_date=date.fromisoformat(loan.due_date),
                )
                for loan in row.loans
            ],
        )

    @staticmethod
    def _to_row(account: Account) -> AccountRow:
        return AccountRow(
            id=account.id,
            name=account.name,
            username=account.username,
            secret=account.secret,
            role=account.role,
            loans=[
                LoanRow(
                    item_id=loan.item_id,
                    position=position,
                    issue_date=loan.issue_date.isoformat(),
                    due_date=loan.due_date.isoformat(),
                )
                for position, loan in enumerate(account.loans)
            ],
        )
