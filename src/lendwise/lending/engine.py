"""Lending engine: the single owner of catalog and account state.

Every public operation runs under one engine-wide lock, so no two
mutations interleave. Domain failures come back as ``Result`` values;
only the fail-fast persistence policy raises.
"""

import logging
import threading
from datetime import date
from typing import Callable, Optional, Union

from ..config import Config, LendingConfigError, get_config
from ..db.sqlite import Database
from .gateway import PersistenceError, PersistenceGateway, PersistencePolicy, SqliteGateway
from .records import DEFAULT_LOAN_DAYS, Account, Item
from .schemas import (
    AccountView,
    BorrowReceipt,
    ErrorKind,
    Result,
    ReturnReceipt,
    Role,
)

logger = logging.getLogger(__name__)

DEFAULT_FINE_PER_DAY = 10
DEFAULT_ADMIN_NAME = "Administrator"
DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_SECRET = "admin123"

AccountHandle = Union[AccountView, int]


def parse_item_id(text: str) -> Result[int]:
    """Parse a caller-supplied item identifier.

    Args:
        text: Raw identifier text

    Returns:
        Result with the identifier, or INVALID_INPUT
    """
    try:
        item_id = int(text.strip())
    except (ValueError, AttributeError):
        return Result.failure(ErrorKind.INVALID_INPUT, "Enter a valid numeric ID.")
    if item_id <= 0:
        return Result.failure(ErrorKind.INVALID_INPUT, "Enter a valid numeric ID.")
    return Result.success(item_id)


def require_text(**fields: Optional[str]) -> Result[None]:
    """Check that every named field holds non-blank text."""
    missing = [name for name, value in fields.items() if value is None or not value.strip()]
    if missing:
        return Result.failure(
            ErrorKind.INVALID_INPUT,
            f"Required field(s) empty: {', '.join(missing)}.",
        )
    return Result.success(None)


class LendingEngine:
    """Owns items and accounts and mediates every change to them."""

    def __init__(
        self,
        gateway: Optional[PersistenceGateway] = None,
        loan_days: int = DEFAULT_LOAN_DAYS,
        fine_per_day: int = DEFAULT_FINE_PER_DAY,
        admin_username: str = DEFAULT_ADMIN_USERNAME,
        admin_secret: str = DEFAULT_ADMIN_SECRET,
        policy: PersistencePolicy = PersistencePolicy.LOG,
        clock: Callable[[], date] = date.today,
    ):
        """Initialize engine, load state and make sure an admin exists.

        Args:
            gateway: Persistence gateway (default: SQLite at the configured path)
            loan_days: Loan period in days
            fine_per_day: Fine charged per day late
            admin_username: Username of the bootstrap admin
            admin_secret: Secret of the bootstrap admin
            policy: What to do when a save fails
            clock: Source of the current date
        """
        self.gateway = gateway or SqliteGateway()
        self.loan_days = loan_days
        self.fine_per_day = fine_per_day
        self.admin_username = admin_username
        self.admin_secret = admin_secret
        self.policy = PersistencePolicy(policy)
        self.clock = clock

        self._lock = threading.RLock()
        self._items: list[Item] = []
        self._accounts: list[Account] = []

        with self._lock:
            self._load()
            self.bootstrap_admin()

    @classmethod
    def from_config(
        cls,
        config: Optional[Config] = None,
        gateway: Optional[PersistenceGateway] = None,
    ) -> "LendingEngine":
        """Build an engine from configuration.

        Raises:
            LendingConfigError: If the configuration does not validate
        """
        config = config or get_config()
        problems = config.validate()
        if problems:
            raise LendingConfigError("; ".join(problems))
        if gateway is None:
            gateway = SqliteGateway(Database(config.db_path))
        return cls(
            gateway=gateway,
            loan_days=config.loan_days,
            fine_per_day=config.fine_per_day,
            admin_username=config.admin_username,
            admin_secret=config.admin_secret,
            policy=PersistencePolicy(config.persistence_errors),
        )

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        """Load each collection on its own; one failure leaves the other intact."""
        self._items = self._load_collection(self.gateway.load_items, "items")
        self._accounts = self._load_collection(self.gateway.load_accounts, "accounts")

    def _load_collection(self, load: Callable[[], list], label: str) -> list:
        try:
            return load()
        except PersistenceError:
            if self.policy == PersistencePolicy.RAISE:
                raise
            logger.exception("Could not load stored %s; starting with none", label)
            return []

    def _persist(self, items: bool = False, accounts: bool = False) -> None:
        """Write snapshots after a committed mutation."""
        saves = []
        if items:
            saves.append((self.gateway.save_items, self._items))
        if accounts:
            saves.append((self.gateway.save_accounts, self._accounts))

        for save, collection in saves:
            try:
                save(list(collection))
            except PersistenceError:
                if self.policy == PersistencePolicy.RAISE:
                    raise
                logger.exception("Snapshot not saved; in-memory state kept")

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _find_item(self, item_id: int) -> Optional[Item]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def _find_account(self, handle: AccountHandle) -> Optional[Account]:
        account_id = handle if isinstance(handle, int) else handle.id
        for account in self._accounts:
            if account.id == account_id:
                return account
        return None

    def _next_item_id(self) -> int:
        return max((item.id for item in self._items), default=0) + 1

    def _next_account_id(self) -> int:
        return max((account.id for account in self._accounts), default=0) + 1

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def bootstrap_admin(self) -> Optional[AccountView]:
        """Create the default admin if no account holds the admin role.

        Returns:
            View of the created admin, or None when one already existed
        """
        with self._lock:
            if any(account.role == Role.ADMIN.value for account in self._accounts):
                return None

            admin = Account(
                id=self._next_account_id(),
                name=DEFAULT_ADMIN_NAME,
                username=self.admin_username,
                secret=self.admin_secret,
                role=Role.ADMIN.value,
            )
            self._accounts.append(admin)
            self._persist(accounts=True)
            logger.info("Created default admin account '%s' (id %d)", admin.username, admin.id)
            return AccountView.model_validate(admin)

    def register_account(self, name: str, username: str, secret: str) -> Result[int]:
        """Register a new account with the user role.

        Args:
            name: Display name
            username: Login name, unique ignoring case
            secret: Credential secret

        Returns:
            Result with the new account identifier
        """
        check = require_text(name=name, username=username, secret=secret)
        if not check.ok:
            return Result.failure(ErrorKind.INVALID_INPUT, "All fields are required.")

        with self._lock:
            wanted = username.strip().lower()
            if any(account.username.lower() == wanted for account in self._accounts):
                return Result.failure(ErrorKind.DUPLICATE_USERNAME, "Username already exists.")

            account = Account(
                id=self._next_account_id(),
                name=name,
                username=username,
                secret=secret,
                role=Role.USER.value,
            )
            self._accounts.append(account)
            self._persist(accounts=True)
            logger.info("Registered account '%s' (id %d)", account.username, account.id)
            return Result.success(
                account.id,
                f"User registered successfully. Your User ID: {account.id}",
            )

    def authenticate(self, username: str, secret: str) -> Optional[AccountView]:
        """Return a view of the account with exactly this username and secret."""
        with self._lock:
            for account in self._accounts:
                if account.username == username and account.secret == secret:
                    return AccountView.model_validate(account)
            return None

    def get_account(self, handle: AccountHandle) -> Optional[AccountView]:
        """Return a fresh view of an account, or None if unknown."""
        with self._lock:
            account = self._find_account(handle)
            return AccountView.model_validate(account) if account else None

    def list_accounts(self) -> str:
        """Render all accounts sorted by identifier."""
        with self._lock:
            if not self._accounts:
                return "No users registered."
            accounts = sorted(self._accounts, key=lambda a: a.id)
            return "\n".join(account.render() for account in accounts)

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    def add_item(
        self,
        item_id: Optional[int],
        title: str,
        author: str,
        genre: str,
    ) -> Result[int]:
        """Add an item to the catalog.

        Args:
            item_id: Identifier to use, or None to assign max + 1
            title: Item title
            author: Item author
            genre: Item genre

        Returns:
            Result with the assigned identifier
        """
        check = require_text(title=title, author=author, genre=genre)
        if not check.ok:
            return Result.failure(ErrorKind.INVALID_INPUT, "Fill Title, Author, Genre.")
        if item_id is not None and item_id <= 0:
            return Result.failure(ErrorKind.INVALID_INPUT, "Invalid ID")

        with self._lock:
            if item_id is None:
                item_id = self._next_item_id()
            elif self._find_item(item_id) is not None:
                return Result.failure(ErrorKind.DUPLICATE_ID, "Book ID already exists.")

            item = Item(id=item_id, title=title, author=author, genre=genre)
            self._items.append(item)
            self._persist(items=True)
            logger.info("Added item %d '%s'", item.id, item.title)
            return Result.success(item.id, f"Book added with ID: {item.id}")

    def remove_item(self, item_id: int) -> Result[int]:
        """Remove an item, issued or not.

        Outstanding loans on the item are left in place and render with
        an unknown title.
        """
        with self._lock:
            item = self._find_item(item_id)
            if item is None:
                return Result.failure(ErrorKind.NOT_FOUND, "Book not found.")

            self._items.remove(item)
            self._persist(items=True)
            if item.issued:
                logger.warning("Removed item %d while it was issued", item_id)
            else:
                logger.info("Removed item %d", item_id)
            return Result.success(item_id, "Book removed.")

    def list_items(self) -> str:
        """Render all items sorted by identifier."""
        with self._lock:
            if not self._items:
                return "No books available."
            items = sorted(self._items, key=lambda i: i.id)
            return "\n".join(item.render() for item in items)

    def search_items(self, keyword: str) -> str:
        """Render items whose title, author or genre contains ``keyword``.

        Matches keep catalog order.
        """
        with self._lock:
            matches = [item.render() for item in self._items if item.matches(keyword)]
            if not matches:
                return f"No books found for: {keyword}"
            return "\n".join(matches)

    # -------------------------------------------------------------------------
    # Circulation
    # -------------------------------------------------------------------------

    def borrow_item(self, account: AccountHandle, item_id: int) -> Result[BorrowReceipt]:
        """Issue an item to an account.

        Args:
            account: Account view (or identifier) from ``authenticate``
            item_id: Item to borrow

        Returns:
            Result with a receipt holding the due date
        """
        with self._lock:
            item = self._find_item(item_id)
            if item is None:
                return Result.failure(ErrorKind.NOT_FOUND, "Book not found.")
            if item.issued:
                return Result.failure(ErrorKind.ALREADY_ISSUED, "Book is already issued.")

            holder = self._find_account(account)
            if holder is None:
                return Result.failure(ErrorKind.ACCOUNT_NOT_FOUND, "Account not found.")

            item.issued = True
            loan = holder.add_loan(item.id, issued_on=self.clock(), loan_days=self.loan_days)
            self._persist(items=True, accounts=True)
            logger.info("Item %d issued to account %d, due %s", item.id, holder.id, loan.due_date)

            receipt = BorrowReceipt(item_id=item.id, title=item.title, due_date=loan.due_date)
            return Result.success(receipt, f"Borrowed: {item.title} | Due: {loan.due_date.isoformat()}")

    def return_item(self, account: AccountHandle, item_id: int) -> Result[ReturnReceipt]:
        """Take an item back from an account and compute any fine.

        Args:
            account: Account view (or identifier) that holds the loan
            item_id: Item being returned

        Returns:
            Result with a receipt holding days late and fine
        """
        with self._lock:
            item = self._find_item(item_id)
            if item is None:
                return Result.failure(ErrorKind.NOT_FOUND, "Book not found.")
            if not item.issued:
                return Result.failure(ErrorKind.NOT_ISSUED, "This book is not issued.")

            holder = self._find_account(account)
            if holder is None:
                return Result.failure(ErrorKind.ACCOUNT_NOT_FOUND, "Account not found.")

            if not holder.holds(item_id):
                return Result.failure(ErrorKind.NO_SUCH_LOAN, "This user hasn't borrowed that book.")

            loan = holder.remove_loan(item_id)
            item.issued = False
            days_late = loan.days_late(self.clock())
            self._persist(items=True, accounts=True)

            fine = days_late * self.fine_per_day if days_late > 0 else 0
            receipt = ReturnReceipt(item_id=item.id, title=item.title, days_late=days_late, fine=fine)
            logger.info("Item %d returned by account %d (fine %d)", item.id, holder.id, fine)

            if fine:
                return Result.success(receipt, f"Returned late by {days_late} day(s). Fine = {fine}")
            return Result.success(receipt, "Returned on time. No fine.")

    def list_loans_of(self, account: AccountHandle) -> str:
        """Render the current loans of an account."""
        with self._lock:
            holder = self._find_account(account)
            if holder is None or not holder.loans:
                return "No borrowed books."

            lines = []
            for loan in holder.loans:
                item = self._find_item(loan.item_id)
                title = item.title if item else "(unknown)"
                lines.append(
                    f"ID: {loan.item_id} | {title} | Issued: {loan.issue_date.isoformat()}"
                    f" | Due: {loan.due_date.isoformat()}"
                )
            return "\n".join(lines)
