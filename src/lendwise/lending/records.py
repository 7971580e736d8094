"""In-memory records owned by the lending engine.

Items, accounts and their loans are plain dataclasses. Only the
engine mutates them; callers receive views from ``schemas``.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

DEFAULT_LOAN_DAYS = 7


@dataclass
class Item:
    """A catalog entry that at most one account may hold."""

    id: int
    title: str
    author: str
    genre: str
    issued: bool = False

    def __post_init__(self) -> None:
        self.title = self.title.strip()
        self.author = self.author.strip()
        self.genre = self.genre.strip()

    @property
    def availability(self) -> str:
        return "Issued" if self.issued else "Available"

    def render(self) -> str:
        """Render as ``id | title | author | genre | Available|Issued``."""
        return f"{self.id} | {self.title} | {self.author} | {self.genre} | {self.availability}"

    def matches(self, keyword: str) -> bool:
        """Case-insensitive substring match on title, author or genre."""
        k = keyword.lower()
        return k in self.title.lower() or k in self.author.lower() or k in self.genre.lower()


@dataclass
class Loan:
    """One item held by one account between issue and due date."""

    item_id: int
    issue_date: date
    due_date: date

    def days_late(self, today: date) -> int:
        """Whole days past the due date (zero or negative when on time)."""
        return (today - self.due_date).days

    def render(self) -> str:
        return f"BookID: {self.item_id} | Issued: {self.issue_date.isoformat()} | Due: {self.due_date.isoformat()}"


@dataclass
class Account:
    """A registered principal and the loans it currently holds."""

    id: int
    name: str
    username: str
    secret: str
    role: str = "user"
    loans: list[Loan] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.name = self.name.strip()
        self.username = self.username.strip()

    def add_loan(
        self,
        item_id: int,
        issued_on: Optional[date] = None,
        loan_days: int = DEFAULT_LOAN_DAYS,
    ) -> Loan:
        """Record a new loan for ``item_id`` due ``loan_days`` after issue.

        Args:
            item_id: Identifier of the borrowed item
            issued_on: Issue date (default: today)
            loan_days: Length of the loan period

        Returns:
            The loan that was appended
        """
        issue_date = issued_on or date.today()
        loan = Loan(
            item_id=item_id,
            issue_date=issue_date,
            due_date=issue_date + timedelta(days=loan_days),
        )
        self.loans.append(loan)
        return loan

    def remove_loan(self, item_id: int) -> Optional[Loan]:
        """Remove and return the first loan for ``item_id``, or None."""
        for index, loan in enumerate(self.loans):
            if loan.item_id == item_id:
                return self.loans.pop(index)
        return None

    def holds(self, item_id: int) -> bool:
        return any(loan.item_id == item_id for loan in self.loans)

    def render(self) -> str:
        borrowed = ", ".join(loan.render() for loan in self.loans)
        return f"{self.id} | {self.name} | @{self.username} | Role: {self.role} | Borrowed: [{borrowed}]"
