"""SQLAlchemy ORM models for the local SQLite store.

Tables:
- items: Catalog entries and their issued flag
- accounts: Registered principals
- loans: Active loans, owned by an account
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ItemRow(Base):
    """Item row - one catalog entry."""

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), nullable=False)
    genre: Mapped[str] = mapped_column(String(200), nullable=False)
    issued: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<ItemRow(id={self.id}, title='{self.title}', issued={self.issued})>"


class AccountRow(Base):
    """Account row - a registered principal."""

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    secret: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")

    # Relationships
    loans: Mapped[list["LoanRow"]] = relationship(
        "LoanRow",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="LoanRow.position",
    )

    def __repr__(self) -> str:
        return f"<AccountRow(id={self.id}, username='{self.username}', role={self.role})>"


class LoanRow(Base):
    """Loan row - one item held by one account."""

    __tablename__ = "loans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # No foreign key: a loan may outlive the item it references
    item_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    # Order of the loan within the account's loan set
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    issue_date: Mapped[str] = mapped_column(String(10), nullable=False)  # ISO date
    due_date: Mapped[str] = mapped_column(String(10), nullable=False)  # ISO date

    account: Mapped[Optional[AccountRow]] = relationship("AccountRow", back_populates="loans")

    def __repr__(self) -> str:
        return f"<LoanRow(account_id={self.account_id}, item_id={self.item_id}, due={self.due_date})>"
