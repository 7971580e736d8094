"""Pydantic schemas for lending results and caller-facing views."""

from datetime import date
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Role(str, Enum):
    """Role of an account."""

    ADMIN = "admin"
    USER = "user"


class ErrorKind(str, Enum):
    """Why an engine operation was refused."""

    DUPLICATE_USERNAME = "duplicate_username"
    DUPLICATE_ID = "duplicate_id"
    NOT_FOUND = "not_found"
    ALREADY_ISSUED = "already_issued"
    NOT_ISSUED = "not_issued"
    NO_SUCH_LOAN = "no_such_loan"
    INVALID_INPUT = "invalid_input"
    ACCOUNT_NOT_FOUND = "account_not_found"


class Result(BaseModel, Generic[T]):
    """Tagged outcome of an engine operation.

    Exactly one of ``value`` / ``error`` is meaningful: a successful
    result carries a payload, a failed one carries an ``ErrorKind``.
    ``message`` is display text in both cases.
    """

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ""

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, message: str = "") -> "Result[T]":
        return cls(value=value, message=message)

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> "Result[T]":
        return cls(error=error, message=message)


class BorrowReceipt(BaseModel):
    """Details of a successful borrow."""

    item_id: int
    title: str
    due_date: date

    model_config = {"frozen": True}


class ReturnReceipt(BaseModel):
    """Details of a successful return."""

    item_id: int
    title: str
    days_late: int
    fine: int = Field(0, ge=0)

    model_config = {"frozen": True}

    @property
    def on_time(self) -> bool:
        return self.days_late <= 0


class LoanView(BaseModel):
    """Read-only copy of a loan."""

    item_id: int
    issue_date: date
    due_date: date

    model_config = {"frozen": True, "from_attributes": True}


class AccountView(BaseModel):
    """Read-only copy of an account handed to callers.

    The secret is never copied. ``loans`` is a snapshot taken when
    the view was built; it does not follow later borrows or returns.
    """

    id: int
    name: str
    username: str
    role: Role
    loans: tuple[LoanView, ...] = ()

    model_config = {"frozen": True, "from_attributes": True}

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
