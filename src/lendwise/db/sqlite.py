"""SQLite storage for the lending snapshots.

One ``Database`` wraps a SQLAlchemy engine for a single store file (or
an in-memory store) and hands out short-lived sessions.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from .models import Base

MEMORY = ":memory:"


class Database:
    """A lendwise store and its session factory."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """Open (or create) a store.

        Args:
            db_path: Store file, or ":memory:". Defaults to the
                     configured ``db_path``.
        """
        if db_path is None:
            db_path = get_config().db_path

        self.is_memory = str(db_path) == MEMORY
        self.db_path = Path(db_path)

        if self.is_memory:
            # All sessions must share the one connection holding the data
            self.engine = create_engine(
                f"sqlite:///{MEMORY}",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                connect_args={"check_same_thread": False},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def create_tables(self) -> None:
        """Create the items, accounts and loans tables if missing."""
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        """Close pooled connections."""
        self.engine.dispose()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Session that commits on success and rolls back on error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# Shared store used when no Database is passed explicitly
_db: Optional[Database] = None


def get_db() -> Database:
    """Get or create the shared store at the configured path."""
    global _db
    if _db is None:
        _db = Database()
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Drop the shared store. Used for testing."""
    global _db
    if _db is not None:
        _db.dispose()
    _db = None
