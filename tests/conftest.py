"""Pytest configuration and shared fixtures.

This module provides fixtures for testing lendwise, including
in-memory and on-disk databases, a controllable clock and a
ready-to-use lending engine.
"""

import os
import tempfile
from datetime import date, timedelta
from pathlib import Path
from typing import Generator

import pytest

from lendwise.config import reset_config
from lendwise.db.sqlite import Database, reset_db
from lendwise.lending import AccountView, LendingEngine, SqliteGateway


class FakeClock:
    """Callable clock whose date only moves when told to."""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int) -> None:
        self.today += timedelta(days=days)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    # Cleanup
    if db_path.exists():
        db_path.unlink()


@pytest.fixture(scope="function")
def db(temp_db_path: Path) -> Generator[Database, None, None]:
    """Create an on-disk test database instance."""
    reset_db()
    reset_config()

    database = Database(str(temp_db_path))
    database.create_tables()
    yield database

    database.dispose()
    reset_db()


@pytest.fixture
def memory_db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture
def gateway(memory_db: Database) -> SqliteGateway:
    """Create a gateway over the in-memory database."""
    return SqliteGateway(memory_db)


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """A clock fixed at a known date."""
    return FakeClock(date(2025, 3, 1))


@pytest.fixture
def engine(gateway: SqliteGateway, clock: FakeClock) -> LendingEngine:
    """Create a LendingEngine over an empty in-memory store."""
    return LendingEngine(gateway, clock=clock)


@pytest.fixture
def alice(engine: LendingEngine) -> AccountView:
    """Register and log in a regular account."""
    engine.register_account("Alice Reader", "alice", "wonderland")
    return engine.authenticate("alice", "wonderland")


@pytest.fixture
def bob(engine: LendingEngine) -> AccountView:
    """Register and log in a second regular account."""
    engine.register_account("Bob Builder", "bob", "canwefixit")
    return engine.authenticate("bob", "canwefixit")


@pytest.fixture
def stocked_engine(engine: LendingEngine) -> LendingEngine:
    """Engine with three items in the catalog."""
    engine.add_item(None, "Dune", "Frank Herbert", "SciFi")
    engine.add_item(None, "Emma", "Jane Austen", "Classic")
    engine.add_item(None, "Neuromancer", "William Gibson", "Cyberpunk SciFi")
    return engine


# ============================================================================
# CLI Testing Fixtures
# ============================================================================


@pytest.fixture
def cli_env(temp_db_path: Path) -> Generator[Path, None, None]:
    """Point configuration at a temporary database for CLI runs."""
    reset_db()
    reset_config()
    os.environ["LENDWISE_DB_PATH"] = str(temp_db_path)

    yield temp_db_path

    reset_db()
    reset_config()
    if "LENDWISE_DB_PATH" in os.environ:
        del os.environ["LENDWISE_DB_PATH"]


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()


@pytest.fixture
def cli_app():
    """Get the CLI app for testing."""
    from lendwise.cli import app
    return app
