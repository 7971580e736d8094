"""Tests for the SQLite store."""

from sqlalchemy import inspect

from lendwise.config import reset_config
from lendwise.db.sqlite import Database, get_db, reset_db


class TestDatabase:
    """Tests for Database setup."""

    def test_default_path_comes_from_config(self, monkeypatch, tmp_path):
        """Test the store opens at the configured path."""
        monkeypatch.setenv("LENDWISE_DB_PATH", str(tmp_path / "nested" / "lib.db"))
        reset_config()
        try:
            database = Database()
            assert database.db_path == tmp_path / "nested" / "lib.db"
            assert (tmp_path / "nested").is_dir()
            assert not database.is_memory
            database.dispose()
        finally:
            reset_config()

    def test_create_tables(self, memory_db):
        """Test the three lending tables exist."""
        names = set(inspect(memory_db.engine).get_table_names())
        assert {"items", "accounts", "loans"} <= names

    def test_memory_store_is_shared_across_sessions(self, memory_db):
        """Test sessions on an in-memory store see the same data."""
        from lendwise.db.models import ItemRow

        with memory_db.get_session() as session:
            session.add(ItemRow(id=1, title="Dune", author="Herbert", genre="SciFi"))
        with memory_db.get_session() as session:
            assert session.get(ItemRow, 1).title == "Dune"

    def test_get_db_is_shared_until_reset(self, monkeypatch, tmp_path):
        """Test the shared store is created once per reset."""
        monkeypatch.setenv("LENDWISE_DB_PATH", str(tmp_path / "lib.db"))
        reset_config()
        reset_db()
        try:
            first = get_db()
            assert get_db() is first
            reset_db()
            assert get_db() is not first
        finally:
            reset_db()
            reset_config()
