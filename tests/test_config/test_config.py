"""Tests for configuration loading."""

from pathlib import Path

import pytest

from lendwise.config import Config, LendingConfigError, get_config, reset_config
from lendwise.lending import LendingEngine, PersistencePolicy


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear lendwise variables for each test."""
    for name in [
        "LENDWISE_DB_PATH",
        "LENDWISE_LOAN_DAYS",
        "LENDWISE_FINE_PER_DAY",
        "LENDWISE_ADMIN_USERNAME",
        "LENDWISE_ADMIN_SECRET",
        "LENDWISE_PERSISTENCE_ERRORS",
        "LENDWISE_LOG_LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


class TestFromEnv:
    """Tests for Config.from_env."""

    def test_defaults(self):
        """Test default values."""
        config = Config.from_env()

        assert config.loan_days == 7
        assert config.fine_per_day == 10
        assert config.admin_username == "admin"
        assert config.admin_secret == "admin123"
        assert config.persistence_errors == "log"
        assert config.log_level == "WARNING"
        assert config.db_path == Path.home() / ".lendwise" / "library.db"

    def test_overrides(self, monkeypatch, tmp_path):
        """Test values are read from the environment."""
        monkeypatch.setenv("LENDWISE_DB_PATH", str(tmp_path / "lib.db"))
        monkeypatch.setenv("LENDWISE_LOAN_DAYS", "14")
        monkeypatch.setenv("LENDWISE_FINE_PER_DAY", "5")
        monkeypatch.setenv("LENDWISE_PERSISTENCE_ERRORS", "RAISE")
        monkeypatch.setenv("LENDWISE_LOG_LEVEL", "debug")

        config = Config.from_env()

        assert config.db_path == tmp_path / "lib.db"
        assert config.loan_days == 14
        assert config.fine_per_day == 5
        assert config.persistence_errors == "raise"
        assert config.log_level == "DEBUG"

    def test_bad_integer(self, monkeypatch):
        """Test a non-numeric period is rejected."""
        monkeypatch.setenv("LENDWISE_LOAN_DAYS", "a week")
        with pytest.raises(LendingConfigError):
            Config.from_env()

    def test_negative_fine(self, monkeypatch):
        """Test a negative rate is rejected."""
        monkeypatch.setenv("LENDWISE_FINE_PER_DAY", "-1")
        with pytest.raises(LendingConfigError):
            Config.from_env()

    def test_bad_log_level(self, monkeypatch):
        """Test unknown log levels are rejected."""
        monkeypatch.setenv("LENDWISE_LOG_LEVEL", "chatty")
        with pytest.raises(LendingConfigError):
            Config.from_env()

    def test_bad_policy(self, monkeypatch):
        """Test unknown persistence policies are rejected."""
        monkeypatch.setenv("LENDWISE_PERSISTENCE_ERRORS", "ignore")
        with pytest.raises(LendingConfigError):
            Config.from_env()


class TestValidate:
    """Tests for Config.validate."""

    def test_valid(self, monkeypatch, tmp_path):
        """Test a sane config has no problems."""
        monkeypatch.setenv("LENDWISE_DB_PATH", str(tmp_path / "new" / "lib.db"))
        config = Config.from_env()

        assert config.validate() == []
        assert (tmp_path / "new").exists()

    def test_zero_loan_days(self, monkeypatch, tmp_path):
        """Test a zero loan period is reported."""
        monkeypatch.setenv("LENDWISE_DB_PATH", str(tmp_path / "lib.db"))
        monkeypatch.setenv("LENDWISE_LOAN_DAYS", "0")

        assert Config.from_env().validate() == ["Loan period must be at least one day"]


class TestGlobalConfig:
    """Tests for the shared config instance."""

    def test_get_config_is_cached(self):
        """Test the same instance is returned until reset."""
        first = get_config()
        assert get_config() is first
        reset_config()
        assert get_config() is not first


class TestEngineFromConfig:
    """Tests for building an engine from config."""

    def test_from_config(self, monkeypatch, tmp_path):
        """Test settings flow into the engine."""
        monkeypatch.setenv("LENDWISE_DB_PATH", str(tmp_path / "lib.db"))
        monkeypatch.setenv("LENDWISE_LOAN_DAYS", "21")
        monkeypatch.setenv("LENDWISE_ADMIN_USERNAME", "librarian")
        monkeypatch.setenv("LENDWISE_PERSISTENCE_ERRORS", "raise")

        engine = LendingEngine.from_config(Config.from_env())

        assert engine.loan_days == 21
        assert engine.policy == PersistencePolicy.RAISE
        assert engine.authenticate("librarian", "admin123").is_admin
        assert (tmp_path / "lib.db").exists()

    def test_from_config_rejects_invalid(self, monkeypatch, tmp_path):
        """Test an invalid config never reaches the engine."""
        monkeypatch.setenv("LENDWISE_DB_PATH", str(tmp_path / "lib.db"))
        monkeypatch.setenv("LENDWISE_LOAN_DAYS", "0")

        with pytest.raises(LendingConfigError, match="Loan period"):
            LendingEngine.from_config(Config.from_env())
        assert not (tmp_path / "lib.db").exists()
