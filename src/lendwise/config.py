"""Configuration management for lendwise.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

PERSISTENCE_POLICIES = ("log", "raise")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LendingConfigError(ValueError):
    """Raised when an environment value cannot be used."""


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise LendingConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise LendingConfigError(f"{name} must not be negative, got {value}")
    return value


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Lending rules
    loan_days: int
    fine_per_day: int

    # Bootstrap admin
    admin_username: str
    admin_secret: str

    # Persistence failure policy: "log" or "raise"
    persistence_errors: str

    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "LENDWISE_DB_PATH",
            str(Path.home() / ".lendwise" / "library.db"),
        )
        db_path = Path(db_path_str).expanduser()

        policy = os.environ.get("LENDWISE_PERSISTENCE_ERRORS", "log").lower()
        if policy not in PERSISTENCE_POLICIES:
            raise LendingConfigError(
                f"LENDWISE_PERSISTENCE_ERRORS must be one of {PERSISTENCE_POLICIES}, got {policy!r}"
            )

        log_level = os.environ.get("LENDWISE_LOG_LEVEL", "WARNING").upper()
        if log_level not in LOG_LEVELS:
            raise LendingConfigError(f"LENDWISE_LOG_LEVEL must be one of {LOG_LEVELS}, got {log_level!r}")

        return cls(
            db_path=db_path,
            loan_days=_int_env("LENDWISE_LOAN_DAYS", 7),
            fine_per_day=_int_env("LENDWISE_FINE_PER_DAY", 10),
            admin_username=os.environ.get("LENDWISE_ADMIN_USERNAME", "admin"),
            admin_secret=os.environ.get("LENDWISE_ADMIN_SECRET", "admin123"),
            persistence_errors=policy,
            log_level=log_level,
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if str(self.db_path) != ":memory:" and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if self.loan_days == 0:
            errors.append("Loan period must be at least one day")

        if not self.admin_username.strip() or not self.admin_secret:
            errors.append("Admin username and secret must not be empty")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
