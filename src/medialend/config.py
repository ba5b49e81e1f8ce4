"""Configuration management for medialend.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class Config:
    """Application configuration."""

    # Storage
    db_path: Path
    users_path: Path

    # Email (notifications and reminders)
    email_username: Optional[str]
    email_password: Optional[str]
    smtp_host: str
    smtp_port: int

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path = Path(
            os.environ.get(
                "MEDIALEND_DB_PATH",
                str(Path.home() / ".medialend" / "library.db"),
            )
        ).expanduser()

        users_path = Path(
            os.environ.get("MEDIALEND_USERS_PATH", str(db_path.parent / "users.txt"))
        ).expanduser()

        return cls(
            db_path=db_path,
            users_path=users_path,
            email_username=os.environ.get("EMAIL_USERNAME"),
            email_password=os.environ.get("EMAIL_PASSWORD"),
            smtp_host=os.environ.get("MEDIALEND_SMTP_HOST", "smtp.gmail.com"),
            smtp_port=int(os.environ.get("MEDIALEND_SMTP_PORT", "587")),
            log_level=os.environ.get("MEDIALEND_LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        # Check database directory is writable
        if str(self.db_path) != ":memory:" and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if not isinstance(logging.getLevelName(self.log_level), int):
            errors.append(f"Unknown log level: {self.log_level}")

        if not 0 < self.smtp_port < 65536:
            errors.append(f"Invalid SMTP port: {self.smtp_port}")

        return errors

    def has_email_config(self) -> bool:
        """Check if email credentials are present."""
        return bool(self.email_username and self.email_password)


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
