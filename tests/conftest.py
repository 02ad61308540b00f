"""Shared pytest fixtures for homealert tests."""

import tempfile
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from homealert.config import Settings
from homealert.database import Database
from homealert.identity import LookupResult, LookupStatus, UserProfile
from homealert.pipeline import BatchPipeline

SENDER = "Smart Home Alerts <notifications@example.com>"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


@pytest.fixture
def mock_db_path(temp_dir: Path) -> Path:
    """Create a temporary SQLite database path."""
    return temp_dir / "test_alerts.sqlite3"


@pytest.fixture
def db(mock_db_path: Path) -> Generator[Database, None, None]:
    """A real SQLite alert store in a temp directory."""
    database = Database(str(mock_db_path))
    yield database
    database.close()


@pytest.fixture
def identity_client() -> MagicMock:
    """Identity client that knows nobody unless a test says otherwise."""
    client = MagicMock()
    client.get_user.return_value = LookupResult(LookupStatus.NOT_FOUND)
    return client


@pytest.fixture
def email_sender() -> MagicMock:
    """Email sender that accepts every message."""
    sender = MagicMock()
    sender.send.return_value = "delivery-1"
    return sender


@pytest.fixture
def pipeline(db: Database, identity_client: MagicMock, email_sender: MagicMock) -> BatchPipeline:
    return BatchPipeline(db, identity_client, email_sender, sender_address=SENDER)


@pytest.fixture
def found_user():
    """Builder for FOUND lookup results."""

    def build(user_id: str, email: str | None, first_name: str | None = None) -> LookupResult:
        return LookupResult(
            LookupStatus.FOUND,
            profile=UserProfile(user_id=user_id, first_name=first_name, primary_email=email),
        )

    return build


@pytest.fixture
def sample_config_dict(temp_dir: Path) -> dict:
    """Sample configuration dictionary with every required credential."""
    return {
        "store": {"backend": "sqlite", "db_path": str(temp_dir / "alerts.sqlite3")},
        "identity": {"secret_key": "sk_test_123"},
        "email": {"provider": "resend", "resend_api_key": "re_test_123"},
        "broker": {
            "host": "broker.example.com",
            "username": "device",
            "password": "secret",
        },
        "log_level": "INFO",
    }


@pytest.fixture
def settings(sample_config_dict: dict) -> Settings:
    return Settings(**sample_config_dict)


@pytest.fixture
def sample_config_yaml(temp_dir: Path, sample_config_dict: dict) -> Path:
    """Create a temporary YAML config file."""
    import yaml

    config_path = temp_dir / "test_config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config_dict, f)
    return config_path


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration between tests."""
    import logging

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level

    yield

    root_logger.handlers = original_handlers
    root_logger.level = original_level
