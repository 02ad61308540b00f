"""
Configuration management using Pydantic for validation.

Supports loading from:
- YAML files (primary)
- Environment variables with HOMEALERT_ prefix
"""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from homealert.errors import ConfigurationError


class StoreSettings(BaseModel):
    """Alert store configuration."""

    backend: Literal["sqlite", "firestore"] = Field(
        default="sqlite",
        description="Store backend: 'sqlite' (relational) or 'firestore' (document)",
    )

    # SQLite settings (used when backend="sqlite")
    db_path: Path = Field(
        default=Path("./alerts.sqlite3"),
        description="Path to SQLite database holding alert_log and user_homes",
    )

    # Firestore settings (used when backend="firestore")
    firestore_project: str | None = Field(
        default=None,
        description="GCP project ID for Firestore (required when backend=firestore)",
    )
    alerts_collection: str = Field(
        default="alert_log",
        description="Firestore collection holding alerts",
    )
    homes_collection: str = Field(
        default="user_homes",
        description="Firestore collection holding home/user links",
    )

    @field_validator("db_path", mode="before")
    @classmethod
    def parse_db_path(cls, v):
        """Convert string path to Path object."""
        if isinstance(v, str):
            return Path(v)
        return v


class IdentitySettings(BaseModel):
    """Identity provider (Clerk) configuration."""

    secret_key: str | None = Field(
        default=None,
        description="Clerk backend secret key",
    )
    api_url: str = Field(
        default="https://api.clerk.com/v1",
        description="Clerk Backend API base URL",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout for user lookups",
    )


class SmtpSettings(BaseModel):
    """SMTP configuration for the smtp email provider."""

    host: str = Field(
        description="SMTP server hostname (e.g., smtp.gmail.com)",
    )
    port: int = Field(
        default=587,
        ge=1,
        le=65535,
        description="SMTP server port (587 for TLS, 465 for SSL)",
    )
    username: str = Field(
        description="SMTP authentication username",
    )
    password: str = Field(
        description="SMTP authentication password (use app-specific password)",
    )
    use_tls: bool = Field(
        default=True,
        description="Use STARTTLS encryption",
    )


class EmailSettings(BaseModel):
    """Email delivery configuration."""

    provider: Literal["resend", "smtp"] = Field(
        default="resend",
        description="Email delivery provider",
    )
    resend_api_key: str | None = Field(
        default=None,
        description="Resend API key (required when provider=resend)",
    )
    smtp: SmtpSettings | None = Field(
        default=None,
        description="SMTP settings (required when provider=smtp)",
    )
    sender: str = Field(
        default="Smart Home Alerts <notifications@example.com>",
        description="From address for alert emails",
    )


class BrokerSettings(BaseModel):
    """Message broker (Redis pub/sub) configuration."""

    host: str | None = Field(
        default=None,
        description="Broker hostname",
    )
    port: int = Field(
        default=6379,
        ge=1,
        le=65535,
    )
    username: str | None = Field(default=None)
    password: str | None = Field(default=None)
    use_tls: bool = Field(default=False)
    channel: str = Field(
        default="notification",
        description="Channel that devices publish alerts to",
    )
    listen_seconds: float = Field(
        default=58.0,
        gt=0,
        description="Length of one listening window before the subscription is closed",
    )


class Settings(BaseSettings):
    """
    Main application settings.

    Can be loaded from:
    - YAML file: Settings.from_yaml("config.yaml")
    - Environment variables: HOMEALERT_IDENTITY__SECRET_KEY=sk_live_...
    """

    model_config = SettingsConfigDict(
        env_prefix="HOMEALERT_",
        env_nested_delimiter="__",
        extra="ignore",  # Ignore unknown fields for forward compatibility
    )

    store: StoreSettings = Field(default_factory=StoreSettings)
    identity: IdentitySettings = Field(default_factory=IdentitySettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    broker: BrokerSettings = Field(default_factory=BrokerSettings)
    batch_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum alerts processed per batch invocation",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    @model_validator(mode="after")
    def validate_store_config(self) -> "Settings":
        """Validate that required fields are set for the chosen store backend."""
        if self.store.backend == "firestore" and not self.store.firestore_project:
            raise ValueError("firestore_project is required when store.backend='firestore'")
        return self

    def missing_credentials(self, include_broker: bool = False) -> list[str]:
        """
        List the required credentials that are not configured.

        Args:
            include_broker: Also check broker host and credentials

        Returns:
            Human-readable names of missing items, in check order
        """
        missing = []
        if self.store.backend == "firestore" and not self.store.firestore_project:
            missing.append("Firestore project")
        if not self.identity.secret_key:
            missing.append("Clerk secret key")
        if self.email.provider == "resend" and not self.email.resend_api_key:
            missing.append("Resend API key")
        if self.email.provider == "smtp" and self.email.smtp is None:
            missing.append("SMTP settings")
        if include_broker:
            if not self.broker.host:
                missing.append("Broker host")
            if not self.broker.username or not self.broker.password:
                missing.append("Broker credentials")
        return missing

    def require_credentials(self, include_broker: bool = False) -> None:
        """
        Fail fast when a required credential is missing.

        Raises:
            ConfigurationError: Naming the first missing item
        """
        missing = self.missing_credentials(include_broker=include_broker)
        if missing:
            raise ConfigurationError(f"{missing[0]} missing.")

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Settings":
        """
        Load settings from a YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Settings instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
