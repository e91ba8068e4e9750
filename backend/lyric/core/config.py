"""
Application Configuration

Settings class using pydantic-settings for environment variable loading.
Every value maps to a WEB_* variable except APP_ENV and FRONTEND_URL.
"""

import re
from datetime import timedelta
from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")

_UNIT_SECONDS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Any) -> timedelta:
    """
    Parse a duration written as "5s", "1m30s", "250ms", "24h" or bare seconds.

    Args:
        value: Raw setting value (string, number or timedelta)

    Returns:
        Parsed timedelta

    Raises:
        ValueError: If the value is not a valid duration
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    text = str(value).strip()
    if not text:
        raise ValueError("duration is empty")

    try:
        return timedelta(seconds=float(text))
    except ValueError:
        pass

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            raise ValueError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ValueError(f"invalid duration {text!r}")

    return timedelta(seconds=total)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For example, database_url is read from WEB_DATABASE_URL.
    """

    model_config = SettingsConfigDict(
        env_prefix="WEB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="Lyric API", description="Application name")
    version: str = Field(default="0.1.0", description="API version")
    app_env: str = Field(
        default="production",
        alias="APP_ENV",
        description="Deployment environment; selects the SMTP mailer when 'production'",
    )
    frontend_url: str = Field(
        default="http://localhost:8080",
        alias="FRONTEND_URL",
        description="Origin allowed by CORS",
    )
    log_level: str = Field(default="INFO", description="Root log level")

    # HTTP server
    http_addr: str = Field(default=":8080", description="Listen address host:port")
    shutdown_timeout: timedelta = Field(
        default=timedelta(seconds=5),
        description="Graceful shutdown drain window",
    )

    # Database
    database_url: str = Field(..., description="Database connection URL")
    database_max_conns: int = Field(default=4, description="Connection pool size")
    database_max_conn_lifetime: timedelta = Field(
        default=timedelta(minutes=30),
        description="Recycle pooled connections after this age",
    )
    database_max_conn_idle_time: timedelta = Field(
        default=timedelta(minutes=5),
        description="Maximum wait for a pooled connection",
    )
    sql_echo: bool = Field(default=False, description="Echo SQL statements")
    migrations_dir: str = Field(default="migrations", description="SQL migrations directory")

    # Admin sessions
    admin_session_secret: str = Field(..., description="HMAC key for admin session cookies")
    admin_session_cookie: str = Field(default="admin_session", description="Admin cookie name")
    admin_session_ttl: timedelta = Field(default=timedelta(hours=24), description="Admin session lifetime")
    admin_session_secure: bool = Field(default=False, description="Set the Secure cookie flag")

    # OTP login and bearer tokens
    auth_otp_length: int = Field(default=6, description="Number of digits in a login code")
    auth_otp_ttl: timedelta = Field(default=timedelta(minutes=5), description="Login code lifetime")
    auth_token_secret: str = Field(default="change-me", description="Secret key for JWT signing")
    auth_token_ttl: timedelta = Field(default=timedelta(hours=24), description="Access token lifetime")

    # SMTP
    smtp_host: str = Field(default="", description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port")
    smtp_username: str = Field(default="", description="SMTP auth username")
    smtp_password: str = Field(default="", description="SMTP auth password")
    smtp_from: str = Field(default="", description="Sender address for login codes")

    @field_validator(
        "shutdown_timeout",
        "database_max_conn_lifetime",
        "database_max_conn_idle_time",
        "admin_session_ttl",
        "auth_otp_ttl",
        "auth_token_ttl",
        mode="before",
    )
    @classmethod
    def _parse_duration(cls, value: Any) -> timedelta:
        duration = parse_duration(value)
        if duration <= timedelta(0):
            raise ValueError("duration must be positive")
        return duration

    @field_validator("database_max_conns", "auth_otp_length", "smtp_port")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("database_url", "admin_session_secret")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @property
    def async_database_url(self) -> str:
        """Database URL rewritten for the asyncpg driver when it is a plain postgres URL."""
        url = self.database_url
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return "postgresql+asyncpg://" + url[len(prefix):]
        return url

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    @property
    def use_smtp(self) -> bool:
        """SMTP delivery is only enabled in production with a host and sender configured."""
        return self.is_production and bool(self.smtp_host) and bool(self.smtp_from)

    @property
    def listen_host(self) -> str:
        host, _, _ = self.http_addr.rpartition(":")
        return host or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        _, _, port = self.http_addr.rpartition(":")
        return int(port) if port else 8080

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string to list."""
        return [origin.strip() for origin in self.frontend_url.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Uses lru_cache to ensure settings are only loaded once per process.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
