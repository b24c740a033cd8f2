"""Application configuration with validation."""

from enum import Enum
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_JWT_SECRET = "dev-insecure-key-change-me"


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


class Settings(BaseSettings):
    """
    Application settings, read from the environment and an optional ``.env``.

    Wildcard CORS and unknown log levels are rejected at load time; insecure
    production settings are rejected by ``validate_production_config``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./canoncore.db",
        description="Database connection URL"
    )
    # Pool tuning applies to PostgreSQL only.
    db_pool_size: int = Field(default=5, description="Persistent database connections")
    db_max_overflow: int = Field(default=10, description="Extra connections during bursts")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    db_pool_recycle: int = Field(default=1800, description="Seconds before a connection is recycled")

    # Authentication
    jwt_secret_key: str = Field(
        default=_DEFAULT_JWT_SECRET,
        description="Token signing secret (override in production)"
    )
    jwt_algorithm: str = Field(default="HS256")
    auth_enabled: bool = Field(
        default=False,
        description="Require signed bearer tokens (False for development)"
    )
    # With auth disabled the acting user is read from this header.
    dev_user_header: str = Field(
        default="X-User-Id",
        description="Header carrying the actor id when auth is disabled"
    )

    audit_retention_days: int = Field(
        default=365,
        description="Days to keep audit log entries (0 = keep forever)"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """Parse the comma-separated origin list. Wildcards are refused."""
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(',') if origin.strip()]

        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in CORS_ALLOWED_ORIGINS"
            )

        return origins

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ("json", "text"):
            raise ValueError("Invalid log format. Must be 'json' or 'text'")
        return v_lower

    def insecure_settings(self) -> List[str]:
        """Describe every setting that is unsafe outside development."""
        problems: list[str] = []

        if self.jwt_secret_key == _DEFAULT_JWT_SECRET:
            problems.append(
                "JWT_SECRET_KEY is using the default insecure value. "
                "Generate a secure key: openssl rand -hex 32"
            )
        if not self.auth_enabled:
            problems.append(
                "AUTH_ENABLED is false. Any caller can act as any user "
                f"through the {self.dev_user_header} header."
            )
        localhost_origins = [o for o in self.get_cors_origins() if "localhost" in o or "127.0.0.1" in o]
        if localhost_origins:
            problems.append(f"CORS allows localhost origins: {localhost_origins}.")

        return problems

    def validate_production_config(self) -> None:
        """Fail in production when security-critical settings use insecure defaults.

        Raises:
            ConfigurationError: If production config is insecure.
        """
        problems = self.insecure_settings()
        if problems and self.environment == Environment.PRODUCTION:
            raise ConfigurationError(
                "Production configuration is insecure:\n  - " + "\n  - ".join(problems)
            )


settings = Settings()
