"""Application settings using Pydantic Settings for environment variable management."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # GitHub Configuration
    # Note: GitHub Actions doesn't allow env var names starting with GITHUB_
    # so we read the GH_* / APP_* / WEBHOOK_SECRET variants
    github_token: str | None = Field(
        default=None,
        validation_alias="GH_TOKEN",
        description="GitHub personal access token (used when no GitHub App is configured)",
    )
    github_webhook_secret: str | None = Field(
        default=None,
        validation_alias="WEBHOOK_SECRET",
        description="GitHub webhook secret for signature verification",
    )

    # GitHub App Configuration
    github_app_id: str | None = Field(
        default=None, validation_alias="APP_ID", description="GitHub App ID"
    )
    github_app_installation_id: str | None = Field(
        default=None,
        validation_alias="APP_INSTALLATION_ID",
        description="GitHub App Installation ID",
    )
    github_app_private_key_path: str | None = Field(
        default=None,
        validation_alias="APP_PRIVATE_KEY_PATH",
        description="Path to GitHub App private key .pem file",
    )
    github_app_private_key: str | None = Field(
        default=None,
        validation_alias="APP_PRIVATE_KEY",
        description="GitHub App private key content (alternative to file path)",
    )
    github_app_bot_login: str | None = Field(
        default=None,
        validation_alias="APP_BOT_LOGIN",
        description="Login of the bot account (e.g. my-app[bot]); looked up when unset",
    )

    # Observability
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token for observability"
    )

    # Application Settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Application environment"
    )

    # Approval Configuration
    approve_config_path: str = Field(
        default="approve.yaml",
        description="YAML file with per-repository approve options",
    )
    approved_label: str = Field(
        default="approved", description="Label kept in sync with approval state"
    )
    owners_filename: str = Field(
        default="OWNERS", description="Name of the files listing directory approvers"
    )
    commands_help_url: str = Field(
        default="https://go.k8s.io/bot-commands",
        description="Link to the list of accepted bot commands",
    )

    # Server Configuration
    # Use a localhost default to avoid binding to all interfaces.
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # Redis / Worker Configuration
    redis_url: str | None = Field(
        default=None, description="Redis connection URL (overrides host/port)"
    )
    redis_host: str = Field(default="localhost", description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_password: str | None = Field(default=None, description="Redis password")
    worker_name: str = Field(
        default="approve-worker", description="Base name for rq workers"
    )
    worker_job_timeout: int = Field(
        default=300, description="Timeout in seconds for a reconciliation job"
    )
    worker_with_scheduler: bool = Field(
        default=True, description="Run the rq scheduler (needed for retries)"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def github_app_configured(self) -> bool:
        """Check whether GitHub App credentials are present."""
        return bool(self.github_app_id and self.github_app_installation_id)


# Global settings instance
settings = Settings()

# Validate required secrets in production to avoid silent failures
if settings.is_production:
    missing = []
    if not settings.github_token and not settings.github_app_configured:
        missing.append("GH_TOKEN or APP_ID/APP_INSTALLATION_ID")
    if not settings.github_webhook_secret:
        missing.append("WEBHOOK_SECRET")
    if missing:
        raise RuntimeError(
            "Missing required environment variables for production: "
            + ", ".join(missing)
        )
