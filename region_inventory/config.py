"""Configuration management for the Region Inventory server.

This module handles loading and validating configuration from environment
variables with sensible defaults.
"""

from typing import Optional
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.enums import InventoryKind
from .models.errors import RetryPolicy
from .models.regions import DetectionConfig


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development.
    In production, these should be set via environment variables
    or a .env file. The configured region set itself lives in the
    separate region configuration file (``region_config_path``).
    """

    # Server Configuration
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server to",
        validation_alias=AliasChoices("REGION_INVENTORY_HOST", "HOST")
    )
    port: int = Field(
        default=8080,
        description="Port to run the server on",
        validation_alias=AliasChoices("REGION_INVENTORY_PORT", "PORT")
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LOG_LEVEL"
    )
    environment: str = Field(
        default="development",
        description="Environment name (development, staging, production)",
        validation_alias=AliasChoices("ENVIRONMENT", "ENV")
    )

    # AWS Configuration
    aws_region: str = Field(
        default="us-east-1",
        description="Fallback region when none is configured",
        validation_alias=AliasChoices("REGION_INVENTORY_DEFAULT_REGION", "AWS_DEFAULT_REGION")
    )
    aws_access_key_id: Optional[str] = Field(
        default=None,
        description="Access key id (optional, default boto3 chain otherwise)",
        validation_alias="AWS_ACCESS_KEY_ID"
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        description="Secret access key (optional)",
        validation_alias="AWS_SECRET_ACCESS_KEY"
    )
    aws_session_token: Optional[str] = Field(
        default=None,
        description="Session token for temporary credentials (optional)",
        validation_alias="AWS_SESSION_TOKEN"
    )

    # Storage Configuration
    region_config_path: str = Field(
        default=".env.local",
        description="Path to the dotenv file holding the configured regions",
        validation_alias=AliasChoices("REGION_CONFIG_PATH", "REGION_CONFIG_FILE")
    )
    region_config_key: str = Field(
        default="AWS_REGION",
        description="Key of the region list in the region configuration file",
        validation_alias="REGION_CONFIG_KEY"
    )
    cache_file_path: str = Field(
        default="data/cache.json",
        description="Path to the JSON cache file",
        validation_alias=AliasChoices("CACHE_FILE_PATH", "CACHE_PATH")
    )

    # Discovery Configuration
    discovery_time_period_months: int = Field(
        default=1,
        ge=1,
        description="Months of Cost Explorer usage to inspect",
        validation_alias="DISCOVERY_TIME_PERIOD_MONTHS"
    )
    discovery_include_current_month: bool = Field(
        default=True,
        description="Inspect the current month to date instead of the previous month",
        validation_alias="DISCOVERY_INCLUDE_CURRENT_MONTH"
    )
    discovery_retention_days: int = Field(
        default=30,
        ge=1,
        description="Days an old discovery record is kept before cleanup",
        validation_alias="DISCOVERY_RETENTION_DAYS"
    )

    # Retry Configuration
    retry_max_retries: int = Field(
        default=2,
        ge=0,
        description="Retries after the first attempt of an AWS call",
        validation_alias="RETRY_MAX_RETRIES"
    )
    retry_base_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Backoff delay before the first retry",
        validation_alias="RETRY_BASE_DELAY_MS"
    )
    retry_max_delay_ms: int = Field(
        default=5000,
        ge=0,
        description="Upper bound for a single backoff delay",
        validation_alias="RETRY_MAX_DELAY_MS"
    )
    retry_backoff_multiplier: float = Field(
        default=2.0,
        gt=1.0,
        description="Backoff growth factor per attempt",
        validation_alias="RETRY_BACKOFF_MULTIPLIER"
    )

    # Inventory Configuration
    inventory_kinds: str = Field(
        default="ec2,lambda,rds",
        description="Comma-separated resource kinds to inventory (ec2, lambda, rds)",
        validation_alias="INVENTORY_KINDS"
    )

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix for environment variables
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def credentials(self) -> dict[str, str] | None:
        """Explicit boto3 credentials, or None to use the default chain."""
        if not (self.aws_access_key_id and self.aws_secret_access_key):
            return None
        creds = {
            "aws_access_key_id": self.aws_access_key_id,
            "aws_secret_access_key": self.aws_secret_access_key,
        }
        if self.aws_session_token:
            creds["aws_session_token"] = self.aws_session_token
        return creds

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.retry_max_retries,
            base_delay_ms=self.retry_base_delay_ms,
            max_delay_ms=self.retry_max_delay_ms,
            backoff_multiplier=self.retry_backoff_multiplier,
        )

    @property
    def detection_config(self) -> DetectionConfig:
        return DetectionConfig(
            time_period_months=self.discovery_time_period_months,
            include_current_month=self.discovery_include_current_month,
            retry_policy=self.retry_policy,
        )

    @property
    def kinds(self) -> list[InventoryKind]:
        """
        Parsed ``inventory_kinds``.

        Raises:
            ValueError: If a kind is not one of ec2, lambda, rds
        """
        tokens = [token.strip().lower() for token in self.inventory_kinds.split(",")]
        return list(dict.fromkeys(InventoryKind(token) for token in tokens if token))


def get_settings() -> Settings:
    """
    Get application settings.

    Loads settings from environment variables and .env file.

    Returns:
        Settings instance with all configuration values
    """
    return Settings()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def settings() -> Settings:
    """
    Get the global settings instance.

    Creates the settings instance on first call and caches it.

    Returns:
        Global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
