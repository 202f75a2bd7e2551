"""
Configuration management for CarbonLens using Pydantic Settings.

Loads configuration from environment variables with type validation and sane defaults.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = Field(default="development", description="Environment: development, staging, production")
    debug: bool = Field(default=False, description="Debug mode")

    # Caching
    cache_enabled: bool = Field(default=True, description="Enable tercile / carbon price memoization")

    # Valuation (DCF methodology)
    dcf_discount_rate: float = Field(default=0.08, gt=0.0, description="Discount rate (WACC) for the DCF carbon price")
    dcf_horizon_years: int = Field(default=30, ge=1, description="Years of carbon cost discounted in the DCF carbon price")

    # Winsorization
    winsorize_min_group_size: int = Field(
        default=10,
        ge=0,
        description="Groups must have more members than this before winsorization is applied",
    )
    default_winsorize_percentile: int = Field(default=5, ge=0, le=50, description="Default tail percentile")

    # Logging
    log_level: str = Field(default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR")
    log_format: str = Field(default="text", description="Log format: json or text")
    log_file: str = Field(default="", description="Log file path (empty disables the file sink)")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Uppercase the log level so loguru and stdlib logging agree."""
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only json and text renderers are available."""
        v_lower = v.lower()
        if v_lower not in ("json", "text"):
            raise ValueError(f"Invalid log_format '{v}'. Must be 'json' or 'text'")
        return v_lower

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"


# Global settings instance
settings = Settings()
