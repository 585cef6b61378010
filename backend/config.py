"""Application configuration using pydantic-settings."""

from decimal import Decimal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./lots.db"
    DB_TIMEOUT_SECONDS: float = 5.0

    # Accounting rules
    ALLOCATION_TOLERANCE: Decimal = Decimal("0.01")
    OPTION_CONTRACT_MULTIPLIER: int = 100

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    @field_validator("ALLOCATION_TOLERANCE")
    @classmethod
    def validate_tolerance(cls, v: Decimal) -> Decimal:
        """Proportion tolerance is an absolute distance from 1.0."""
        if v < 0:
            raise ValueError(f"ALLOCATION_TOLERANCE must be >= 0, got {v}")
        return v

    @field_validator("OPTION_CONTRACT_MULTIPLIER")
    @classmethod
    def validate_multiplier(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"OPTION_CONTRACT_MULTIPLIER must be positive, got {v}")
        return v


settings = Settings()
