"""Application settings and configuration."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "refpoints"
    env: str = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    allowed_origins: str = "http://localhost:5173"

    # Database
    database_url: str = "sqlite:///./refpoints.db"

    # Points
    cap_redemption_discount: bool = Field(
        default=False,
        description="Clamp the combined redemption discount to 100%",
    )
    referral_code_length: int = Field(default=8, ge=4, le=20)
    referral_points_rate: float = Field(
        default=0.1,
        description="Points a referrer earns per currency unit of a referred purchase",
    )

    # Rate limiting (None means on in production only)
    rate_limit_enabled: bool | None = None
    rate_limit_default: str = "200/minute"
    referral_code_lookup_limit: str = "30/minute"

    @property
    def rate_limiting_active(self) -> bool:
        if self.rate_limit_enabled is not None:
            return self.rate_limit_enabled
        return self.env == "production"


# Global settings instance
settings = Settings()
