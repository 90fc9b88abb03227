"""Application configuration."""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Clinic Appointments API", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development", alias="ENVIRONMENT"
    )
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Database
    database_url: str = Field(..., alias="DATABASE_URL")
    database_command_timeout: float = Field(
        default=10.0,
        gt=0,
        alias="DATABASE_COMMAND_TIMEOUT",
        description="Seconds before a single statement is abandoned",
    )

    # Redis (backs the public rate limiter only)
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_username: str | None = Field(default=None, alias="REDIS_USERNAME")
    redis_password: str = Field(default="", alias="REDIS_PASSWORD")
    redis_decode_responses: bool = Field(default=True, alias="REDIS_DECODE_RESPONSES")
    redis_socket_timeout: float = Field(default=0.5, gt=0, alias="REDIS_SOCKET_TIMEOUT")

    # Staff JWT verification
    jwt_secret_key: str = Field(..., min_length=16, alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_issuer: str = Field(default="clinic-appointments", alias="JWT_ISSUER")
    access_token_expire_minutes: int = Field(default=30, ge=1, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Public confirmation links
    public_base_url: str = Field(
        default="http://localhost:3000",
        alias="PUBLIC_BASE_URL",
        description="Base URL of the patient-facing site that hosts /confirm/{token}",
    )
    public_rate_limit_per_minute: int = Field(
        default=30, ge=1, alias="PUBLIC_RATE_LIMIT_PER_MINUTE"
    )

    # Clinic calendar
    clinic_timezone: str = Field(
        default="UTC",
        alias="CLINIC_TIMEZONE",
        description="IANA zone of the clinic; appointment dates and report periods are local to it",
    )

    # CORS
    cors_origins_str: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", alias="LOG_FORMAT")

    @field_validator("clinic_timezone")
    @classmethod
    def validate_clinic_timezone(cls, v: str) -> str:
        """Reject zone keys unknown to the tz database."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @property
    def cors_origins(self) -> list[str]:
        """Comma-separated CORS_ORIGINS as a list."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    def confirmation_url(self, token: str) -> str:
        """Build the patient-facing confirmation link for a token."""
        return f"{self.public_base_url.rstrip('/')}/confirm/{token}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance
settings = get_settings()
