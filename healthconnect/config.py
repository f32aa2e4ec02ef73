# healthconnect/config.py - Configuration management
from dotenv import load_dotenv

load_dotenv()
from decimal import Decimal
from typing import Dict, Union
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


DEFAULT_CONSULTATION_FEES = {
    "video_call": Decimal("50.00"),
    "phone_call": Decimal("40.00"),
    "chat": Decimal("30.00"),
}


class Settings(BaseSettings):
    """Application settings with validation and environment variable support (Pydantic V2 Syntax)"""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="allow",
        case_sensitive=False
    )

    # Application
    app_name: str = Field(default="HealthConnect Consultation Service", alias="APP_NAME")
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database
    database_url: str = Field(..., alias="DATABASE_URL")

    # Security
    secret_key: str = Field(..., alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # CORS
    cors_origins: Union[str, list[str]] = Field(default=["http://localhost:5173", "http://localhost:8080"], alias="CORS_ORIGINS")

    # Identities whose profile is materialized with the admin role
    bootstrap_admin_emails: Union[str, list[str]] = Field(default=[], alias="BOOTSTRAP_ADMIN_EMAILS")

    # Default amount charged per consultation kind
    consultation_fees: Dict[str, Decimal] = Field(default_factory=lambda: dict(DEFAULT_CONSULTATION_FEES), alias="CONSULTATION_FEES")

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    auth_rate_limit: str = Field(default="10/minute", alias="AUTH_RATE_LIMIT")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    # Seed the hospital directory and bank accounts on startup
    seed_sample_data: bool = Field(default=True, alias="SEED_SAMPLE_DATA")

    # --- Pydantic V2 Validators ---
    @field_validator("cors_origins", mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            if not v.strip():
                return ["http://localhost:5173", "http://localhost:8080"]
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    @field_validator("bootstrap_admin_emails", mode='before')
    @classmethod
    def parse_bootstrap_admin_emails(cls, v):
        if isinstance(v, str):
            v = v.split(',')
        return [email.strip().lower() for email in v if email and email.strip()]

    @field_validator("consultation_fees")
    @classmethod
    def validate_consultation_fees(cls, v):
        missing = set(DEFAULT_CONSULTATION_FEES) - set(v)
        if missing:
            raise ValueError(f"CONSULTATION_FEES is missing kinds: {', '.join(sorted(missing))}")
        if any(amount < 0 for amount in v.values()):
            raise ValueError("CONSULTATION_FEES amounts must be non-negative")
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        if not v:
            raise ValueError("DATABASE_URL is required")
        if not v.startswith(("postgresql://", "postgresql+psycopg2://", "sqlite://")):
            raise ValueError("DATABASE_URL must be a valid PostgreSQL or SQLite URL")
        return v

    @field_validator("secret_key")
    @classmethod
    def validate_key_length(cls, v):
        if not v or len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def is_bootstrap_admin(self, email: str) -> bool:
        return bool(email) and email.strip().lower() in self.bootstrap_admin_emails

    def fee_for(self, consultation_type: str) -> Decimal:
        return self.consultation_fees[consultation_type]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()

# Note: Do not instantiate settings at import time to avoid failing
# on missing environment variables. Use `get_settings()` instead.
