from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production", "test"] = "local"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./canteen.db"
    DB_ECHO: bool = False
    AUTO_CREATE_TABLES: bool = True
    SEED_DEMO_USERS: bool = True

    # Identity
    # The owner logs in with a fixed secret; students log in with the
    # digit run (PRN) embedded in their email address.
    OWNER_EMAIL: str = "canteen@vit.edu"
    OWNER_SECRET: str = "canteen"
    STUDENT_EMAIL_DOMAIN: str = "vit.edu"
    PRN_LENGTH: int = 10

    # Tokens issued at login
    JWT_SECRET: str = "dev-canteen-jwt-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 12

    # Orders
    TAX_RATE: float = 0.05
    ORDER_VALIDITY_HOURS: int = 2
    TOTAL_POLICY: Literal["trust", "flag", "reject"] = "flag"

    # Polling clients
    POLL_INTERVAL_SECONDS: float = 3.0

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: str) -> str:
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+psycopg://", 1)
        if v.startswith("sqlite:///"):
            return v.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return v

    @field_validator("OWNER_EMAIL", "STUDENT_EMAIL_DOMAIN")
    @classmethod
    def lowercase_addresses(cls, v: str) -> str:
        return v.strip().lower()


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
