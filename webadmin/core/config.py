"""Settings for the API server and CLIs, read from the environment and an optional .env file."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# DATABASE_URL must start with one of these.
VALID_DATABASE_URL_PREFIXES = (
    "sqlite://",
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
)

# Symmetric algorithms only: the signing secret is a shared byte string.
SUPPORTED_JWT_ALGORITHMS = ("HS256", "HS384", "HS512")

DEFAULT_JWT_SECRET = "default-secret-change-me"

DEFAULT_AVATAR = "/images/avatar-default.jpg"


class Settings(BaseSettings):
    """All runtime configuration. Field names match the environment variable names."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_PREFIX: str = ""

    # SQLite file by default; any PostgreSQL URL works for shared deployments.
    DATABASE_URL: str = "sqlite:///./webadmin.db"

    # Serving
    PORT: int = 8080
    VERBOSE: bool = False
    LOG_LEVEL: str = "INFO"

    # JWT signing. Every replica must share JWT_SECRET or tokens from one are rejected by another.
    JWT_SECRET: SecretStr = SecretStr(DEFAULT_JWT_SECRET)
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 86400
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # bcrypt work factor for new hashes; existing hashes keep the cost they were made with.
    BCRYPT_ROUNDS: int = 12

    # Default admin created on first start when the users table is empty.
    SEED_DEFAULT_ADMIN: bool = True
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@example.com"
    DEFAULT_ADMIN_PASSWORD: SecretStr = SecretStr("adminpwd")
    DEFAULT_AVATAR: str = DEFAULT_AVATAR

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.strip().startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a SQLite or PostgreSQL URL "
                "(e.g. sqlite:///./webadmin.db or postgresql+psycopg2://...)"
            )
        return v.strip()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = (v or "").strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return level

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("JWT_SECRET must be set and non-empty")
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_ALGORITHM must be set and non-empty")
        alg = v.strip().upper()
        if alg not in SUPPORTED_JWT_ALGORITHMS:
            raise ValueError(
                f"JWT_ALGORITHM must be one of {', '.join(SUPPORTED_JWT_ALGORITHMS)}"
            )
        return alg

    @field_validator("ACCESS_TOKEN_EXPIRE_SECONDS")
    @classmethod
    def validate_access_token_expire_seconds(cls, v: int) -> int:
        if v < 60 or v > 604800:
            raise ValueError(
                "ACCESS_TOKEN_EXPIRE_SECONDS must be between 60 and 604800 (1 min to 7 days)"
            )
        return v

    @field_validator("REFRESH_TOKEN_EXPIRE_DAYS")
    @classmethod
    def validate_refresh_token_expire_days(cls, v: int) -> int:
        if v < 1 or v > 365:
            raise ValueError("REFRESH_TOKEN_EXPIRE_DAYS must be between 1 and 365")
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if v < 4 or v > 16:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 16")
        return v

    @field_validator("DEFAULT_ADMIN_USERNAME", "DEFAULT_ADMIN_EMAIL")
    @classmethod
    def validate_default_admin_fields(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Default admin username and email must be non-empty")
        return v.strip()

    @model_validator(mode="after")
    def refuse_default_secret_in_prod(self) -> "Settings":
        if self.APP_ENV == "prod" and self.JWT_SECRET.get_secret_value() == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be changed from the default when APP_ENV=prod")
        return self


@lru_cache
def get_settings() -> Settings:
    """Settings are parsed once per process; later calls return the same object."""
    return Settings()
