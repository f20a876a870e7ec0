"""Application configuration loaded from environment variables."""

from datetime import date
from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_PREFIX: str = "/api"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "logs"
    LOG_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5

    # Firebase service account (Firestore + Auth admin SDK)
    FIREBASE_PROJECT_ID: str | None = None
    FIREBASE_CLIENT_EMAIL: str | None = None
    FIREBASE_PRIVATE_KEY: SecretStr | None = None
    # Web API key; required only for POST /auth/login (password sign-in)
    FIREBASE_WEB_API_KEY: SecretStr | None = None
    IDENTITY_TOOLKIT_URL: str = "https://identitytoolkit.googleapis.com/v1"
    IDENTITY_REQUEST_TIMEOUT_SEC: float = 10.0

    # S3 image storage
    AWS_REGION: str = "eu-central-1"
    AWS_ACCESS_KEY_ID: str | None = None
    AWS_SECRET_ACCESS_KEY: SecretStr | None = None
    AWS_S3_BUCKET_NAME: str = "car-marketplace-images"
    S3_KEY_PREFIX: str = "car-images"
    S3_PRESIGNED_URL_EXPIRES_SEC: int = 3600
    S3_UPLOAD_MAX_WORKERS: int = 4

    # Listing browse
    CARS_DEFAULT_LIMIT: int = 20
    CARS_MAX_LIMIT: int = 100
    # Upper bound on matches fetched per browse request; `total` never exceeds it
    CARS_SEARCH_MAX_RESULTS: int = 500

    # Full-range defaults of the search filters; a bound equal to its default is not applied
    FILTER_MIN_PRICE: int = 0
    FILTER_MAX_PRICE: int = 100_000
    FILTER_MIN_YEAR: int = 1990
    FILTER_MAX_YEAR: int | None = None

    # Listing form
    FORM_REDIRECT_DELAY_SEC: float = 2.0
    UNAUTHORIZED_REDIRECT_DELAY_SEC: float = 3.0

    @property
    def filter_max_year(self) -> int:
        """Upper year bound of the filter range; the current year unless configured."""
        return self.FILTER_MAX_YEAR or date.today().year

    @field_validator("API_PREFIX")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            raise ValueError("API_PREFIX must start with '/' (e.g. /api)")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}")
        return level

    @field_validator("FIREBASE_PRIVATE_KEY")
    @classmethod
    def unescape_private_key(cls, v: SecretStr | None) -> SecretStr | None:
        # Keys pasted into .env files usually carry literal "\n" sequences.
        if v is None or not v.get_secret_value().strip():
            return None
        return SecretStr(v.get_secret_value().replace("\\n", "\n"))

    @field_validator("IDENTITY_TOOLKIT_URL")
    @classmethod
    def validate_identity_toolkit_url(cls, v: str) -> str:
        s = v.strip().rstrip("/")
        if not (s.lower().startswith("http://") or s.lower().startswith("https://")):
            raise ValueError("IDENTITY_TOOLKIT_URL must use http or https")
        return s

    @field_validator("IDENTITY_REQUEST_TIMEOUT_SEC")
    @classmethod
    def validate_identity_timeout(cls, v: float) -> float:
        if v <= 0 or v > 60:
            raise ValueError(
                "IDENTITY_REQUEST_TIMEOUT_SEC must be greater than 0 and at most 60"
            )
        return v

    @field_validator("AWS_S3_BUCKET_NAME", "AWS_REGION")
    @classmethod
    def validate_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("AWS_REGION and AWS_S3_BUCKET_NAME must be set and non-empty")
        return v.strip()

    @field_validator("S3_KEY_PREFIX")
    @classmethod
    def validate_key_prefix(cls, v: str) -> str:
        return v.strip().strip("/")

    @field_validator("S3_PRESIGNED_URL_EXPIRES_SEC")
    @classmethod
    def validate_presign_expiry(cls, v: int) -> int:
        # SigV4 presigned URLs are capped at 7 days.
        if v < 1 or v > 604800:
            raise ValueError(
                "S3_PRESIGNED_URL_EXPIRES_SEC must be between 1 and 604800 (7 days)"
            )
        return v

    @field_validator("S3_UPLOAD_MAX_WORKERS")
    @classmethod
    def validate_upload_workers(cls, v: int) -> int:
        if v < 1 or v > 32:
            raise ValueError("S3_UPLOAD_MAX_WORKERS must be between 1 and 32")
        return v

    @field_validator("CARS_DEFAULT_LIMIT", "CARS_MAX_LIMIT")
    @classmethod
    def validate_limits(cls, v: int) -> int:
        if v < 1 or v > 1000:
            raise ValueError("CARS_DEFAULT_LIMIT and CARS_MAX_LIMIT must be between 1 and 1000")
        return v

    @field_validator("CARS_SEARCH_MAX_RESULTS")
    @classmethod
    def validate_search_cap(cls, v: int) -> int:
        if v < 1 or v > 10000:
            raise ValueError("CARS_SEARCH_MAX_RESULTS must be between 1 and 10000")
        return v

    @field_validator("FORM_REDIRECT_DELAY_SEC", "UNAUTHORIZED_REDIRECT_DELAY_SEC")
    @classmethod
    def validate_redirect_delay(cls, v: float) -> float:
        if v < 0 or v > 60:
            raise ValueError("Redirect delays must be between 0 and 60 seconds")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
