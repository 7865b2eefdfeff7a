from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Catalog API configuration, read from the environment and an optional .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    APP_NAME: str = "Catalog Category API"
    ENVIRONMENT: str = "development"  # development | staging | production
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Either a full SQLAlchemy URL or the DB_* parts below
    DATABASE_URL: Optional[str] = None
    DB_SCHEME: str = "postgresql+psycopg"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "catalog"

    # Admin bearer tokens
    JWT_SECRET_KEY: str = "change-this-secret-in-env"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 240
    JWT_ISSUER: str = "catalog-api"
    JWT_AUDIENCE: str = "catalog-admins"
    BCRYPT_ROUNDS: int = 12

    # Seeded on startup when missing
    ADMIN_USERNAME: str = "admin"
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "Admin@12345"

    # Comma-separated, e.g. "http://localhost:3000,https://admin.example.com"
    ALLOWED_ORIGINS: str = "http://localhost:3000"
    ENABLE_RATE_LIMITER: bool = True
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_STORAGE_URI: Optional[str] = None  # e.g. "redis://localhost:6379"

    CATEGORY_URL_SUFFIX: str = ".html"
    DEFAULT_STORE_ID: int = 1
    SOAP_SERVICE_NAME: str = "catalogCategoryRepositoryV1"

    @field_validator("DEBUG", "ENABLE_RATE_LIMITER", mode="before")
    def _parse_flag(cls, v):
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes", "on")
        return bool(v)

    @field_validator("CATEGORY_URL_SUFFIX", mode="before")
    def _parse_suffix(cls, v):
        return v or ""

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    def build_database_url(self) -> str:
        if self.DATABASE_URL:
            return str(self.DATABASE_URL)
        credentials = f"{self.DB_USER}:{quote_plus(self.DB_PASSWORD)}"
        return f"{self.DB_SCHEME}://{credentials}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
