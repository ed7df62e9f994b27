"""Application configuration."""
from pydantic_settings import BaseSettings
from functools import lru_cache


DEFAULT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """Application settings."""

    # App
    APP_NAME: str = "Military Asset Management"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    SECRET_KEY: str = DEFAULT_SECRET
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Database
    # SQLite keeps local development dependency-free; production points at PostgreSQL.
    DATABASE_URL: str = "sqlite:///./military_assets.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # JWT
    JWT_SECRET_KEY: str = DEFAULT_SECRET
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60
    JWT_LEEWAY_SECONDS: int = 30  # clock skew tolerance for exp validation

    # Password policy
    PASSWORD_MIN_LENGTH: int = 6
    PASSWORD_MAX_LENGTH: int = 72  # bcrypt only hashes the first 72 bytes
    TEMP_PASSWORD_LENGTH: int = 16

    # Dashboard / listing limits
    RECENT_ACTIVITY_LIMIT: int = 5
    ACTIVITY_FEED_LIMIT: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
