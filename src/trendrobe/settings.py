from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    AUTH0_ALGORITHMS: str = "RS256"
    AUTH0_API_AUDIENCE: str | None = None
    AUTH0_DOMAIN: str | None = None
    """Auth0 tenant domain. Authentication is disabled when this is not set."""
    AUTH0_ISSUER: str | None = None
    AUTH0_SEED_USER_ID: str | None = None
    """Auth0 User ID of the user who should own the data added during database seeding."""
    DATABASE_URL: str = "sqlite:///wardrobe.db"
    """SQLAlchemy connection string."""
    DATABASE_ECHO: bool = False
    HUGGING_FACE_API_KEY: str | None = None
    HUGGING_FACE_API_URL: str = "https://api-inference.huggingface.co/models"
    INFERENCE_TIMEOUT_SECONDS: float = 30.0
    INFERENCE_CACHE_SECONDS: float = 60 * 60
    INFERENCE_CACHE_MAX_ENTRIES: int = 512
    TREND_CACHE_SECONDS: float = 60 * 60
    R2_S3_URL: str | None = None
    R2_ACCESS_KEY_ID: str | None = None
    R2_SECRET_ACCESS_KEY: str | None = None
    R2_BUCKET: str = "wardrobe-images"
    R2_PUBLIC_URL: str | None = None
    """Public base URL of the bucket. Presigned URLs are returned when this is not set."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings():
    return Settings()
