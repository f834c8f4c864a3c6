from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Active session label, e.g. "2025-26". Only this year's fees are live-propagated.
    academic_year: str = Field("2025-26", alias="ACADEMIC_YEAR")

    persistence_timeout_seconds: float = Field(10.0, gt=0, alias="PERSISTENCE_TIMEOUT_SECONDS")
    fee_revision_concurrency: int = Field(5, ge=1, alias="FEE_REVISION_CONCURRENCY")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    seed_admin_username: Optional[str] = Field(None, alias="SEED_ADMIN_USERNAME")
    seed_admin_password: Optional[str] = Field(None, alias="SEED_ADMIN_PASSWORD")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
