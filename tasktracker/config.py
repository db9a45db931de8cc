"""Task tracker configuration settings."""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # Database
    DATABASE_URL: Optional[str] = None

    # JWT (tokens are issued elsewhere, we only decode them)
    JWT_SECRET_KEY: str = Field(default="dev-secret-key-change-me")
    JWT_ALGORITHM: str = "HS256"

    # Application
    APP_NAME: str = "tasktracker"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Tasks
    RECENT_TASKS_LIMIT: int = 5

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @property
    def cors_origins_list(self) -> List[str]:
        """Return the configured CORS origins as a sanitized list."""

        if not self.CORS_ORIGINS:
            return []

        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
