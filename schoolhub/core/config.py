from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "schoolhub"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: str = "http://localhost:3000"

    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT_SECONDS: int = 10
    DB_ECHO: bool = False

    # List endpoints
    DEFAULT_PAGE_LIMIT: int = 25
    MAX_PAGE_LIMIT: int = 100

    # Regeneration attempts when a freshly generated user id collides on insert
    USER_ID_MAX_ATTEMPTS: int = 3

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
