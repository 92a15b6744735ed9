from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App
    APP_ENV: str = "development"
    APP_BASE_URL: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:3000"
    CORS_ORIGINS: str = "http://localhost:3000"

    # Error monitoring
    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    # Scheduling API (system of record for attendees / schedules)
    SCHEDULING_API_URL: str = "http://localhost:5000/api"
    SCHEDULING_API_TOKEN: str = ""
    SCHEDULING_API_TIMEOUT: float = 15.0
    SCHEDULING_API_PAGE_SIZE: int = 100

    # Import pipeline
    IMPORT_MAX_FILE_BYTES: int = 10 * 1024 * 1024
    IMPORT_PROGRESS_BATCH_SIZE: int = 50
    IMPORT_MAX_JOBS: int = 100

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    IMPORT_RATE_LIMIT: str = "30/minute"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
