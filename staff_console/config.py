from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STAFF_CONSOLE_", env_file=".env", extra="ignore")

    PROJECT_NAME: str = "EMS Portal"
    ENVIRONMENT: str = "development"

    # Backend REST service
    API_BASE_URL: str = "http://localhost:8081/api"
    API_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # Session cookie (holds the persisted user / token pair)
    SECRET_KEY: str = "change-this-session-secret"
    SESSION_COOKIE: str = "staff_console_session"
    SESSION_MAX_AGE_SECONDS: int = 7 * 24 * 60 * 60
    HTTPS_ONLY: bool = False

    # Rate limiting for the public auth forms
    LOGIN_RATE_LIMIT: str = "5/minute"

    # Leave allowances shown on the my-leave page
    ANNUAL_LEAVE_DAYS: int = 15
    SICK_LEAVE_DAYS: int = 10

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
