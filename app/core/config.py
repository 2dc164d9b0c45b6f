from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "AI Action Orchestrator"
    app_env: str = "dev"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = Field(default=False, alias="LOG_JSON")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    backend_base_url: str = Field(default="http://localhost:8300", alias="BACKEND_BASE_URL")
    backend_api_key: str = Field(default="", alias="BACKEND_API_KEY")
    backend_timeout_seconds: float = Field(default=20.0, alias="BACKEND_TIMEOUT_SECONDS")

    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    idempotency_ttl_seconds: int = Field(default=600, alias="IDEMPOTENCY_TTL_SECONDS")

    local_timezone: str = Field(default="UTC", alias="LOCAL_TIMEZONE")
    trainer_id: str = Field(default="", alias="TRAINER_ID")
    result_display_seconds: float = Field(default=5.0, alias="RESULT_DISPLAY_SECONDS")
    conversation_idle_seconds: float = Field(default=1800.0, alias="CONVERSATION_IDLE_SECONDS")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
