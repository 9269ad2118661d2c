from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
import os


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=os.getenv("ENV_FILE", ".env"), extra="ignore")

    app_name: str = Field(default="experience_roster_api")
    app_env: str = Field(default="dev")
    log_level: str = Field(default="INFO")
    api_prefix: str = Field(default="/api")
    cors_origins: list[str] = Field(
        default=["http://localhost:4200", "http://127.0.0.1:4200"]
    )
    version: str = Field(default="0.1.0")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
