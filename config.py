"""
Runtime configuration

Values come from environment variables (and an optional .env file).
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class ConfigError(RuntimeError):
    """Raised when configuration cannot be loaded safely."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    database_url: Optional[str] = Field(None, validation_alias="DATABASE_URL")
    database_name: str = Field("directory", validation_alias="DATABASE_NAME")
    admin_token: str = Field("", validation_alias="ADMIN_TOKEN")

    environment: Literal["development", "staging", "production"] = Field(
        "development",
        validation_alias=AliasChoices("APP_ENV", "APP_ENVIRONMENT"),
    )
    log_level: Optional[str] = Field(None, validation_alias="LOG_LEVEL")
    log_json: bool = Field(False, validation_alias="LOG_JSON")

    cors_origins: str = Field("*", validation_alias="CORS_ORIGINS")
    validator_max_instances: int = Field(10, ge=1, validation_alias="VALIDATOR_MAX_INSTANCES")
    preferences_path: Path = Field(Path("preferences.json"), validation_alias="PREFERENCES_PATH")
    port: int = Field(8000, ge=1, le=65535, validation_alias="PORT")

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
