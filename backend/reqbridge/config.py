import os
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "reqbridge"
    APP_VERSION: str = "0.3.0"
    ENVIRONMENT: str = "development"

    CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None

    # Defaults for /codegen/generate when the caller sends no options
    CODEGEN_INDENT_SIZE: int = 2
    CODEGEN_USE_SINGLE_QUOTES: bool = False

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()

_log_file = os.getenv("REQBRIDGE_LOG_FILE")
if _log_file:
    settings.LOG_FILE = Path(_log_file).expanduser().resolve().as_posix()
