"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from functools import lru_cache
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class AuthConfig(BaseSettings):
    session_max_age_days: int = 7


class NotificationConfig(BaseSettings):
    default_language: str = "en"
    reviewer_roles: list[str] = Field(default_factory=lambda: ["admin", "supervisor"])


class RealtimeConfig(BaseSettings):
    send_timeout_seconds: float = 5.0


class LoggingConfig(BaseSettings):
    level: str = "INFO"


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/workshop.db"
    auth: AuthConfig = Field(default_factory=AuthConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    realtime: RealtimeConfig = Field(default_factory=RealtimeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "WORKSHOP_"}


@lru_cache
def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides.

    ``WORKSHOP_DATABASE_URL`` in the environment wins over the YAML value.
    Built once per process; ``get_settings.cache_clear()`` forces a reload.
    """
    y = _yaml
    base = Settings()
    update = {
        "auth": AuthConfig(**y.get("auth", {})),
        "notifications": NotificationConfig(**y.get("notifications", {})),
        "realtime": RealtimeConfig(**y.get("realtime", {})),
        "logging": LoggingConfig(**y.get("logging", {})),
    }
    db_url = y.get("database", {}).get("url")
    if db_url and base.database_url == Settings.model_fields["database_url"].default:
        update["database_url"] = db_url
    return base.model_copy(update=update)
