"""Settings loader for processes that create locks."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from redis.asyncio import Redis

from leaselock.utils.env import get_bool_env, get_int_env

from .config import LockConfig
from .errors import ConfigError

DEFAULT_REDIS_URL = "redis://localhost:6379/0"
ENV_PREFIX = "LEASELOCK_"
REDIS_URL_ENV = f"{ENV_PREFIX}REDIS_URL"


class LockSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    redis_url: str = DEFAULT_REDIS_URL
    lock: LockConfig = Field(default_factory=LockConfig)

    @classmethod
    def from_file(cls, path: Path) -> "LockSettings":
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid lock settings: {exc}") from exc

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "LockSettings":
        """Build settings from ``<prefix>REDIS_URL``, ``<prefix>EXPIRE_MS`` and friends."""
        lock = LockConfig.from_mapping(
            {
                "expire": get_int_env(f"{prefix}EXPIRE_MS", default=0),
                "block": get_bool_env(f"{prefix}BLOCK"),
                "auto_retry": get_bool_env(f"{prefix}AUTO_RETRY"),
                "retries": get_int_env(f"{prefix}RETRIES", default=0),
                "auto_refresh": get_bool_env(f"{prefix}AUTO_REFRESH"),
            }
        )
        return cls(redis_url=os.getenv(f"{prefix}REDIS_URL", DEFAULT_REDIS_URL), lock=lock)

    def create_client(self) -> Redis:
        return Redis.from_url(self.redis_url)
