"""Validated lock parameters."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, computed_field, field_validator

from .errors import ConfigError, ExpireTooSmall

# Lease values are milliseconds.
MIN_LOCK_EXPIRE = 300
DEFAULT_LOCK_EXPIRE = 3000
DEFAULT_RETRY_TIMES = 3


class LockConfig(BaseModel):
    """Immutable locking policy.

    ``expire`` <= 0 falls back to ``DEFAULT_LOCK_EXPIRE``; a positive value below
    ``MIN_LOCK_EXPIRE`` is rejected with ``ExpireTooSmall`` rather than clamped.
    ``retries`` is defaulted when ``auto_retry`` is on without a positive count.
    ``refresh_interval`` is derived from ``expire`` and cannot be passed in.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    expire: int = 0
    block: bool = False
    auto_retry: bool = False
    retries: int = 0
    auto_refresh: bool = False
    retry_delay: int = Field(default=100, ge=1)
    retry_jitter: int = Field(default=50, ge=0)

    @field_validator("expire")
    @classmethod
    def _normalize_expire(cls, value: int) -> int:
        if value <= 0:
            return DEFAULT_LOCK_EXPIRE
        if value < MIN_LOCK_EXPIRE:
            raise ExpireTooSmall(value, MIN_LOCK_EXPIRE)
        return value

    @field_validator("retries")
    @classmethod
    def _normalize_retries(cls, value: int, info: ValidationInfo) -> int:
        if info.data.get("auto_retry") and value <= 0:
            return DEFAULT_RETRY_TIMES
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def refresh_interval(self) -> int:
        """Refresh period in ms: two thirds of the lease, 0 when refresh is off."""
        if not self.auto_refresh:
            return 0
        return int(self.expire * 2 / 3)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "LockConfig":
        try:
            return cls.model_validate(dict(data or {}))
        except ValidationError as exc:
            raise ConfigError(f"Invalid lock config: {exc}") from exc
