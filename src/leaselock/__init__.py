"""Redis-backed lease locks with ownership tokens and auto-refresh."""

from .core import (
    AlreadyHeld,
    LockBusy,
    ConfigError,
    ExpireTooSmall,
    LeaseLockError,
    LockConfig,
    LockNotHeld,
    LockState,
    MissingName,
    NotAcquired,
    RedisLockManager,
    RedLock,
    StoreError,
)
from .core.settings import LockSettings

__all__ = [
    "__version__",
    "AlreadyHeld",
    "LockBusy",
    "ConfigError",
    "ExpireTooSmall",
    "LeaseLockError",
    "LockConfig",
    "LockNotHeld",
    "LockSettings",
    "LockState",
    "MissingName",
    "NotAcquired",
    "RedisLockManager",
    "RedLock",
    "StoreError",
]

__version__ = "0.1.0"
