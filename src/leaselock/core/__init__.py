"""Core lock primitives for leaselock."""

from .config import DEFAULT_LOCK_EXPIRE, DEFAULT_RETRY_TIMES, MIN_LOCK_EXPIRE, LockConfig
from .errors import (
    AlreadyHeld,
    LockBusy,
    ConfigError,
    ExpireTooSmall,
    LeaseLockError,
    LockNotHeld,
    MissingName,
    NotAcquired,
    StoreError,
)
from .locks import AsyncLock, LockManager, StoreClient
from .locks_redis import RedisLockManager, RedLock
from .models import LockState

__all__ = [
    "DEFAULT_LOCK_EXPIRE",
    "DEFAULT_RETRY_TIMES",
    "MIN_LOCK_EXPIRE",
    "LockConfig",
    "AlreadyHeld",
    "LockBusy",
    "ConfigError",
    "ExpireTooSmall",
    "LeaseLockError",
    "LockNotHeld",
    "MissingName",
    "NotAcquired",
    "StoreError",
    "AsyncLock",
    "LockManager",
    "StoreClient",
    "RedisLockManager",
    "RedLock",
    "LockState",
]
