"""Exception hierarchy for leaselock.

Callers need to tell three situations apart because recovery differs:

- the lock was never obtained (``NotAcquired``), retry later;
- the lock was held but the lease lapsed (``LockNotHeld``), re-acquire;
- the store itself failed (``StoreError``), treat as infrastructure trouble.

Configuration problems (``ConfigError`` and subclasses) are raised before any
store I/O happens.
"""

from __future__ import annotations

from typing import Optional


class LeaseLockError(Exception):
    """Base exception for all leaselock errors."""

    code: str = "leaselock_error"

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "An unspecified leaselock error occurred."
        super().__init__(message)


class ConfigError(LeaseLockError):
    """Raised when lock parameters or settings are invalid."""

    code = "config_error"


class MissingName(ConfigError):
    """Raised when a lock is created without a resource name."""

    code = "missing_name"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or "empty lock name")


class ExpireTooSmall(ConfigError):
    """Raised when an explicit lease is shorter than the allowed minimum."""

    code = "expire_too_small"

    def __init__(self, expire: int, minimum: int) -> None:
        super().__init__(f"lock expire time too small: {expire}ms < {minimum}ms")
        self.expire = expire
        self.minimum = minimum


class NotAcquired(LeaseLockError):
    """Raised when the lock is held by another party.

    This is a routine contention outcome, not an infrastructure failure.
    """

    code = "not_acquired"

    def __init__(self, name: str, attempts: int = 1) -> None:
        super().__init__(f"lock {name!r} not acquired after {attempts} attempt(s)")
        self.name = name
        self.attempts = attempts


class LockNotHeld(LeaseLockError):
    """Raised when releasing a lock whose record no longer carries our token."""

    code = "lock_not_held"

    def __init__(self, name: str) -> None:
        super().__init__(f"lock {name!r} not held")
        self.name = name


class AlreadyHeld(LeaseLockError):
    """Raised when ``acquire`` is called on an instance that already holds its lock."""

    code = "already_held"

    def __init__(self, name: str) -> None:
        super().__init__(f"lock {name!r} is already held by this instance")
        self.name = name


class LockBusy(LeaseLockError):
    """Raised when an acquire or release overlaps one still running on the same instance."""

    code = "lock_busy"

    def __init__(self, name: str, state: str) -> None:
        super().__init__(f"lock {name!r} is busy ({state})")
        self.name = name
        self.state = state


class StoreError(LeaseLockError):
    """Raised when the backing store cannot be reached or rejects a command.

    The original exception is chained as ``__cause__``.
    """

    code = "store_error"
