"""Abstract interfaces for store-backed locks."""

from __future__ import annotations

import abc
from typing import Any, Awaitable, List, Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from .config import LockConfig


class StoreClient(Protocol):
    """Subset of ``redis.asyncio.Redis`` a lock needs.

    SET NX PX creates the lock record; EVALSHA runs the ownership
    checks atomically on the server.
    """

    def set(self, name: str, value: Any, *, px: Optional[int] = None, nx: bool = False) -> Awaitable[Any]: ...
    def get(self, name: str) -> Awaitable[Any]: ...
    def evalsha(self, sha: str, numkeys: int, *keys_and_args: Any) -> Awaitable[Any]: ...
    def script_exists(self, *args: str) -> Awaitable[List[bool]]: ...
    def script_load(self, script: str) -> Awaitable[str]: ...


class AsyncLock(Protocol):
    async def acquire(self, timeout: Optional[float] = None) -> bool: ...
    async def release(self) -> None: ...
    async def __aenter__(self) -> "AsyncLock": ...
    async def __aexit__(self, exc_type, exc, tb) -> None: ...


class LockManager(abc.ABC):
    @abc.abstractmethod
    def lock(
        self, name: str, token: Optional[str] = None, config: Optional["LockConfig"] = None
    ) -> AsyncLock:  # pragma: no cover - interface
        """Return a lock bound to ``name``; no store I/O happens until acquire."""
        raise NotImplementedError
