"""Redis-based lease lock using SET NX PX and token-checked Lua scripts."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    stop_never,
    wait_fixed,
    wait_random,
)

from leaselock.utils.logging import get_logger

from .config import LockConfig
from .errors import AlreadyHeld, LockBusy, LockNotHeld, MissingName, NotAcquired, StoreError
from .locks import LockManager, StoreClient
from .models import LockState
from .scripts import REFRESH_SCRIPT, UNLOCK_SCRIPT, preload_scripts
from .settings import DEFAULT_REDIS_URL, REDIS_URL_ENV
from .token import new_token, short_token
from .watchdog import RefreshWatchdog

# Errors that mean the store itself is unusable, as opposed to contention.
_STORE_ERRORS = (RedisError, OSError)


class RedLock:
    """A mutex whose record lives in Redis.

    The record is ``name -> token`` with a TTL of ``config.expire`` ms. Holder
    status is never trusted from local memory: release and refresh both
    compare the stored value against this instance's token on the server.
    All store calls made by one instance are serialized.
    """

    def __init__(
        self,
        store: StoreClient,
        name: str,
        token: Optional[str] = None,
        config: Optional[LockConfig] = None,
    ) -> None:
        if not name:
            raise MissingName()
        self._store = store
        self._name = name
        self._token = token or new_token()
        self._config = config or LockConfig()
        self._state = LockState.UNACQUIRED
        self._io_lock = asyncio.Lock()
        self._watchdog: Optional[RefreshWatchdog] = None
        self.logger = get_logger("leaselock.lock")

    @property
    def name(self) -> str:
        return self._name

    @property
    def token(self) -> str:
        return self._token

    @property
    def config(self) -> LockConfig:
        return self._config

    @property
    def state(self) -> LockState:
        return self._state

    @property
    def locked(self) -> bool:
        """Local belief that the lock is held; ``is_held`` asks the store."""
        return self._state is LockState.HELD

    async def acquire(self, timeout: Optional[float] = None) -> bool:
        """Acquire the lock according to the configured policy.

        ``timeout`` (seconds) bounds the total wait of a blocking or retrying
        acquire. Raises ``NotAcquired`` on contention and ``StoreError`` when
        the store fails. Cancelling the calling task leaves no record behind.
        """
        if self._state is LockState.HELD:
            raise AlreadyHeld(self._name)
        if self._state in (LockState.ACQUIRING, LockState.RELEASING):
            raise LockBusy(self._name, self._state.value)

        self._state = LockState.ACQUIRING
        try:
            # A watchdog left over from a lease lost earlier must not touch the new one.
            await self._stop_watchdog()
            await self._retrying(timeout)(self._try_set)
        except RetryError as exc:
            self._state = LockState.FAILED
            raise NotAcquired(self._name, exc.last_attempt.attempt_number) from None
        except asyncio.CancelledError:
            self._state = LockState.FAILED
            await asyncio.shield(self._discard())
            raise
        except _STORE_ERRORS as exc:
            self._state = LockState.FAILED
            raise StoreError(f"store failure while acquiring lock {self._name!r}: {exc}") from exc

        self._on_acquired()
        return True

    async def release(self) -> None:
        """Release the lock if, and only if, the store still carries our token.

        Runs to completion even if the calling task is cancelled. Raises
        ``LockNotHeld`` when the record is gone or owned by someone else.
        """
        await asyncio.shield(self._release())

    async def refresh(self) -> bool:
        """Reset the lease TTL if we still own the record.

        Returns False, and marks the lock expired, when ownership was lost.
        """
        try:
            async with self._io_lock:
                result = await REFRESH_SCRIPT(self._store, [self._name], [self._token, self._config.expire])
        except _STORE_ERRORS as exc:
            raise StoreError(f"store failure while refreshing lock {self._name!r}: {exc}") from exc
        if int(result or 0) == 1:
            return True
        self._mark_lost()
        return False

    async def is_held(self) -> bool:
        """Ask the store whether the record currently carries our token."""
        try:
            async with self._io_lock:
                value = await self._store.get(self._name)
        except _STORE_ERRORS as exc:
            raise StoreError(f"store failure while reading lock {self._name!r}: {exc}") from exc
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value == self._token

    async def __aenter__(self) -> "RedLock":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await self.release()
        except LockNotHeld:
            if exc_type is None:
                raise
            self.logger.warning("Lock %s lapsed before the guarded block finished", self._name)

    def __repr__(self) -> str:
        return f"RedLock(name={self._name!r}, state={self._state.value})"

    # ---------- helpers ----------

    async def _try_set(self) -> bool:
        async with self._io_lock:
            created = await self._store.set(self._name, self._token, px=self._config.expire, nx=True)
        return bool(created)

    def _retrying(self, timeout: Optional[float]) -> AsyncRetrying:
        """Attempt policy: one try, ``retries`` more, or until success when blocking."""
        conf = self._config
        if conf.block:
            stop = stop_never
        elif conf.auto_retry:
            stop = stop_after_attempt(conf.retries + 1)
        else:
            stop = stop_after_attempt(1)
        if timeout is not None:
            stop = stop | stop_after_delay(timeout)
        return AsyncRetrying(
            stop=stop,
            wait=wait_fixed(conf.retry_delay / 1000) + wait_random(0, conf.retry_jitter / 1000),
            retry=retry_if_result(lambda created: not created),
            before_sleep=self._log_busy,
        )

    def _log_busy(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        self.logger.debug(
            "Lock %s busy, retrying in %.3fs (attempt %d)", self._name, delay, retry_state.attempt_number
        )

    def _on_acquired(self) -> None:
        self._state = LockState.HELD
        self.logger.debug("Acquired lock %s with token %s", self._name, short_token(self._token))
        if self._config.auto_refresh:
            self._watchdog = RefreshWatchdog(
                self.refresh,
                self._config.refresh_interval,
                on_lost=self._mark_lost,
                name=self._name,
            )
            self._watchdog.start()

    def _mark_lost(self) -> None:
        if self._state is LockState.HELD:
            self.logger.warning("Lock %s lost ownership", self._name)
            self._state = LockState.EXPIRED

    async def _stop_watchdog(self) -> None:
        if self._watchdog is not None:
            await self._watchdog.stop()
            self._watchdog = None

    async def _compare_and_delete(self) -> bool:
        async with self._io_lock:
            result = await UNLOCK_SCRIPT(self._store, [self._name], [self._token])
        return int(result or 0) == 1

    async def _release(self) -> None:
        previous = self._state
        if previous in (LockState.ACQUIRING, LockState.RELEASING):
            raise LockBusy(self._name, previous.value)
        self._state = LockState.RELEASING
        # The watchdog must be gone before the delete, or a late refresh could
        # land on a record we no longer own.
        await self._stop_watchdog()
        fallback = LockState.EXPIRED if previous in (LockState.HELD, LockState.EXPIRED) else previous

        try:
            deleted = await self._compare_and_delete()
        except _STORE_ERRORS as exc:
            self._state = fallback
            raise StoreError(f"store failure while releasing lock {self._name!r}: {exc}") from exc

        if not deleted:
            self._state = fallback
            raise LockNotHeld(self._name)

        self._state = LockState.RELEASED
        self.logger.debug("Released lock %s", self._name)

    async def _discard(self) -> None:
        """Best-effort removal of a record a cancelled acquire may have written."""
        await self._stop_watchdog()
        try:
            if await self._compare_and_delete():
                self.logger.debug("Removed lock %s written by a cancelled acquire", self._name)
        except _STORE_ERRORS as exc:
            self.logger.warning("Could not clean up lock %s after cancellation: %s", self._name, exc)


class RedisLockManager(LockManager):
    """Creates locks that share one Redis connection pool."""

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        config: Optional[LockConfig] = None,
        client: Optional[Redis] = None,
    ) -> None:
        self._redis = client or Redis.from_url(url or os.getenv(REDIS_URL_ENV, DEFAULT_REDIS_URL))
        self._config = config or LockConfig()

    @property
    def client(self) -> Redis:
        return self._redis

    async def preload(self) -> int:
        """Load the lock scripts into the server cache ahead of the first release or refresh."""
        try:
            return await preload_scripts(self._redis)
        except _STORE_ERRORS as exc:
            raise StoreError(f"store failure while loading lock scripts: {exc}") from exc

    def lock(self, name: str, token: Optional[str] = None, config: Optional[LockConfig] = None) -> RedLock:
        return RedLock(self._redis, name, token, config or self._config)

    async def close(self) -> None:
        await self._redis.aclose()
