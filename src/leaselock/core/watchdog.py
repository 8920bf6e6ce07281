"""Background task that keeps a held lease alive."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from leaselock.utils.logging import get_logger


class RefreshWatchdog:
    """Periodically extends a lease until stopped or ownership is lost.

    ``refresh`` returns True while the record still carries our token. A False
    result or any exception ends the loop and fires ``on_lost``; nothing is
    raised into the event loop.
    """

    def __init__(
        self,
        refresh: Callable[[], Awaitable[bool]],
        interval_ms: int,
        *,
        on_lost: Optional[Callable[[], None]] = None,
        name: str = "lock",
    ) -> None:
        if interval_ms <= 0:
            raise ValueError("refresh interval must be positive")
        self._refresh = refresh
        self._interval = interval_ms / 1000
        self._on_lost = on_lost
        self._name = name
        self.logger = get_logger("leaselock.watchdog")
        self._task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()
        self.refreshes = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name=f"watchdog-{self._name}")

    async def stop(self) -> None:
        """Signal the loop and wait until it has fully exited."""
        self._stop_event.set()
        if self._task:
            await self._task
            self._task = None

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                return
            except asyncio.TimeoutError:
                pass

            try:
                still_owned = await self._refresh()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self.logger.error("Refresh of lock %s failed, giving up: %s", self._name, exc)
                self._lost()
                return

            if not still_owned:
                self.logger.warning("Lock %s is no longer owned, stopping refresh", self._name)
                self._lost()
                return
            self.refreshes += 1

    def _lost(self) -> None:
        if self._on_lost is not None:
            self._on_lost()
