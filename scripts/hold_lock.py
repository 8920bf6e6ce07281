"""CLI entrypoint to take a named lock, hold it for a while and release it."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from leaselock import LeaseLockError, LockNotHeld, LockSettings, NotAcquired, RedisLockManager, StoreError
from leaselock.utils.logging import get_logger, set_level


logger = get_logger("leaselock.cli")

EXIT_NOT_ACQUIRED = 1
EXIT_NOT_HELD = 2
EXIT_STORE = 3


def _load_settings(path: Path | None) -> LockSettings:
    if path is None:
        logger.info("No config file given; reading LEASELOCK_* environment variables.")
        return LockSettings.from_env()
    return LockSettings.from_file(path)


async def hold(settings: LockSettings, name: str, seconds: float, timeout: float | None) -> int:
    manager = RedisLockManager(client=settings.create_client(), config=settings.lock)
    lock = manager.lock(name)
    try:
        await manager.preload()
        await lock.acquire(timeout=timeout)
        logger.info("Holding %s for %.1fs (expire=%dms, refresh=%dms)",
                    name, seconds, settings.lock.expire, settings.lock.refresh_interval)
        await asyncio.sleep(seconds)
        await lock.release()
        logger.info("Released %s", name)
        return 0
    except NotAcquired as exc:
        logger.warning("%s", exc)
        return EXIT_NOT_ACQUIRED
    except LockNotHeld as exc:
        logger.error("%s; the lease lapsed while held", exc)
        return EXIT_NOT_HELD
    except StoreError as exc:
        logger.error("%s", exc)
        return EXIT_STORE
    finally:
        await manager.close()


async def main() -> int:
    parser = argparse.ArgumentParser(description="Acquire a Redis lease lock, hold it, then release it.")
    parser.add_argument("name", help="Lock (resource) name")
    parser.add_argument("--config", type=Path, default=None, help="Path to settings YAML")
    parser.add_argument("--hold", type=float, default=5.0, help="Seconds to hold the lock")
    parser.add_argument("--timeout", type=float, default=None, help="Max seconds to wait when blocking")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    if args.verbose:
        set_level(logging.DEBUG)

    try:
        settings = _load_settings(args.config)
    except LeaseLockError as exc:
        logger.error("%s", exc)
        return 64
    return await hold(settings, args.name, args.hold, args.timeout)


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
