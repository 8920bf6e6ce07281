from __future__ import annotations

import asyncio
from typing import Any

import pytest
import pytest_asyncio
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis
from redis.exceptions import ConnectionError as RedisConnectionError


@pytest_asyncio.fixture
async def redis():
    client = FakeRedis(server=FakeServer())
    yield client
    await client.aclose()


class CountingStore:
    """Delegates to a real client and counts SET calls."""

    def __init__(self, inner: Any) -> None:
        self._inner = inner
        self.set_calls = 0

    async def set(self, name, value, *, px=None, nx=False):
        self.set_calls += 1
        return await self._inner.set(name, value, px=px, nx=nx)

    def __getattr__(self, item):
        return getattr(self._inner, item)


class StallingSetStore(CountingStore):
    """Writes the record, then stalls before answering, like a slow network."""

    def __init__(self, inner: Any) -> None:
        super().__init__(inner)
        self.written = asyncio.Event()

    async def set(self, name, value, *, px=None, nx=False):
        result = await super().set(name, value, px=px, nx=nx)
        self.written.set()
        await asyncio.sleep(30)
        return result


class StallingRefreshStore(CountingStore):
    """Logs script calls by name and holds refreshes until ``resume`` is set."""

    def __init__(self, inner: Any, names: dict) -> None:
        super().__init__(inner)
        self._names = names
        self.log: list[str] = []
        self.refresh_started = asyncio.Event()
        self.resume = asyncio.Event()

    async def evalsha(self, sha, numkeys, *keys_and_args):
        op = self._names.get(sha, sha)
        self.log.append(op)
        if op == "refresh":
            self.refresh_started.set()
            await self.resume.wait()
        return await self._inner.evalsha(sha, numkeys, *keys_and_args)


class BrokenStore:
    """Every command fails as if Redis were unreachable."""

    def __init__(self) -> None:
        self.calls = 0

    async def _fail(self, *args, **kwargs):
        self.calls += 1
        raise RedisConnectionError("connection refused")

    set = get = evalsha = script_exists = script_load = _fail


@pytest.fixture
def broken_store() -> BrokenStore:
    return BrokenStore()
