"""Server-side Lua scripts guarding every mutation of a held lock."""

from __future__ import annotations

import hashlib
from typing import Any, Sequence

from redis.exceptions import NoScriptError

from .locks import StoreClient


class LuaScript:
    """A Lua script run through the store's script cache.

    Runs via EVALSHA and, when the server does not know the script yet,
    loads it with SCRIPT LOAD and retries once. Behaviour is identical to
    a plain EVAL; the cache only saves resending the source.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.sha = hashlib.sha1(source.encode("utf-8")).hexdigest()

    async def __call__(self, store: StoreClient, keys: Sequence[str], args: Sequence[Any]) -> Any:
        try:
            return await store.evalsha(self.sha, len(keys), *keys, *args)
        except NoScriptError:
            await store.script_load(self.source)
            return await store.evalsha(self.sha, len(keys), *keys, *args)

    async def ensure_loaded(self, store: StoreClient) -> bool:
        """Load the script unless the server already caches it. Returns True if it loaded."""
        exists = await store.script_exists(self.sha)
        if exists and exists[0]:
            return False
        await store.script_load(self.source)
        return True

    def __repr__(self) -> str:
        return f"LuaScript(sha={self.sha[:12]})"


# Returns 1 when the key held ARGV[1] and was deleted, 0 otherwise.
UNLOCK_SCRIPT = LuaScript(
    """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
else
    return 0
end
"""
)

# Returns 1 when the key held ARGV[1] and its TTL was reset to ARGV[2] ms, 0 otherwise.
REFRESH_SCRIPT = LuaScript(
    """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('pexpire', KEYS[1], ARGV[2])
else
    return 0
end
"""
)

ALL_SCRIPTS = (UNLOCK_SCRIPT, REFRESH_SCRIPT)


async def preload_scripts(store: StoreClient) -> int:
    """Warm the server's script cache. Returns how many scripts were loaded."""
    loaded = 0
    for script in ALL_SCRIPTS:
        if await script.ensure_loaded(store):
            loaded += 1
    return loaded
