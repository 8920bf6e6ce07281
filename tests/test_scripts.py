import hashlib

import pytest
from redis.exceptions import NoScriptError

from leaselock.core.scripts import ALL_SCRIPTS, REFRESH_SCRIPT, UNLOCK_SCRIPT, LuaScript, preload_scripts


class ScriptCacheStore:
    """Tracks the server-side script cache without running anything."""

    def __init__(self) -> None:
        self.cache: set[str] = set()
        self.loads = 0
        self.evalsha_calls = []

    async def evalsha(self, sha, numkeys, *keys_and_args):
        self.evalsha_calls.append((sha, numkeys, keys_and_args))
        if sha not in self.cache:
            raise NoScriptError("No matching script. Please use EVAL.")
        return 1

    async def script_load(self, script):
        self.loads += 1
        sha = hashlib.sha1(script.encode("utf-8")).hexdigest()
        self.cache.add(sha)
        return sha

    async def script_exists(self, *shas):
        return [sha in self.cache for sha in shas]


@pytest.mark.asyncio
async def test_loads_script_on_cache_miss_then_reuses_it():
    store = ScriptCacheStore()
    script = LuaScript("return 1")

    assert await script(store, ["k"], ["v"]) == 1
    assert store.loads == 1
    assert await script(store, ["k"], ["v"]) == 1
    assert store.loads == 1
    assert store.evalsha_calls[-1] == (script.sha, 1, ("k", "v"))


@pytest.mark.asyncio
async def test_ensure_loaded_only_loads_missing_scripts():
    store = ScriptCacheStore()
    script = LuaScript("return 2")

    assert await script.ensure_loaded(store) is True
    assert await script.ensure_loaded(store) is False
    assert store.loads == 1


@pytest.mark.asyncio
async def test_preload_scripts():
    store = ScriptCacheStore()

    assert await preload_scripts(store) == len(ALL_SCRIPTS)
    assert await preload_scripts(store) == 0


@pytest.mark.asyncio
async def test_unlock_script_only_deletes_matching_token(redis):
    await redis.set("res", "mine")

    assert await UNLOCK_SCRIPT(redis, ["res"], ["theirs"]) == 0
    assert await redis.get("res") == b"mine"
    assert await UNLOCK_SCRIPT(redis, ["res"], ["mine"]) == 1
    assert await redis.exists("res") == 0
    assert await UNLOCK_SCRIPT(redis, ["res"], ["mine"]) == 0


@pytest.mark.asyncio
async def test_refresh_script_only_extends_matching_token(redis):
    await redis.set("res", "mine", px=1000)

    assert await REFRESH_SCRIPT(redis, ["res"], ["theirs", 60000]) == 0
    assert await redis.pttl("res") <= 1000
    assert await REFRESH_SCRIPT(redis, ["res"], ["mine", 60000]) == 1
    assert await redis.pttl("res") > 1000
    assert await REFRESH_SCRIPT(redis, ["missing"], ["mine", 60000]) == 0
