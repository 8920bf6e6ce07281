from pathlib import Path

import pytest

from leaselock.core.config import DEFAULT_LOCK_EXPIRE, DEFAULT_RETRY_TIMES
from leaselock.core.errors import ConfigError, ExpireTooSmall
from leaselock.core.settings import DEFAULT_REDIS_URL, LockSettings


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "lock.yml"
    path.write_text(text)
    return path


def test_from_file(tmp_path):
    path = _write(
        tmp_path,
        "redis_url: redis://cache:6379/2\n"
        "lock:\n"
        "  expire: 1200\n"
        "  auto_retry: true\n"
        "  auto_refresh: true\n",
    )

    settings = LockSettings.from_file(path)

    assert settings.redis_url == "redis://cache:6379/2"
    assert settings.lock.expire == 1200
    assert settings.lock.retries == DEFAULT_RETRY_TIMES
    assert settings.lock.refresh_interval == 800


def test_example_config_is_valid():
    path = Path(__file__).parent.parent / "config" / "lock.example.yml"
    settings = LockSettings.from_file(path)
    assert settings.lock.auto_refresh is True


def test_empty_file_uses_defaults(tmp_path):
    settings = LockSettings.from_file(_write(tmp_path, ""))
    assert settings.redis_url == DEFAULT_REDIS_URL
    assert settings.lock.expire == DEFAULT_LOCK_EXPIRE


def test_invalid_settings_raise_config_error(tmp_path):
    with pytest.raises(ConfigError):
        LockSettings.from_file(_write(tmp_path, "lock:\n  block: [1, 2]\n"))
    with pytest.raises(ConfigError):
        LockSettings.from_file(_write(tmp_path, "unknown: 1\n"))
    with pytest.raises(ConfigError):
        LockSettings.from_file(_write(tmp_path, "lock: [unclosed\n"))


def test_small_expire_in_file(tmp_path):
    with pytest.raises(ExpireTooSmall):
        LockSettings.from_file(_write(tmp_path, "lock:\n  expire: 100\n"))


def test_from_env(monkeypatch):
    monkeypatch.setenv("LEASELOCK_REDIS_URL", "redis://env:6379/1")
    monkeypatch.setenv("LEASELOCK_EXPIRE_MS", "900")
    monkeypatch.setenv("LEASELOCK_BLOCK", "yes")
    monkeypatch.setenv("LEASELOCK_AUTO_RETRY", "off")
    monkeypatch.setenv("LEASELOCK_AUTO_REFRESH", "1")
    monkeypatch.delenv("LEASELOCK_RETRIES", raising=False)

    settings = LockSettings.from_env()

    assert settings.redis_url == "redis://env:6379/1"
    assert settings.lock.expire == 900
    assert settings.lock.block is True
    assert settings.lock.auto_retry is False
    assert settings.lock.refresh_interval == 600


def test_from_env_rejects_non_integer(monkeypatch):
    monkeypatch.setenv("LEASELOCK_EXPIRE_MS", "fast")
    with pytest.raises(ConfigError):
        LockSettings.from_env()


def test_create_client_uses_url():
    client = LockSettings(redis_url="redis://cache:6380/3").create_client()
    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "cache"
    assert kwargs["port"] == 6380
    assert kwargs["db"] == 3
