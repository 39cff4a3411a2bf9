# SPDX-License-Identifier: Apache-2.0
"""
Client options and environment configuration.
"""
import pytest

from beacon_sdk import (
    DAppClientOptions,
    FileStorage,
    InMemoryStorage,
    InvalidInput,
    NoopLimiter,
    SlidingWindowLimiter,
)
from beacon_sdk.config import DEFAULT_RATE_LIMIT, DEFAULT_RATE_LIMIT_WINDOW_S


def test_defaults():
    options = DAppClientOptions(name="My dApp")

    assert isinstance(options.make_storage(), InMemoryStorage)
    limiter = options.make_limiter()
    assert isinstance(limiter, SlidingWindowLimiter)
    assert (limiter.limit, limiter.window_s) == (DEFAULT_RATE_LIMIT, DEFAULT_RATE_LIMIT_WINDOW_S)


def test_explicit_limiter_wins():
    limiter = NoopLimiter()
    assert DAppClientOptions(name="x", limiter=limiter, rate_limit=9).make_limiter() is limiter


@pytest.mark.parametrize("name", ["", "   "])
def test_name_is_required(name):
    with pytest.raises(InvalidInput):
        DAppClientOptions(name=name)


def test_from_env(tmp_path):
    env = {
        "BEACON_APP_NAME": "Env dApp",
        "BEACON_ICON_URL": "https://example.org/i.png",
        "BEACON_RATE_LIMIT": "5",
        "BEACON_RATE_LIMIT_WINDOW_S": "1.5",
        "BEACON_STORAGE_PATH": str(tmp_path / "beacon.json"),
    }
    options = DAppClientOptions.from_env(env)

    assert options.name == "Env dApp"
    assert options.icon_url == "https://example.org/i.png"
    assert (options.rate_limit, options.rate_limit_window_s) == (5, 1.5)
    assert isinstance(options.storage, FileStorage)
    assert options.storage.path == tmp_path / "beacon.json"


def test_from_env_overrides_and_missing_name():
    assert DAppClientOptions.from_env({}, name="Override").name == "Override"
    with pytest.raises(InvalidInput):
        DAppClientOptions.from_env({})


@pytest.mark.parametrize("key", ["BEACON_RATE_LIMIT", "BEACON_RATE_LIMIT_WINDOW_S"])
def test_from_env_rejects_bad_numbers(key):
    with pytest.raises(InvalidInput) as exc_info:
        DAppClientOptions.from_env({"BEACON_APP_NAME": "x", key: "lots"})
    assert key in str(exc_info.value)
