# SPDX-License-Identifier: Apache-2.0
"""
Collaborators: limiter, event bus, storage and serializer.
Covers:
  • sliding-window limiting with an injected clock
  • sync subscribers run inline, async subscribers are scheduled and drained
  • a failing subscriber (sync or async) is logged and never propagates
  • InMemoryStorage isolation and FileStorage persistence
  • serializer round trip and corruption detection
"""
import asyncio
import json
import logging

import pytest

from beacon_sdk import (
    BeaconEvent,
    EventBus,
    FileStorage,
    InMemoryStorage,
    NoopLimiter,
    Serializer,
    SlidingWindowLimiter,
    StorageKey,
)

pytestmark = pytest.mark.asyncio


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


# --- limiter -----------------------------------------------------------------

async def test_sliding_window_limits_and_recovers():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(limit=2, window_s=5.0, now_fn=clock)

    assert limiter.check() is False
    assert limiter.check() is False
    assert limiter.check() is True, "third attempt within the window is limited"

    clock.now += 5.1
    assert limiter.check() is False, "attempts older than the window expire"


async def test_refused_attempts_count_toward_the_window():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(limit=1, window_s=5.0, now_fn=clock)

    assert limiter.check() is False
    clock.now += 3
    assert limiter.check() is True
    clock.now += 3
    # first attempt expired but the refused one has not
    assert limiter.check() is True


async def test_disabled_and_noop_limiters():
    assert not any(SlidingWindowLimiter(limit=0).check() for _ in range(10))
    assert not any(NoopLimiter().check() for _ in range(10))


async def test_limiter_reset():
    limiter = SlidingWindowLimiter(limit=1, window_s=60)
    limiter.check()
    assert limiter.check() is True
    limiter.reset()
    assert limiter.check() is False


# --- events ------------------------------------------------------------------

async def test_event_bus_sync_and_async_handlers():
    bus = EventBus()
    seen = []

    async def async_handler(data):
        seen.append(("async", data))

    bus.on(BeaconEvent.NO_PERMISSIONS, lambda data: seen.append(("sync", data)))
    bus.on(BeaconEvent.NO_PERMISSIONS, async_handler)
    bus.emit(BeaconEvent.NO_PERMISSIONS, 42)

    assert seen == [("sync", 42)], "async handlers are scheduled, not awaited inline"
    assert bus.pending() == 1
    await bus.drain()
    assert seen == [("sync", 42), ("async", 42)]
    assert bus.pending() == 0


async def test_emit_does_not_wait_for_slow_async_handlers():
    bus = EventBus()
    release = asyncio.Event()
    finished = []

    async def slow(data):
        await release.wait()
        finished.append(data)

    bus.on(BeaconEvent.SIGN_REQUEST_SENT, slow)
    bus.emit(BeaconEvent.SIGN_REQUEST_SENT, "x")

    assert finished == [] and bus.pending() == 1
    release.set()
    await bus.drain()
    assert finished == ["x"]


async def test_failing_async_handler_is_logged(caplog):
    bus = EventBus()

    async def broken(_data):
        raise RuntimeError("async subscriber bug")

    bus.on(BeaconEvent.PERMISSION_REQUEST_SUCCESS, broken)
    with caplog.at_level(logging.WARNING, logger="beacon_sdk.events"):
        bus.emit(BeaconEvent.PERMISSION_REQUEST_SUCCESS, {})
        await bus.drain()

    assert "PERMISSION_REQUEST_SUCCESS" in caplog.text
    assert "async subscriber bug" in caplog.text


async def test_cancel_pending_stops_hung_handlers():
    bus = EventBus()

    async def hung(_data):
        await asyncio.Event().wait()

    bus.on(BeaconEvent.OPERATION_REQUEST_SENT, hung)
    bus.emit(BeaconEvent.OPERATION_REQUEST_SENT)
    bus.cancel_pending()
    await bus.drain()

    assert bus.pending() == 0


async def test_failing_handler_is_logged_and_isolated(caplog):
    bus = EventBus()
    seen = []

    def broken(_data):
        raise RuntimeError("subscriber bug")

    bus.on(BeaconEvent.ACTIVE_ACCOUNT_SET, broken)
    bus.on(BeaconEvent.ACTIVE_ACCOUNT_SET, seen.append)

    with caplog.at_level(logging.WARNING, logger="beacon_sdk.events"):
        bus.emit(BeaconEvent.ACTIVE_ACCOUNT_SET, "acct")

    assert seen == ["acct"], "later handlers still run"
    assert "ACTIVE_ACCOUNT_SET" in caplog.text


async def test_off_removes_one_or_all_handlers():
    bus = EventBus()
    first, second = [], []
    bus.on(BeaconEvent.NO_PERMISSIONS, first.append)
    bus.on(BeaconEvent.NO_PERMISSIONS, second.append)

    bus.off(BeaconEvent.NO_PERMISSIONS, first.append)
    bus.emit(BeaconEvent.NO_PERMISSIONS, 1)
    bus.off(BeaconEvent.NO_PERMISSIONS)
    bus.emit(BeaconEvent.NO_PERMISSIONS, 2)

    assert first == [] and second == [1]
    assert bus.handlers(BeaconEvent.NO_PERMISSIONS) == []


# --- storage -----------------------------------------------------------------

async def test_in_memory_storage_copies_values():
    storage = InMemoryStorage()
    value = {"a": [1, 2]}
    await storage.set(StorageKey.ACCOUNTS, value)
    value["a"].append(3)

    assert await storage.get(StorageKey.ACCOUNTS) == {"a": [1, 2]}
    await storage.delete(StorageKey.ACCOUNTS)
    assert await storage.get(StorageKey.ACCOUNTS) is None


async def test_file_storage_persists_between_instances(tmp_path):
    path = tmp_path / "state" / "beacon.json"
    storage = FileStorage(path)
    assert await storage.get(StorageKey.ACTIVE_ACCOUNT) is None

    await storage.set(StorageKey.ACTIVE_ACCOUNT, "abc")
    await storage.set(StorageKey.ACCOUNTS, [{"accountIdentifier": "abc"}])

    reopened = FileStorage(path)
    assert await reopened.get(StorageKey.ACTIVE_ACCOUNT) == "abc"
    assert json.loads(path.read_text())["beacon:accounts"] == [{"accountIdentifier": "abc"}]

    await reopened.delete(StorageKey.ACTIVE_ACCOUNT)
    assert await storage.get(StorageKey.ACTIVE_ACCOUNT) is None
    assert not path.with_suffix(".json.tmp").exists()


async def test_file_storage_rejects_non_object_document(tmp_path):
    path = tmp_path / "beacon.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError):
        await FileStorage(path).get(StorageKey.ACCOUNTS)


# --- serializer --------------------------------------------------------------

async def test_serializer_round_trip_and_corruption():
    serializer = Serializer()
    message = {"id": "1", "type": "permission_request", "scopes": ["sign"]}

    encoded = serializer.serialize(message)
    assert isinstance(encoded, str) and "{" not in encoded
    assert serializer.deserialize(encoded) == message

    with pytest.raises(ValueError):
        serializer.deserialize(encoded[:-2] + ("11" if encoded[-2:] != "11" else "22"))
