# SPDX-License-Identifier: Apache-2.0
"""
Shared fixtures for the beacon_sdk test suite.

The default wiring is a DAppClient talking to a deterministic MockWallet over
a LoopbackTransport, with local rate limiting disabled so tests can issue as
many requests as they need. Tests that exercise the limiter build their own
client.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Tuple

import pytest

from beacon_sdk import (
    AccountInfo,
    BeaconEvent,
    ConnectionContext,
    DAppClient,
    DAppClientOptions,
    EventBus,
    InMemoryStorage,
    LoopbackTransport,
    Network,
    NoopLimiter,
    OriginType,
    PermissionScope,
    get_account_identifier,
    get_address_from_public_key,
)
from beacon_sdk.mock import MockWallet

# Raw Ed25519 public key (hex) used for hand-built accounts.
TEST_PUBKEY = "d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a"


class EventRecorder:
    """Collects (event, payload) pairs published on an EventBus."""

    def __init__(self) -> None:
        self.received: List[Tuple[BeaconEvent, Any]] = []

    def attach(self, bus: EventBus, events: Iterable[BeaconEvent] = tuple(BeaconEvent)) -> "EventRecorder":
        for event in events:
            bus.on(event, self._handler(event))
        return self

    def _handler(self, event: BeaconEvent) -> Callable[[Any], None]:
        def handle(data: Any) -> None:
            self.received.append((event, data))
        return handle

    def names(self) -> List[BeaconEvent]:
        return [event for event, _ in self.received]

    def payloads(self, event: BeaconEvent) -> List[Any]:
        return [data for e, data in self.received if e == event]


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def wallet() -> MockWallet:
    return MockWallet()


@pytest.fixture
def transport(wallet: MockWallet) -> LoopbackTransport:
    return LoopbackTransport(wallet, peer_id="mock-wallet")


@pytest.fixture
def client(storage: InMemoryStorage, transport: LoopbackTransport) -> DAppClient:
    return DAppClient(
        DAppClientOptions(
            name="Test dApp",
            storage=storage,
            transport=transport,
            limiter=NoopLimiter(),
        )
    )


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def make_account() -> Callable[..., AccountInfo]:
    """Factory for hand-built AccountInfo records."""

    def _make(
        scopes: Iterable[PermissionScope] = (PermissionScope.SIGN, PermissionScope.OPERATION_REQUEST),
        *,
        pubkey: str = TEST_PUBKEY,
        network: Network = Network(),
    ) -> AccountInfo:
        return AccountInfo(
            account_identifier=get_account_identifier(pubkey, network),
            beacon_id="wallet-beacon-id",
            origin=ConnectionContext(origin=OriginType.P2P, id="mock-wallet"),
            address=get_address_from_public_key(pubkey),
            pubkey=pubkey,
            network=network,
            scopes=tuple(scopes),
        )

    return _make
