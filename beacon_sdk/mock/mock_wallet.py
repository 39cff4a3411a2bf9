# beacon_sdk/mock/mock_wallet.py
# SPDX-License-Identifier: Apache-2.0
"""
Mock wallet used in beacon_sdk tests and example scripts.

Plugs into :class:`beacon_sdk.transport.LoopbackTransport` as its peer and
answers every request kind deterministically:

- permission_request  -> the wallet's ``edpk`` key, requested network and scopes
- sign_payload_request -> an Ed25519 ``edsig`` signature over the payload
- operation_request / broadcast_request -> an ``o...`` operation hash

Failure injection (``fail_with``), latency and a ``hold`` mode that parks
requests until the test releases them (in any order) make it possible to
exercise error responses and out-of-order delivery.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from beacon_sdk.crypto import b58check_encode
from beacon_sdk.messages import BEACON_VERSION, BeaconErrorType, BeaconMessageType
from beacon_sdk.transport import ReplyFn

LOG = logging.getLogger(__name__)

_EDPK_PREFIX = bytes([13, 15, 37, 217])
_EDSIG_PREFIX = bytes([9, 245, 205, 134, 18])
_OPERATION_HASH_PREFIX = bytes([5, 116])

_RESPONSE_TYPES: Dict[BeaconMessageType, BeaconMessageType] = {
    BeaconMessageType.PERMISSION_REQUEST: BeaconMessageType.PERMISSION_RESPONSE,
    BeaconMessageType.SIGN_PAYLOAD_REQUEST: BeaconMessageType.SIGN_PAYLOAD_RESPONSE,
    BeaconMessageType.OPERATION_REQUEST: BeaconMessageType.OPERATION_RESPONSE,
    BeaconMessageType.BROADCAST_REQUEST: BeaconMessageType.BROADCAST_RESPONSE,
}


# -----------------------------
# Small helpers
# -----------------------------

def _stable_secret(*parts: str) -> bytes:
    return hashlib.blake2b("||".join(parts).encode("utf-8"), digest_size=32).digest()


def _operation_hash(*parts: Any) -> str:
    raw = json.dumps(list(parts), sort_keys=True, separators=(",", ":")).encode("utf-8")
    return b58check_encode(_OPERATION_HASH_PREFIX + hashlib.blake2b(raw, digest_size=32).digest())


@dataclass
class HeldRequest:
    request: Mapping[str, Any]
    reply: ReplyFn


@dataclass
class MockWallet:
    """A deterministic wallet peer for protocol demonstrations and tests."""

    name: str = "mock-wallet"
    seed: str = "mock-wallet-seed"
    latency_s: float = 0.0
    hold: bool = False
    granted_scopes: Optional[List[str]] = None
    fail_with: Dict[BeaconMessageType, BeaconErrorType] = field(default_factory=dict)

    requests: List[Mapping[str, Any]] = field(default_factory=list, init=False)
    held: Dict[str, HeldRequest] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        self._key = ed25519.Ed25519PrivateKey.from_private_bytes(_stable_secret(self.name, self.seed))
        self._raw_public_key = self._key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    # ----- identity ----------------------------------------------------------

    @property
    def beacon_id(self) -> str:
        return self._raw_public_key.hex()

    @property
    def public_key(self) -> str:
        """The wallet account key in ``edpk`` form."""
        return b58check_encode(_EDPK_PREFIX + self._raw_public_key)

    def fail(self, request_type: BeaconMessageType, error_type: BeaconErrorType) -> None:
        """Answer every future ``request_type`` with ``error_type``."""
        self.fail_with[BeaconMessageType(request_type)] = BeaconErrorType(error_type)

    # ----- peer interface ----------------------------------------------------

    async def handle_request(self, request: Mapping[str, Any], reply: ReplyFn) -> None:
        self.requests.append(request)
        LOG.debug("%s received %s id=%s", self.name, request.get("type"), request.get("id"))

        if self.hold:
            self.held[str(request["id"])] = HeldRequest(request=request, reply=reply)
            return

        if self.latency_s:
            await asyncio.sleep(self.latency_s)
        await reply(self.build_response(request))

    # ----- held requests -----------------------------------------------------

    async def release(self, request_id: str, response: Optional[Mapping[str, Any]] = None) -> None:
        """Answer one held request, optionally with a hand-made response."""
        held = self.held.pop(request_id)
        await held.reply(response if response is not None else self.build_response(held.request))

    async def release_all(self, order: Optional[Iterable[str]] = None) -> None:
        """Answer held requests in ``order`` (default: arrival order)."""
        for request_id in list(order if order is not None else self.held):
            await self.release(request_id)

    def held_ids(self) -> List[str]:
        return list(self.held)

    # ----- responses ---------------------------------------------------------

    def build_response(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        request_type = BeaconMessageType(request["type"])
        base: Dict[str, Any] = {
            "id": request["id"],
            "version": BEACON_VERSION,
            "beaconId": self.beacon_id,
        }

        error_type = self.fail_with.get(request_type)
        if error_type is not None:
            base.update({"type": BeaconMessageType.ERROR.value, "errorType": error_type.value})
            return base

        base["type"] = _RESPONSE_TYPES[request_type].value
        if request_type is BeaconMessageType.PERMISSION_REQUEST:
            base.update(self._permission_fields(request))
        elif request_type is BeaconMessageType.SIGN_PAYLOAD_REQUEST:
            base["signature"] = self.sign(str(request.get("payload", "")))
        elif request_type is BeaconMessageType.OPERATION_REQUEST:
            base["transactionHash"] = _operation_hash(
                request.get("sourceAddress"), request.get("operationDetails"), request["id"]
            )
        else:
            base["transactionHash"] = _operation_hash(request.get("signedTransaction"))
        return base

    def sign(self, payload: str) -> str:
        try:
            data = bytes.fromhex(payload)
        except ValueError:
            data = payload.encode("utf-8")
        digest = hashlib.blake2b(data, digest_size=32).digest()
        return b58check_encode(_EDSIG_PREFIX + self._key.sign(digest))

    def _permission_fields(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        scopes: Tuple[str, ...] = tuple(
            self.granted_scopes if self.granted_scopes is not None else request.get("scopes") or ()
        )
        return {
            "pubkey": self.public_key,
            "network": dict(request.get("network") or {"type": "mainnet"}),
            "scopes": list(scopes),
        }


__all__ = ["HeldRequest", "MockWallet"]
