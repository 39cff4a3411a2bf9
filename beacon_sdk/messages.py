# beacon_sdk/messages.py
# SPDX-License-Identifier: Apache-2.0
"""
Beacon message model (protocol version 1).

Wire Contract
-------------
Outbound requests are flat JSON objects. The identity fields are injected by
the orchestrator; everything else comes from a typed request builder:

    {
        "id": "<uuid4>",
        "version": "1",
        "beaconId": "<hex public key>",
        "type": "sign_payload_request",
        ...kind-specific fields (camelCase)...
    }

Inbound responses echo the request ``id``. An error response carries an
``errorType`` field:

    {"id": "...", "type": "error", "beaconId": "...", "errorType": "ABORTED_ERROR"}

Inbound messages are decoded upstream of the client; the client only sees
plain mappings plus a :class:`ConnectionContext`. They are classified exactly
once into :class:`Success` or :class:`Failure` by :func:`classify_response`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

BEACON_VERSION = "1"


# =============================================================================
# Enumerations
# =============================================================================

class BeaconMessageType(str, Enum):
    PERMISSION_REQUEST = "permission_request"
    SIGN_PAYLOAD_REQUEST = "sign_payload_request"
    OPERATION_REQUEST = "operation_request"
    BROADCAST_REQUEST = "broadcast_request"
    PERMISSION_RESPONSE = "permission_response"
    SIGN_PAYLOAD_RESPONSE = "sign_payload_response"
    OPERATION_RESPONSE = "operation_response"
    BROADCAST_RESPONSE = "broadcast_response"
    ERROR = "error"


REQUEST_TYPES: Tuple[BeaconMessageType, ...] = (
    BeaconMessageType.PERMISSION_REQUEST,
    BeaconMessageType.SIGN_PAYLOAD_REQUEST,
    BeaconMessageType.OPERATION_REQUEST,
    BeaconMessageType.BROADCAST_REQUEST,
)


class PermissionScope(str, Enum):
    READ_ADDRESS = "read_address"
    SIGN = "sign"
    OPERATION_REQUEST = "operation_request"
    THRESHOLD = "threshold"


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    CARTHAGENET = "carthagenet"
    CUSTOM = "custom"


class BeaconErrorType(str, Enum):
    """Error kinds a wallet may report in the ``errorType`` field."""
    BROADCAST_ERROR = "BROADCAST_ERROR"
    NETWORK_NOT_SUPPORTED = "NETWORK_NOT_SUPPORTED"
    NO_ADDRESS_ERROR = "NO_ADDRESS_ERROR"
    NO_PRIVATE_KEY_FOUND_ERROR = "NO_PRIVATE_KEY_FOUND_ERROR"
    NOT_GRANTED_ERROR = "NOT_GRANTED_ERROR"
    PARAMETERS_INVALID_ERROR = "PARAMETERS_INVALID_ERROR"
    TOO_MANY_OPERATIONS = "TOO_MANY_OPERATIONS"
    TRANSACTION_INVALID_ERROR = "TRANSACTION_INVALID_ERROR"
    ABORTED_ERROR = "ABORTED_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class OriginType(str, Enum):
    P2P = "p2p"
    EXTENSION = "extension"
    WEBSITE = "website"


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class Network:
    """A Tezos network; ``name`` and ``rpc_url`` only matter for custom networks."""
    type: NetworkType = NetworkType.MAINNET
    name: Optional[str] = None
    rpc_url: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": NetworkType(self.type).value}
        if self.name:
            out["name"] = self.name
        if self.rpc_url:
            out["rpcUrl"] = self.rpc_url
        return out

    @classmethod
    def from_wire(cls, data: Optional[Mapping[str, Any]]) -> "Network":
        if not data:
            return cls()
        return cls(
            type=NetworkType(data.get("type", NetworkType.MAINNET.value)),
            name=data.get("name"),
            rpc_url=data.get("rpcUrl"),
        )


@dataclass(frozen=True)
class ConnectionContext:
    """Where an inbound message arrived from. Attached to responses only."""
    origin: OriginType
    id: str


@dataclass(frozen=True)
class AppMetadata:
    beacon_id: str
    name: str
    icon: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"beaconId": self.beacon_id, "name": self.name}
        if self.icon:
            out["icon"] = self.icon
        return out


@dataclass(frozen=True)
class AccountInfo:
    """
    A granted wallet session.

    Frozen: the active account is swapped as a whole, never edited in place.
    Only ``account_identifier`` is persisted as the active-account pointer;
    the full record lives in the accounts store.
    """
    account_identifier: str
    beacon_id: str
    origin: ConnectionContext
    address: str
    pubkey: str
    network: Network
    scopes: Tuple[PermissionScope, ...]
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accountIdentifier": self.account_identifier,
            "beaconId": self.beacon_id,
            "origin": {"type": self.origin.origin.value, "id": self.origin.id},
            "address": self.address,
            "pubkey": self.pubkey,
            "network": self.network.to_wire(),
            "scopes": [s.value for s in self.scopes],
            "connectedAt": self.connected_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AccountInfo":
        origin = data.get("origin") or {}
        return cls(
            account_identifier=data["accountIdentifier"],
            beacon_id=data["beaconId"],
            origin=ConnectionContext(
                origin=OriginType(origin.get("type", OriginType.P2P.value)),
                id=origin.get("id", ""),
            ),
            address=data["address"],
            pubkey=data["pubkey"],
            network=Network.from_wire(data.get("network")),
            scopes=tuple(PermissionScope(s) for s in data.get("scopes") or ()),
            connected_at=datetime.fromisoformat(data["connectedAt"]),
        )


@dataclass(frozen=True)
class RequestEnvelope:
    """
    A fully built outbound request.

    ``fields`` holds the kind-specific wire fields supplied by a builder; the
    identity fields are injected uniformly by the orchestrator.
    """
    id: str
    version: str
    beacon_id: str
    type: BeaconMessageType
    fields: Mapping[str, Any] = field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "version": self.version,
            "beaconId": self.beacon_id,
            "type": self.type.value,
        }
        for key, value in self.fields.items():
            if key in out:
                continue
            out[key] = value
        return out


# --- typed inputs -------------------------------------------------------------

@dataclass(frozen=True)
class RequestPermissionInput:
    network: Optional[Network] = None
    scopes: Optional[List[PermissionScope]] = None


@dataclass(frozen=True)
class RequestSignPayloadInput:
    payload: Optional[str] = None
    source_address: Optional[str] = None


@dataclass(frozen=True)
class RequestOperationInput:
    operation_details: Optional[List[Mapping[str, Any]]] = None
    network: Optional[Network] = None


@dataclass(frozen=True)
class RequestBroadcastInput:
    signed_transaction: Optional[str] = None
    network: Optional[Network] = None


# --- typed outputs ------------------------------------------------------------

@dataclass(frozen=True)
class PermissionResponseOutput:
    beacon_id: str
    address: str
    network: Network
    scopes: Tuple[PermissionScope, ...]


@dataclass(frozen=True)
class SignPayloadResponseOutput:
    beacon_id: str
    signature: str


@dataclass(frozen=True)
class OperationResponseOutput:
    beacon_id: str
    transaction_hash: str


@dataclass(frozen=True)
class BroadcastResponseOutput:
    beacon_id: str
    transaction_hash: str


ResponseOutput = Union[
    PermissionResponseOutput,
    SignPayloadResponseOutput,
    OperationResponseOutput,
    BroadcastResponseOutput,
]


# =============================================================================
# Response sum type
# =============================================================================

@dataclass(frozen=True)
class Success:
    message: Mapping[str, Any]
    context: ConnectionContext

    @property
    def id(self) -> str:
        return str(self.message.get("id"))


@dataclass(frozen=True)
class Failure:
    error_type: str
    message: Mapping[str, Any]
    context: ConnectionContext

    @property
    def id(self) -> str:
        return str(self.message.get("id"))


Response = Union[Success, Failure]


def classify_response(message: Mapping[str, Any], context: ConnectionContext) -> Response:
    """
    Decide once whether an inbound message answers with a result or an error.

    Presence of a truthy ``errorType`` marks an error.
    """
    error_type = message.get("errorType")
    if error_type:
        return Failure(error_type=str(error_type), message=message, context=context)
    return Success(message=message, context=context)


__all__ = [
    "BEACON_VERSION",
    "BeaconMessageType",
    "REQUEST_TYPES",
    "PermissionScope",
    "NetworkType",
    "BeaconErrorType",
    "OriginType",
    "Network",
    "ConnectionContext",
    "AppMetadata",
    "AccountInfo",
    "RequestEnvelope",
    "RequestPermissionInput",
    "RequestSignPayloadInput",
    "RequestOperationInput",
    "RequestBroadcastInput",
    "PermissionResponseOutput",
    "SignPayloadResponseOutput",
    "OperationResponseOutput",
    "BroadcastResponseOutput",
    "ResponseOutput",
    "Success",
    "Failure",
    "Response",
    "classify_response",
]
