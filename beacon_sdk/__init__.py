# beacon_sdk/__init__.py
# SPDX-License-Identifier: Apache-2.0

"""
Beacon dApp client - Public API

This module provides the public interface for the dApp side of the Beacon
protocol. All public types are re-exported here for clean imports.
"""

from beacon_sdk.accounts import AccountManager, AccountSessionManager
from beacon_sdk.config import DAppClientOptions
from beacon_sdk.correlation import CorrelationTable, ResponseDispatcher
from beacon_sdk.crypto import (
    Identity,
    generate_guid,
    get_account_identifier,
    get_address_from_public_key,
)
from beacon_sdk.dapp_client import DEFAULT_SCOPES, DAppClient
from beacon_sdk.errors import (
    # Error types
    BeaconError,
    DuplicateId,
    IdentityNotReady,
    InvalidInput,
    NoActiveAccount,
    RateLimited,
    RemoteError,
    RequestCancelled,
    TransportFailure,
    Unauthorized,
)
from beacon_sdk.events import MESSAGE_EVENTS, BeaconEvent, EventBus
from beacon_sdk.limits import NoopLimiter, RateLimiter, SlidingWindowLimiter
from beacon_sdk.messages import (
    # Protocol version
    BEACON_VERSION,

    # Enumerations
    BeaconErrorType,
    BeaconMessageType,
    NetworkType,
    OriginType,
    PermissionScope,

    # Records
    AccountInfo,
    AppMetadata,
    ConnectionContext,
    Network,

    # Typed inputs
    RequestBroadcastInput,
    RequestOperationInput,
    RequestPermissionInput,
    RequestSignPayloadInput,

    # Typed outputs
    BroadcastResponseOutput,
    OperationResponseOutput,
    PermissionResponseOutput,
    SignPayloadResponseOutput,

    # Response sum type
    Failure,
    Success,
    classify_response,
)
from beacon_sdk.orchestrator import RequestOrchestrator
from beacon_sdk.permissions import REQUIRED_SCOPES, PermissionGate, check_permissions
from beacon_sdk.serializer import Serializer
from beacon_sdk.storage import FileStorage, InMemoryStorage, Storage, StorageKey
from beacon_sdk.transport import LoopbackTransport, Transport

__version__ = "0.1.0"

__all__ = [
    "__version__",

    # Client
    "DAppClient",
    "DAppClientOptions",
    "DEFAULT_SCOPES",

    # Protocol version
    "BEACON_VERSION",

    # Error types
    "BeaconError",
    "DuplicateId",
    "IdentityNotReady",
    "InvalidInput",
    "NoActiveAccount",
    "RateLimited",
    "RemoteError",
    "RequestCancelled",
    "TransportFailure",
    "Unauthorized",

    # Enumerations
    "BeaconErrorType",
    "BeaconMessageType",
    "NetworkType",
    "OriginType",
    "PermissionScope",
    "BeaconEvent",

    # Records
    "AccountInfo",
    "AppMetadata",
    "ConnectionContext",
    "Network",
    "RequestBroadcastInput",
    "RequestOperationInput",
    "RequestPermissionInput",
    "RequestSignPayloadInput",
    "BroadcastResponseOutput",
    "OperationResponseOutput",
    "PermissionResponseOutput",
    "SignPayloadResponseOutput",
    "Failure",
    "Success",
    "classify_response",

    # Engine
    "CorrelationTable",
    "ResponseDispatcher",
    "RequestOrchestrator",
    "PermissionGate",
    "REQUIRED_SCOPES",
    "check_permissions",
    "AccountManager",
    "AccountSessionManager",
    "EventBus",
    "MESSAGE_EVENTS",

    # Collaborators
    "Identity",
    "generate_guid",
    "get_account_identifier",
    "get_address_from_public_key",
    "RateLimiter",
    "NoopLimiter",
    "SlidingWindowLimiter",
    "Serializer",
    "Storage",
    "StorageKey",
    "InMemoryStorage",
    "FileStorage",
    "Transport",
    "LoopbackTransport",
]
