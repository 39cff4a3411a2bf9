# beacon_sdk/dapp_client.py
# SPDX-License-Identifier: Apache-2.0
"""
DAppClient: the application-facing side of the Beacon protocol.

Typed request builders
----------------------
- request_permissions()   -> PermissionResponseOutput
- request_sign_payload()  -> SignPayloadResponseOutput
- request_operation()     -> OperationResponseOutput
- request_broadcast()     -> BroadcastResponseOutput

Each builder validates its input (InvalidInput / NoActiveAccount before any
network activity), fills defaults, runs the request through the
orchestrator and maps the response into its output record. Success publishes
the kind's ``*_SUCCESS`` event with ``{"output", "connection_context"}``;
any failure after validation publishes ``*_ERROR`` with the exception and
re-raises it.

Usage
-----

    client = DAppClient(DAppClientOptions(name="My dApp"))
    await client.init(transport)

    granted = await client.request_permissions()
    signed = await client.request_sign_payload(RequestSignPayloadInput(payload="05..."))
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar

from .accounts import AccountManager, AccountSessionManager
from .config import DAppClientOptions
from .core.error_context import attach_context
from .correlation import CorrelationTable, ResponseDispatcher
from .crypto import Identity, get_account_identifier, get_address_from_public_key
from .errors import (
    BeaconError,
    IdentityNotReady,
    InvalidInput,
    NoActiveAccount,
    RemoteError,
    TransportFailure,
)
from .events import MESSAGE_EVENTS, BeaconEvent, EventBus, EventHandler
from .messages import (
    AccountInfo,
    AppMetadata,
    BeaconErrorType,
    BeaconMessageType,
    BroadcastResponseOutput,
    ConnectionContext,
    Network,
    NetworkType,
    OperationResponseOutput,
    PermissionResponseOutput,
    PermissionScope,
    RequestBroadcastInput,
    RequestOperationInput,
    RequestPermissionInput,
    RequestSignPayloadInput,
    SignPayloadResponseOutput,
)
from .orchestrator import RequestOrchestrator
from .permissions import PermissionGate
from .transport import Transport

LOG = logging.getLogger(__name__)

T = TypeVar("T")
OutputT = TypeVar("OutputT")
OutputBuilder = Callable[[Mapping[str, Any], ConnectionContext], Awaitable[OutputT]]

DEFAULT_SCOPES: Tuple[PermissionScope, ...] = (
    PermissionScope.OPERATION_REQUEST,
    PermissionScope.SIGN,
)


def _default_network() -> Network:
    return Network(type=NetworkType.MAINNET)


def _invalid_response(message: Mapping[str, Any], **details: Any) -> RemoteError:
    return RemoteError(
        BeaconErrorType.UNKNOWN_ERROR.value,
        response=message,
        details={
            "error_type": BeaconErrorType.UNKNOWN_ERROR.value,
            "type": message.get("type"),
            **details,
        },
    )


def _required_field(message: Mapping[str, Any], key: str) -> Any:
    value = message.get(key)
    if value is None or value == "":
        raise _invalid_response(message, missing_field=key)
    return value


def _decoded_field(message: Mapping[str, Any], key: str, decode: Callable[[Any], T]) -> T:
    try:
        return decode(message.get(key))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise _invalid_response(message, invalid_field=key, reason=str(e)) from e


def _parse_scopes(raw: Any) -> Tuple[PermissionScope, ...]:
    if raw is not None and not isinstance(raw, (list, tuple)):
        raise TypeError(f"expected a list of scopes, got {type(raw).__name__}")
    scopes: List[PermissionScope] = []
    for item in raw or ():
        try:
            scopes.append(PermissionScope(item))
        except (TypeError, ValueError):
            LOG.warning("ignoring unknown permission scope %r", item)
    return tuple(scopes)


class DAppClient:

    def __init__(self, options: DAppClientOptions) -> None:
        self.name = options.name
        self.icon_url = options.icon_url

        self._storage = options.make_storage()
        self.events = EventBus()
        self.accounts = AccountManager(self._storage)
        self.session = AccountSessionManager(self._storage, self.accounts, self.events)

        self._table = CorrelationTable()
        self._dispatcher = ResponseDispatcher(self._table)
        self._gate = PermissionGate(self.session)
        self._identity: Optional[Identity] = None
        self._orchestrator = RequestOrchestrator(
            table=self._table,
            gate=self._gate,
            events=self.events,
            beacon_id=lambda: self.beacon_id,
            limiter=options.make_limiter(),
        )

        self._transport: Optional[Transport] = None
        self._transport_announced = False
        self._initialized = False
        self._init_lock = asyncio.Lock()
        if options.transport is not None:
            self._attach_transport(options.transport)

    # --- lifecycle -------------------------------------------------------------

    @property
    def beacon_id(self) -> Optional[str]:
        return self._identity.beacon_id if self._identity is not None else None

    @property
    def transport(self) -> Optional[Transport]:
        return self._transport

    async def __aenter__(self) -> "DAppClient":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def init(self, transport: Optional[Transport] = None) -> None:
        """
        Load the client identity, restore the persisted active account and
        attach ``transport`` when given. Safe to call repeatedly and
        concurrently: the identity is loaded or created exactly once.
        """
        if transport is not None and transport is not self._transport:
            self._attach_transport(transport)

        if self._transport is not None and not self._transport_announced:
            self._transport_announced = True
            self.events.emit(BeaconEvent.ACTIVE_TRANSPORT_SET, self._transport)

        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            self._identity = await Identity.load_or_create(self._storage)
            await self.session.restore()
            self._initialized = True
        LOG.info("dApp client %r initialized", self.name)

    async def connect(self) -> None:
        await self.init()
        if self._transport is None:
            raise TransportFailure("no transport configured")
        await self._transport.init()
        await self._transport.connect()

    async def close(self) -> None:
        """Cancel every open request and outstanding async event handlers, then close the transport."""
        for request_id in self._table.pending_ids():
            self._table.cancel(request_id)
        self.events.cancel_pending()
        if self._transport is not None:
            await self._transport.close()

    def _attach_transport(self, transport: Transport) -> None:
        self._transport = transport
        self._transport_announced = False
        self._orchestrator.transport = transport
        transport.add_listener(self.on_message)

    # --- inbound ---------------------------------------------------------------

    def on_message(self, message: Mapping[str, Any], context: ConnectionContext) -> None:
        """Inbound delivery hook; every decoded message from the transport lands here."""
        self._dispatcher.on_message(message, context)

    # --- accounts / session ----------------------------------------------------

    async def get_active_account(self) -> Optional[AccountInfo]:
        return self.session.get_active_account()

    async def set_active_account(self, account: Optional[AccountInfo]) -> None:
        await self.session.set_active_account(account)

    async def clear_active_account(self) -> None:
        await self.session.clear_active_account()

    async def get_accounts(self) -> List[AccountInfo]:
        return await self.accounts.get_accounts()

    async def get_account(self, account_identifier: str) -> Optional[AccountInfo]:
        return await self.accounts.get_account(account_identifier)

    async def remove_account(self, account_identifier: str) -> None:
        active = self.session.get_active_account()
        await self.accounts.remove_account(account_identifier)
        if active is not None and active.account_identifier == account_identifier:
            await self.session.clear_active_account()

    async def remove_all_accounts(self) -> None:
        await self.accounts.remove_all_accounts()
        await self.session.clear_active_account()

    async def get_app_metadata(self) -> AppMetadata:
        await self.init()
        beacon_id = self.beacon_id
        if not beacon_id:
            raise IdentityNotReady()
        return AppMetadata(beacon_id=beacon_id, name=self.name, icon=self.icon_url)

    # --- events / permissions / open requests ---------------------------------

    def subscribe_to_event(self, event: BeaconEvent, handler: EventHandler) -> None:
        self.events.on(event, handler)

    def unsubscribe_from_event(self, event: BeaconEvent, handler: Optional[EventHandler] = None) -> None:
        self.events.off(event, handler)

    async def check_permissions(self, request_type: BeaconMessageType) -> bool:
        return self._gate.is_authorized(request_type)

    def pending_request_ids(self) -> List[str]:
        return self._table.pending_ids()

    def cancel_request(self, request_id: str) -> bool:
        """Reject an open request with RequestCancelled. Compose with a timer for timeouts."""
        return self._orchestrator.cancel(request_id)

    # --- typed request builders ------------------------------------------------

    async def request_permissions(
        self,
        input: Optional[RequestPermissionInput] = None,
    ) -> PermissionResponseOutput:
        input = input or RequestPermissionInput()
        network = input.network or _default_network()
        try:
            scopes = tuple(PermissionScope(s) for s in input.scopes) if input.scopes else DEFAULT_SCOPES
        except ValueError as e:
            raise InvalidInput(f"unknown permission scope: {e}") from e

        metadata = await self.get_app_metadata()
        fields: Dict[str, Any] = {
            "appMetadata": metadata.to_wire(),
            "network": network.to_wire(),
            "scopes": [s.value for s in scopes],
        }

        async def build(message: Mapping[str, Any], context: ConnectionContext) -> PermissionResponseOutput:
            pubkey = _required_field(message, "pubkey")
            if not isinstance(pubkey, str):
                raise _invalid_response(message, invalid_field="pubkey")
            granted_network = (
                _decoded_field(message, "network", Network.from_wire) if message.get("network") else network
            )
            granted_scopes = _decoded_field(message, "scopes", _parse_scopes)
            address = get_address_from_public_key(pubkey)

            account = AccountInfo(
                account_identifier=get_account_identifier(pubkey, granted_network),
                beacon_id=str(message.get("beaconId", "")),
                origin=context,
                address=address,
                pubkey=pubkey,
                network=granted_network,
                scopes=granted_scopes,
                connected_at=datetime.now(timezone.utc),
            )
            await self.accounts.add_account(account)
            if granted_scopes:
                await self.session.set_active_account(account)
            else:
                LOG.warning("wallet granted no scopes; account %s stored but not activated", address)

            return PermissionResponseOutput(
                beacon_id=account.beacon_id,
                address=address,
                network=granted_network,
                scopes=granted_scopes,
            )

        return await self._request(BeaconMessageType.PERMISSION_REQUEST, fields, build)

    async def request_sign_payload(self, input: RequestSignPayloadInput) -> SignPayloadResponseOutput:
        if not input.payload:
            raise InvalidInput("Payload must be provided")
        await self.init()
        active = self._require_active_account()

        fields = {
            "payload": input.payload,
            "sourceAddress": input.source_address or active.address or "",
        }

        async def build(message: Mapping[str, Any], _context: ConnectionContext) -> SignPayloadResponseOutput:
            return SignPayloadResponseOutput(
                beacon_id=str(message.get("beaconId", "")),
                signature=_required_field(message, "signature"),
            )

        return await self._request(BeaconMessageType.SIGN_PAYLOAD_REQUEST, fields, build)

    async def request_operation(self, input: RequestOperationInput) -> OperationResponseOutput:
        if not input.operation_details:
            raise InvalidInput("Operation details must be provided")
        await self.init()
        active = self._require_active_account()

        fields = {
            "network": (input.network or _default_network()).to_wire(),
            "operationDetails": [dict(op) for op in input.operation_details],
            "sourceAddress": active.address or "",
        }

        async def build(message: Mapping[str, Any], _context: ConnectionContext) -> OperationResponseOutput:
            return OperationResponseOutput(
                beacon_id=str(message.get("beaconId", "")),
                transaction_hash=_required_field(message, "transactionHash"),
            )

        return await self._request(BeaconMessageType.OPERATION_REQUEST, fields, build)

    async def request_broadcast(self, input: RequestBroadcastInput) -> BroadcastResponseOutput:
        if not input.signed_transaction:
            raise InvalidInput("Signed transaction must be provided")
        await self.init()

        fields = {
            "network": (input.network or _default_network()).to_wire(),
            "signedTransaction": input.signed_transaction,
        }

        async def build(message: Mapping[str, Any], _context: ConnectionContext) -> BroadcastResponseOutput:
            return BroadcastResponseOutput(
                beacon_id=str(message.get("beaconId", "")),
                transaction_hash=_required_field(message, "transactionHash"),
            )

        return await self._request(BeaconMessageType.BROADCAST_REQUEST, fields, build)

    # --- internal --------------------------------------------------------------

    def _require_active_account(self) -> AccountInfo:
        active = self.session.get_active_account()
        if active is None:
            raise NoActiveAccount("No active account!")
        return active

    async def _request(
        self,
        request_type: BeaconMessageType,
        fields: Mapping[str, Any],
        build: OutputBuilder,
    ) -> OutputT:
        events = MESSAGE_EVENTS[request_type]
        try:
            message, context = await self._orchestrator.call(request_type, fields)
            try:
                output = await build(message, context)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise _invalid_response(message, reason=str(e)) from e
        except BeaconError as exc:
            attach_context(exc, "response", request_type=request_type.value)
            LOG.error("%s failed: %s", request_type.value, exc)
            self.events.emit(events.error, exc)
            raise

        self.events.emit(events.success, {"output": output, "connection_context": context})
        return output


__all__ = ["DAppClient", "DEFAULT_SCOPES"]
