# beacon_sdk/orchestrator.py
# SPDX-License-Identifier: Apache-2.0
"""
Request orchestrator: the single choke point every outbound request passes.

Pipeline (strictly sequential per request)
------------------------------------------
1. transport ``init()`` + ``connect()``      (idempotent; failure -> TransportFailure)
2. rate limiter                              (LOCAL_RATE_LIMIT_REACHED + RateLimited)
3. permission gate                           (NO_PERMISSIONS + Unauthorized / NoActiveAccount)
4. per-kind ``sent`` event                   (best-effort)
5. beacon id required                        (IdentityNotReady)
6. envelope: fresh id + version + beacon id + kind fields
7. register the pending future               (before send, so no reply can outrun it)
8. serialize + send                          (failure discards the entry -> TransportFailure)
9. hand the future back to the caller

Steps 2, 3 and 5 never touch the wire. Many requests may be in flight at once;
their futures settle in whatever order the wallet answers.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional, Tuple

from .core.error_context import attach_context
from .correlation import CorrelationTable, ResponseResult
from .crypto import generate_guid
from .errors import (
    BeaconError,
    IdentityNotReady,
    RateLimited,
    TransportFailure,
    Unauthorized,
)
from .events import MESSAGE_EVENTS, BeaconEvent, EventBus
from .limits import NoopLimiter, RateLimiter
from .messages import BEACON_VERSION, BeaconMessageType, RequestEnvelope
from .permissions import PermissionGate
from .serializer import Serializer
from .transport import Transport

LOG = logging.getLogger(__name__)

BeaconIdProvider = Callable[[], Optional[str]]


class RequestOrchestrator:

    def __init__(
        self,
        *,
        table: CorrelationTable,
        gate: PermissionGate,
        events: EventBus,
        beacon_id: BeaconIdProvider,
        transport: Optional[Transport] = None,
        limiter: Optional[RateLimiter] = None,
        serializer: Optional[Serializer] = None,
        id_factory: Callable[[], str] = generate_guid,
    ) -> None:
        self.transport = transport
        self._table = table
        self._gate = gate
        self._events = events
        self._beacon_id = beacon_id
        self._limiter: RateLimiter = limiter or NoopLimiter()
        self._serializer = serializer or Serializer()
        self._id_factory = id_factory

    async def submit(
        self,
        request_type: BeaconMessageType,
        fields: Mapping[str, Any],
    ) -> "asyncio.Future[ResponseResult]":
        """
        Gate, build, register and send one request.

        Returns the pending future; await it for ``(message, connection_context)``
        or the propagated error.
        """
        _, future = await self.submit_tracked(request_type, fields)
        return future

    async def submit_tracked(
        self,
        request_type: BeaconMessageType,
        fields: Mapping[str, Any],
    ) -> Tuple[str, "asyncio.Future[ResponseResult]"]:
        """Like ``submit`` but also returns the correlation id, for ``cancel``."""
        request_type = BeaconMessageType(request_type)
        LOG.debug("submitting %s", request_type.value)

        transport = await self._ensure_transport(request_type)

        if self._limiter.check():
            self._events.emit(BeaconEvent.LOCAL_RATE_LIMIT_REACHED)
            exc = RateLimited()
            attach_context(exc, "rate_limit", request_type=request_type.value)
            raise exc

        try:
            authorized = self._gate.is_authorized(request_type)
        except BeaconError as exc:
            self._events.emit(BeaconEvent.NO_PERMISSIONS)
            attach_context(exc, "gate", request_type=request_type.value)
            raise
        if not authorized:
            self._events.emit(BeaconEvent.NO_PERMISSIONS)
            exc = Unauthorized(details={"request_type": request_type.value})
            attach_context(exc, "gate", request_type=request_type.value)
            raise exc

        self._events.emit(MESSAGE_EVENTS[request_type].sent)

        beacon_id = self._beacon_id()
        if not beacon_id:
            exc = IdentityNotReady()
            attach_context(exc, "envelope", request_type=request_type.value)
            raise exc

        envelope = RequestEnvelope(
            id=self._id_factory(),
            version=BEACON_VERSION,
            beacon_id=beacon_id,
            type=request_type,
            fields=dict(fields),
        )

        future: "asyncio.Future[ResponseResult]" = asyncio.get_running_loop().create_future()
        self._table.register(envelope.id, future)

        try:
            payload = self._serializer.serialize(envelope.to_wire())
            await transport.send(payload)
        except Exception as e:
            exc = TransportFailure(
                f"failed to send {request_type.value}: {e}",
                details={"request_id": envelope.id},
            )
            attach_context(exc, "send", request_type=request_type.value, request_id=envelope.id)
            self._table.discard(envelope.id, exc)
            raise exc from e

        LOG.debug("sent %s id=%s", request_type.value, envelope.id)
        return envelope.id, future

    async def call(
        self,
        request_type: BeaconMessageType,
        fields: Mapping[str, Any],
    ) -> ResponseResult:
        """``submit`` and await the response."""
        future = await self.submit(request_type, fields)
        return await future

    def cancel(self, request_id: str) -> bool:
        """Abandon an open request; its future fails with RequestCancelled."""
        return self._table.cancel(request_id)

    async def _ensure_transport(self, request_type: BeaconMessageType) -> Transport:
        transport = self.transport
        if transport is None:
            exc = TransportFailure("no transport configured")
            attach_context(exc, "connect", request_type=request_type.value)
            raise exc
        try:
            await transport.init()
            await transport.connect()
        except Exception as e:
            exc = TransportFailure(f"transport not ready: {e}")
            attach_context(exc, "connect", request_type=request_type.value)
            raise exc from e
        return transport


__all__ = ["RequestOrchestrator", "BeaconIdProvider"]
