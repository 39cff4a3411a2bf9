# beacon_sdk/transport.py
# SPDX-License-Identifier: Apache-2.0
"""
Transport interface.

This is the (small) contract a transport must follow. The client treats it as
an opaque, unordered message channel: ``send`` pushes one serialized request
out, and decoded inbound messages come back through registered listeners
together with a :class:`ConnectionContext`. ``init`` and ``connect`` must be
idempotent; the client calls both before every request.

:class:`LoopbackTransport` is an in-process implementation that hands
requests to a local peer (e.g. ``beacon_sdk.mock.MockWallet``). It is used by
the tests and examples; real P2P or extension transports live elsewhere.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    List,
    Mapping,
    Optional,
    Protocol,
    Set,
    Union,
    runtime_checkable,
)

from .messages import ConnectionContext, OriginType
from .serializer import Serializer

LOG = logging.getLogger(__name__)

InboundListener = Callable[[Mapping[str, Any], ConnectionContext], Union[None, Awaitable[None]]]
ReplyFn = Callable[[Mapping[str, Any]], Awaitable[None]]


@runtime_checkable
class Transport(Protocol):
    """Minimal contract for a message transport."""

    async def init(self) -> None:
        """Prepare local resources. Idempotent."""

    async def connect(self) -> None:
        """Establish the channel to the peer. Idempotent."""

    async def send(self, payload: str) -> None:
        """Send one serialized message."""

    def add_listener(self, listener: InboundListener) -> None:
        """Register a callback for decoded inbound messages."""

    async def close(self) -> None:
        """Tear down the channel."""


class LoopbackPeer(Protocol):
    """The far end of a :class:`LoopbackTransport`."""
    async def handle_request(self, request: Mapping[str, Any], reply: ReplyFn) -> None: ...


class LoopbackTransport:
    """
    In-process transport.

    Each ``send`` decodes the payload and schedules ``peer.handle_request`` as
    its own task, so replies arrive asynchronously and possibly out of order,
    like on a real relay. The peer answers through the ``reply`` callback.
    """

    def __init__(
        self,
        peer: Optional[LoopbackPeer] = None,
        *,
        serializer: Optional[Serializer] = None,
        origin: OriginType = OriginType.P2P,
        peer_id: str = "loopback",
    ) -> None:
        self.peer = peer
        self._serializer = serializer or Serializer()
        self._context = ConnectionContext(origin=origin, id=peer_id)
        self._listeners: List[InboundListener] = []
        self._tasks: Set[asyncio.Task] = set()
        self.initialized = False
        self.connected = False
        self.sent: List[str] = []

    async def init(self) -> None:
        if self.initialized:
            return
        self.initialized = True
        LOG.debug("loopback transport initialized")

    async def connect(self) -> None:
        if self.connected:
            return
        if not self.initialized:
            await self.init()
        self.connected = True
        LOG.debug("loopback transport connected peer_id=%s", self._context.id)

    def add_listener(self, listener: InboundListener) -> None:
        self._listeners.append(listener)

    async def send(self, payload: str) -> None:
        if not self.connected:
            raise ConnectionError("loopback transport is not connected")
        self.sent.append(payload)
        if self.peer is None:
            return
        request = self._serializer.deserialize(payload)
        task = asyncio.get_running_loop().create_task(
            self.peer.handle_request(request, self.deliver)
        )
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOG.error("loopback peer failed: %s", exc, exc_info=exc)

    async def deliver(self, message: Mapping[str, Any]) -> None:
        """Hand an inbound message to every listener."""
        for listener in list(self._listeners):
            result = listener(message, self._context)
            if inspect.isawaitable(result):
                await result

    async def drain(self) -> None:
        """Wait until every scheduled peer task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
        self.connected = False


__all__ = ["Transport", "InboundListener", "ReplyFn", "LoopbackPeer", "LoopbackTransport"]
