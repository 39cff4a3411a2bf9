# beacon_sdk/events.py
# SPDX-License-Identifier: Apache-2.0
"""
Lifecycle and per-request-kind events.

Publishing is fire-and-forget from the client's point of view: sync
subscribers run inline, async subscribers are scheduled as tasks, and a
failing subscriber is logged and never affects the request that triggered
the event.

Payloads:
    *_SUCCESS           {"output": <ResponseOutput>, "connection_context": <ConnectionContext>}
    *_ERROR             the exception raised to the caller
    *_SENT              None
    ACTIVE_ACCOUNT_SET  the new AccountInfo
    LOCAL_RATE_LIMIT_REACHED, NO_PERMISSIONS   None
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from .messages import BeaconMessageType

LOG = logging.getLogger(__name__)

EventHandler = Callable[[Any], Union[None, Awaitable[None]]]


class BeaconEvent(str, Enum):
    PERMISSION_REQUEST_SENT = "PERMISSION_REQUEST_SENT"
    PERMISSION_REQUEST_SUCCESS = "PERMISSION_REQUEST_SUCCESS"
    PERMISSION_REQUEST_ERROR = "PERMISSION_REQUEST_ERROR"
    OPERATION_REQUEST_SENT = "OPERATION_REQUEST_SENT"
    OPERATION_REQUEST_SUCCESS = "OPERATION_REQUEST_SUCCESS"
    OPERATION_REQUEST_ERROR = "OPERATION_REQUEST_ERROR"
    SIGN_REQUEST_SENT = "SIGN_REQUEST_SENT"
    SIGN_REQUEST_SUCCESS = "SIGN_REQUEST_SUCCESS"
    SIGN_REQUEST_ERROR = "SIGN_REQUEST_ERROR"
    BROADCAST_REQUEST_SENT = "BROADCAST_REQUEST_SENT"
    BROADCAST_REQUEST_SUCCESS = "BROADCAST_REQUEST_SUCCESS"
    BROADCAST_REQUEST_ERROR = "BROADCAST_REQUEST_ERROR"
    LOCAL_RATE_LIMIT_REACHED = "LOCAL_RATE_LIMIT_REACHED"
    NO_PERMISSIONS = "NO_PERMISSIONS"
    ACTIVE_ACCOUNT_SET = "ACTIVE_ACCOUNT_SET"
    ACTIVE_TRANSPORT_SET = "ACTIVE_TRANSPORT_SET"


@dataclass(frozen=True)
class MessageEvents:
    sent: BeaconEvent
    success: BeaconEvent
    error: BeaconEvent


MESSAGE_EVENTS: Dict[BeaconMessageType, MessageEvents] = {
    BeaconMessageType.PERMISSION_REQUEST: MessageEvents(
        sent=BeaconEvent.PERMISSION_REQUEST_SENT,
        success=BeaconEvent.PERMISSION_REQUEST_SUCCESS,
        error=BeaconEvent.PERMISSION_REQUEST_ERROR,
    ),
    BeaconMessageType.OPERATION_REQUEST: MessageEvents(
        sent=BeaconEvent.OPERATION_REQUEST_SENT,
        success=BeaconEvent.OPERATION_REQUEST_SUCCESS,
        error=BeaconEvent.OPERATION_REQUEST_ERROR,
    ),
    BeaconMessageType.SIGN_PAYLOAD_REQUEST: MessageEvents(
        sent=BeaconEvent.SIGN_REQUEST_SENT,
        success=BeaconEvent.SIGN_REQUEST_SUCCESS,
        error=BeaconEvent.SIGN_REQUEST_ERROR,
    ),
    BeaconMessageType.BROADCAST_REQUEST: MessageEvents(
        sent=BeaconEvent.BROADCAST_REQUEST_SENT,
        success=BeaconEvent.BROADCAST_REQUEST_SUCCESS,
        error=BeaconEvent.BROADCAST_REQUEST_ERROR,
    ),
}


class EventBus:
    """
    In-process publish/subscribe.

    Handlers may be plain callables or coroutine functions. ``emit`` calls
    sync handlers in subscription order and schedules async handlers as
    tasks without waiting for them; exceptions are logged per handler.
    ``drain`` waits for the scheduled handlers.
    """

    def __init__(self) -> None:
        self._handlers: Dict[BeaconEvent, List[EventHandler]] = {}
        self._tasks: Set[asyncio.Future] = set()

    def on(self, event: BeaconEvent, handler: EventHandler) -> None:
        """Subscribe ``handler`` to ``event``."""
        self._handlers.setdefault(BeaconEvent(event), []).append(handler)

    def off(self, event: BeaconEvent, handler: Optional[EventHandler] = None) -> None:
        """Unsubscribe one handler, or every handler when ``handler`` is None."""
        event = BeaconEvent(event)
        if handler is None:
            self._handlers.pop(event, None)
            return
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers(self, event: BeaconEvent) -> List[EventHandler]:
        return list(self._handlers.get(BeaconEvent(event), ()))

    def emit(self, event: BeaconEvent, data: Any = None) -> None:
        for handler in self.handlers(event):
            try:
                result = handler(data)
            except Exception:  # noqa: BLE001
                LOG.warning("event handler failed for %s", event.value, exc_info=True)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(functools.partial(self._task_done, event))

    def _task_done(self, event: BeaconEvent, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOG.warning("event handler failed for %s", event.value, exc_info=exc)

    def pending(self) -> int:
        """Number of async handlers still running."""
        return len(self._tasks)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_pending(self) -> None:
        for task in list(self._tasks):
            task.cancel()


__all__ = ["BeaconEvent", "MessageEvents", "MESSAGE_EVENTS", "EventHandler", "EventBus"]
