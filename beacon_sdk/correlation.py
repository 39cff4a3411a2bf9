# beacon_sdk/correlation.py
# SPDX-License-Identifier: Apache-2.0
"""
Request/response correlation.

CorrelationTable
    One pending future per in-flight request id. Each entry is settled at most
    once and removed when settled, discarded or cancelled. There is no
    timeout: callers that want one race the future against a timer and call
    ``cancel(id)``.

ResponseDispatcher
    The single inbound hook. Classifies each decoded message into the
    ``Success`` / ``Failure`` sum type and forwards it to the table. Late,
    duplicate or unknown responses are logged and dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Tuple

from .errors import DuplicateId, RemoteError, RequestCancelled
from .messages import ConnectionContext, Failure, Response, classify_response

LOG = logging.getLogger(__name__)

ResponseResult = Tuple[Mapping[str, Any], ConnectionContext]


class CorrelationTable:

    def __init__(self) -> None:
        self._open: Dict[str, "asyncio.Future[ResponseResult]"] = {}

    def __len__(self) -> int:
        return len(self._open)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._open

    def pending_ids(self) -> List[str]:
        return list(self._open)

    def register(self, request_id: str, future: "asyncio.Future[ResponseResult]") -> None:
        if request_id in self._open:
            raise DuplicateId(request_id)
        LOG.debug("adding request %s and waiting for answer", request_id)
        self._open[request_id] = future

    def settle(self, response: Response) -> bool:
        """
        Resolve or reject the entry matching ``response.id``.

        Returns False (after logging) when no entry is open for that id.
        """
        future = self._open.pop(response.id, None)
        if future is None:
            LOG.warning("no request found for id %s", response.id)
            return False
        if future.done():
            # abandoned by the caller (e.g. asyncio.wait_for cancelled it)
            LOG.debug("request %s already done; dropping response", response.id)
            return False

        if isinstance(response, Failure):
            LOG.debug("request %s answered with error %s", response.id, response.error_type)
            future.set_exception(
                RemoteError(response.error_type, response=response.message)
            )
        else:
            LOG.debug("request %s answered", response.id)
            future.set_result((response.message, response.context))
        return True

    def discard(self, request_id: str, exc: BaseException) -> bool:
        """Reject and remove an entry, e.g. when its send failed."""
        future = self._open.pop(request_id, None)
        if future is None:
            return False
        if not future.done():
            future.set_exception(exc)
            # the orchestrator raises ``exc`` itself; keep asyncio from
            # reporting it again as "exception was never retrieved"
            future.exception()
        return True

    def cancel(self, request_id: str) -> bool:
        """Reject an open request with :class:`RequestCancelled` and remove it."""
        future = self._open.pop(request_id, None)
        if future is None:
            return False
        if not future.done():
            future.set_exception(RequestCancelled(request_id))
            # close() may cancel a future nobody awaits
            future.exception()
        LOG.debug("request %s cancelled", request_id)
        return True


class ResponseDispatcher:

    def __init__(self, table: CorrelationTable) -> None:
        self._table = table

    def on_message(self, message: Mapping[str, Any], context: ConnectionContext) -> None:
        request_id = message.get("id") if isinstance(message, Mapping) else None
        if not request_id:
            LOG.warning("dropping inbound message without id (type=%s)",
                        message.get("type") if isinstance(message, Mapping) else None)
            return
        self._table.settle(classify_response(message, context))


__all__ = ["ResponseResult", "CorrelationTable", "ResponseDispatcher"]
