# SPDX-License-Identifier: Apache-2.0
"""
Correlation: pending table and inbound dispatcher.
Covers:
  • register / settle resolves the matching future with (message, context)
  • error responses reject with RemoteError carrying the remote error type
  • duplicate ids are refused
  • unknown, late and duplicate responses are dropped without side effects
  • discard and cancel remove entries and reject their futures
  • cancelling a future nobody awaits is not reported as an unretrieved exception
  • the dispatcher ignores messages without an id
"""
import asyncio
import gc
import logging

import pytest

from beacon_sdk import (
    ConnectionContext,
    CorrelationTable,
    DuplicateId,
    Failure,
    OriginType,
    RemoteError,
    RequestCancelled,
    ResponseDispatcher,
    Success,
    TransportFailure,
    classify_response,
)

pytestmark = pytest.mark.asyncio

CTX = ConnectionContext(origin=OriginType.P2P, id="peer-1")


def _future():
    return asyncio.get_running_loop().create_future()


async def test_settle_resolves_registered_future():
    table = CorrelationTable()
    fut = _future()
    table.register("a", fut)

    message = {"id": "a", "type": "sign_payload_response", "signature": "edsig..."}
    assert table.settle(Success(message=message, context=CTX)) is True

    assert fut.done(), "future must be settled synchronously by settle()"
    result_message, result_ctx = fut.result()
    assert result_message["signature"] == "edsig..."
    assert result_ctx == CTX
    assert "a" not in table, "settled entries must be removed"
    assert len(table) == 0


async def test_failure_rejects_with_remote_error():
    table = CorrelationTable()
    fut = _future()
    table.register("a", fut)

    message = {"id": "a", "type": "error", "errorType": "ABORTED_ERROR"}
    assert table.settle(Failure(error_type="ABORTED_ERROR", message=message, context=CTX))

    with pytest.raises(RemoteError) as exc_info:
        await fut
    assert exc_info.value.error_type == "ABORTED_ERROR"
    assert exc_info.value.response["id"] == "a"
    assert exc_info.value.code == "REMOTE_ERROR"


async def test_register_rejects_duplicate_id():
    table = CorrelationTable()
    table.register("a", _future())

    with pytest.raises(DuplicateId):
        table.register("a", _future())
    assert len(table) == 1, "the original entry must survive"


async def test_unknown_id_is_dropped_and_logged(caplog):
    table = CorrelationTable()
    fut = _future()
    table.register("a", fut)

    with caplog.at_level(logging.WARNING, logger="beacon_sdk.correlation"):
        settled = table.settle(Success(message={"id": "zzz"}, context=CTX))

    assert settled is False
    assert not fut.done(), "an unrelated response must not touch other entries"
    assert table.pending_ids() == ["a"]
    assert "zzz" in caplog.text


async def test_second_response_for_same_id_is_a_no_op():
    table = CorrelationTable()
    fut = _future()
    table.register("a", fut)

    assert table.settle(Success(message={"id": "a", "n": 1}, context=CTX))
    assert not table.settle(Success(message={"id": "a", "n": 2}, context=CTX))

    message, _ = await fut
    assert message["n"] == 1, "only the first response may settle the request"


async def test_response_after_caller_abandoned_future_is_dropped():
    table = CorrelationTable()
    fut = _future()
    table.register("a", fut)
    fut.cancel()

    assert table.settle(Success(message={"id": "a"}, context=CTX)) is False
    assert "a" not in table


async def test_discard_rejects_and_removes():
    table = CorrelationTable()
    fut = _future()
    table.register("a", fut)

    exc = TransportFailure("boom")
    assert table.discard("a", exc) is True
    assert "a" not in table
    assert fut.exception() is exc
    assert table.discard("a", exc) is False


async def test_cancel_rejects_with_request_cancelled():
    table = CorrelationTable()
    fut = _future()
    table.register("a", fut)

    assert table.cancel("a") is True
    with pytest.raises(RequestCancelled):
        await fut
    assert table.cancel("a") is False, "cancelling twice is a no-op"


async def test_classify_response_uses_error_type_field():
    ok = classify_response({"id": "a", "type": "sign_payload_response"}, CTX)
    err = classify_response({"id": "a", "type": "error", "errorType": "NOT_GRANTED_ERROR"}, CTX)
    empty = classify_response({"id": "a", "errorType": ""}, CTX)

    assert isinstance(ok, Success)
    assert isinstance(err, Failure) and err.error_type == "NOT_GRANTED_ERROR"
    assert isinstance(empty, Success), "an empty errorType is not an error"


async def test_dispatcher_routes_to_table():
    table = CorrelationTable()
    dispatcher = ResponseDispatcher(table)
    a, b = _future(), _future()
    table.register("a", a)
    table.register("b", b)

    dispatcher.on_message({"id": "b", "type": "error", "errorType": "UNKNOWN_ERROR"}, CTX)
    dispatcher.on_message({"id": "a", "type": "broadcast_response", "transactionHash": "oo"}, CTX)

    assert (await a)[0]["transactionHash"] == "oo"
    with pytest.raises(RemoteError):
        await b


async def test_dispatcher_drops_message_without_id(caplog):
    table = CorrelationTable()
    fut = _future()
    table.register("a", fut)
    dispatcher = ResponseDispatcher(table)

    with caplog.at_level(logging.WARNING, logger="beacon_sdk.correlation"):
        dispatcher.on_message({"type": "permission_response"}, CTX)

    assert not fut.done()
    assert len(table) == 1
    assert "without id" in caplog.text


async def test_cancelled_future_nobody_awaits_is_not_reported():
    loop = asyncio.get_running_loop()
    reported = []
    previous = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, ctx: reported.append(ctx))
    try:
        table = CorrelationTable()
        fut = _future()
        table.register("a", fut)

        assert table.cancel("a") is True
        assert fut.done()
        del fut
        gc.collect()
    finally:
        loop.set_exception_handler(previous)

    assert reported == [], "a cancelled request must not log 'exception was never retrieved'"
