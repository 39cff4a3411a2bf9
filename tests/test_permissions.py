# SPDX-License-Identifier: Apache-2.0
"""
Permission gate.
Covers:
  • required scopes per request kind
  • permission requests pass without a session
  • missing session raises NoActiveAccount
  • insufficient scopes answer False
"""
import pytest

from beacon_sdk import (
    AccountManager,
    AccountSessionManager,
    BeaconMessageType,
    EventBus,
    InMemoryStorage,
    NoActiveAccount,
    PermissionGate,
    PermissionScope,
    REQUIRED_SCOPES,
    check_permissions,
)

pytestmark = pytest.mark.asyncio


def _gate():
    storage = InMemoryStorage()
    session = AccountSessionManager(storage, AccountManager(storage), EventBus())
    return PermissionGate(session), session


async def test_required_scopes_table():
    assert REQUIRED_SCOPES[BeaconMessageType.PERMISSION_REQUEST] == ()
    assert REQUIRED_SCOPES[BeaconMessageType.BROADCAST_REQUEST] == ()
    assert REQUIRED_SCOPES[BeaconMessageType.OPERATION_REQUEST] == (PermissionScope.OPERATION_REQUEST,)
    assert REQUIRED_SCOPES[BeaconMessageType.SIGN_PAYLOAD_REQUEST] == (PermissionScope.SIGN,)


@pytest.mark.parametrize(
    "request_type,scopes,expected",
    [
        (BeaconMessageType.SIGN_PAYLOAD_REQUEST, [PermissionScope.SIGN], True),
        (BeaconMessageType.SIGN_PAYLOAD_REQUEST, [PermissionScope.OPERATION_REQUEST], False),
        (BeaconMessageType.OPERATION_REQUEST, [PermissionScope.OPERATION_REQUEST], True),
        (BeaconMessageType.OPERATION_REQUEST, [PermissionScope.SIGN], False),
        (BeaconMessageType.BROADCAST_REQUEST, [PermissionScope.READ_ADDRESS], True),
        (BeaconMessageType.PERMISSION_REQUEST, [], True),
        (BeaconMessageType.PERMISSION_RESPONSE, [PermissionScope.SIGN], False),
    ],
)
async def test_check_permissions(request_type, scopes, expected):
    assert check_permissions(request_type, scopes) is expected


async def test_check_permissions_accepts_wire_strings():
    assert check_permissions("sign_payload_request", ["sign"]) is True
    assert check_permissions("not_a_kind", ["sign"]) is False


async def test_permission_request_needs_no_session():
    gate, _ = _gate()
    assert gate.is_authorized(BeaconMessageType.PERMISSION_REQUEST) is True


@pytest.mark.parametrize(
    "request_type",
    [
        BeaconMessageType.SIGN_PAYLOAD_REQUEST,
        BeaconMessageType.OPERATION_REQUEST,
        BeaconMessageType.BROADCAST_REQUEST,
    ],
)
async def test_missing_session_raises(request_type):
    gate, _ = _gate()
    with pytest.raises(NoActiveAccount):
        gate.is_authorized(request_type)


async def test_gate_uses_active_account_scopes(make_account):
    gate, session = _gate()
    await session.set_active_account(make_account([PermissionScope.SIGN]))

    assert gate.is_authorized(BeaconMessageType.SIGN_PAYLOAD_REQUEST) is True
    assert gate.is_authorized(BeaconMessageType.OPERATION_REQUEST) is False
    assert gate.is_authorized(BeaconMessageType.BROADCAST_REQUEST) is True
