# beacon_sdk/permissions.py
# SPDX-License-Identifier: Apache-2.0
"""
Permission gate.

Permission requests are always allowed: they are how scopes are obtained.
Every other kind needs an active account whose granted scopes cover the
kind's required scopes. A missing session raises ``NoActiveAccount``; an
insufficient one simply answers False and the orchestrator reports
``Unauthorized``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, Tuple

from .errors import NoActiveAccount
from .messages import BeaconMessageType, PermissionScope

if TYPE_CHECKING:
    from .accounts import AccountSessionManager

LOG = logging.getLogger(__name__)

REQUIRED_SCOPES: Dict[BeaconMessageType, Tuple[PermissionScope, ...]] = {
    BeaconMessageType.PERMISSION_REQUEST: (),
    BeaconMessageType.BROADCAST_REQUEST: (),
    BeaconMessageType.OPERATION_REQUEST: (PermissionScope.OPERATION_REQUEST,),
    BeaconMessageType.SIGN_PAYLOAD_REQUEST: (PermissionScope.SIGN,),
}


def check_permissions(
    request_type: BeaconMessageType,
    scopes: Iterable[PermissionScope],
) -> bool:
    """True when ``scopes`` cover what ``request_type`` requires. Unknown kinds are denied."""
    try:
        required = REQUIRED_SCOPES[BeaconMessageType(request_type)]
    except (KeyError, ValueError):
        return False
    granted = {PermissionScope(s) for s in scopes}
    return set(required).issubset(granted)


class PermissionGate:

    def __init__(self, session: "AccountSessionManager") -> None:
        self._session = session

    def is_authorized(self, request_type: BeaconMessageType) -> bool:
        if request_type == BeaconMessageType.PERMISSION_REQUEST:
            return True

        account = self._session.get_active_account()
        if account is None:
            raise NoActiveAccount()

        allowed = check_permissions(request_type, account.scopes)
        if not allowed:
            LOG.debug(
                "account %s lacks scopes for %s",
                account.account_identifier,
                BeaconMessageType(request_type).value,
            )
        return allowed


__all__ = ["REQUIRED_SCOPES", "check_permissions", "PermissionGate"]
