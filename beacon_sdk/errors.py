# beacon_sdk/errors.py
# SPDX-License-Identifier: Apache-2.0
"""
Normalized error taxonomy for the Beacon dApp client.

Every failure raised by the request pipeline is a subclass of
:class:`BeaconError`, so callers can branch on ``code`` without knowing the
concrete class.

Gating errors (raised before anything is sent):
    - RateLimited
    - Unauthorized
    - NoActiveAccount
    - IdentityNotReady
    - InvalidInput

Post-send errors:
    - RemoteError       (the wallet answered with an error message)
    - TransportFailure  (init / connect / send failed)
    - RequestCancelled  (the caller abandoned an open request)

Invariant violations:
    - DuplicateId

Nothing here is retried automatically; retry policy belongs to the caller.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


class BeaconError(Exception):
    """
    Base exception for all Beacon client errors.

    Attributes:
        message:
            Human-readable description (safe for logs).
        code:
            Upper-snake-case machine code; defaults per subclass.
        details:
            Additional JSON-safe context.
    """
    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = dict(details or {})

    def __str__(self) -> str:
        base = self.message or self.__class__.__name__
        if self.code:
            base += f" [code={self.code}]"
        if self.details:
            base += f" details={self.details}"
        return base


class RateLimited(BeaconError):
    """The local rate limiter refused the request; nothing was sent."""
    def __init__(self, message: str = "rate limit reached", **kwargs: Any):
        kwargs.setdefault("code", "RATE_LIMITED")
        super().__init__(message, **kwargs)


class Unauthorized(BeaconError):
    """The active account was not granted the scopes this request needs."""
    def __init__(
        self,
        message: str = "No permissions to send this request to wallet!",
        **kwargs: Any,
    ):
        kwargs.setdefault("code", "UNAUTHORIZED")
        super().__init__(message, **kwargs)


class NoActiveAccount(BeaconError):
    """
    No session is active.

    Distinct from :class:`Unauthorized`: the fix is to request permissions,
    not to ask for more scopes.
    """
    def __init__(self, message: str = "No active account set!", **kwargs: Any):
        kwargs.setdefault("code", "NO_ACTIVE_ACCOUNT")
        super().__init__(message, **kwargs)


class IdentityNotReady(BeaconError):
    """The client has no beacon id yet, so no envelope can be built."""
    def __init__(self, message: str = "BeaconID not defined", **kwargs: Any):
        kwargs.setdefault("code", "IDENTITY_NOT_READY")
        super().__init__(message, **kwargs)


class InvalidInput(BeaconError):
    """A mandatory input field is missing or malformed."""
    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("code", "INVALID_INPUT")
        super().__init__(message, **kwargs)


class RemoteError(BeaconError):
    """
    The wallet answered with an error message.

    ``error_type`` carries the remote error kind (a ``BeaconErrorType``
    value when the wallet follows the protocol) and ``response`` the raw
    inbound message.
    """
    def __init__(
        self,
        error_type: str,
        *,
        response: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("code", "REMOTE_ERROR")
        kwargs.setdefault("details", {"error_type": error_type})
        super().__init__(error_type, **kwargs)
        self.error_type = error_type
        self.response = dict(response or {})


class TransportFailure(BeaconError):
    """Transport initialization, connection or send failed."""
    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("code", "TRANSPORT_FAILURE")
        super().__init__(message, **kwargs)


class DuplicateId(BeaconError):
    """A correlation id was registered twice. Programming error."""
    def __init__(self, request_id: str, **kwargs: Any):
        kwargs.setdefault("code", "DUPLICATE_ID")
        kwargs.setdefault("details", {"request_id": request_id})
        super().__init__(f"request id already registered: {request_id}", **kwargs)


class RequestCancelled(BeaconError):
    """The caller cancelled an open request before its response arrived."""
    def __init__(self, request_id: str, **kwargs: Any):
        kwargs.setdefault("code", "REQUEST_CANCELLED")
        kwargs.setdefault("details", {"request_id": request_id})
        super().__init__(f"request cancelled: {request_id}", **kwargs)


__all__ = [
    "BeaconError",
    "RateLimited",
    "Unauthorized",
    "NoActiveAccount",
    "IdentityNotReady",
    "InvalidInput",
    "RemoteError",
    "TransportFailure",
    "DuplicateId",
    "RequestCancelled",
]
