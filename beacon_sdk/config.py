# beacon_sdk/config.py
# SPDX-License-Identifier: Apache-2.0
"""
Client configuration.

Options are passed explicitly to :class:`beacon_sdk.DAppClient`; the
environment is only consulted through :meth:`DAppClientOptions.from_env`:

    BEACON_APP_NAME              dApp name shown to the wallet (required)
    BEACON_ICON_URL              optional icon URL
    BEACON_RATE_LIMIT            requests per window (0 disables limiting)
    BEACON_RATE_LIMIT_WINDOW_S   window length in seconds
    BEACON_STORAGE_PATH          JSON file for FileStorage (in-memory if unset)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import InvalidInput
from .limits import RateLimiter, SlidingWindowLimiter
from .storage import FileStorage, InMemoryStorage, Storage
from .transport import Transport

DEFAULT_RATE_LIMIT = 2
DEFAULT_RATE_LIMIT_WINDOW_S = 5.0


@dataclass(frozen=True)
class DAppClientOptions:
    """
    Attributes:
        name:
            dApp name sent in permission requests.
        icon_url:
            Optional icon sent with the app metadata.
        storage:
            Key/value store; defaults to InMemoryStorage.
        transport:
            Transport to use; may also be supplied later to ``init()``.
        limiter:
            Custom limiter; overrides rate_limit/rate_limit_window_s.
        rate_limit / rate_limit_window_s:
            Sliding-window limit for outbound requests.
    """
    name: str
    icon_url: Optional[str] = None
    storage: Optional[Storage] = None
    transport: Optional[Transport] = None
    limiter: Optional[RateLimiter] = None
    rate_limit: int = DEFAULT_RATE_LIMIT
    rate_limit_window_s: float = DEFAULT_RATE_LIMIT_WINDOW_S

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidInput("name must be provided")

    def make_storage(self) -> Storage:
        return self.storage if self.storage is not None else InMemoryStorage()

    def make_limiter(self) -> RateLimiter:
        if self.limiter is not None:
            return self.limiter
        return SlidingWindowLimiter(limit=self.rate_limit, window_s=self.rate_limit_window_s)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides,
    ) -> "DAppClientOptions":
        env = os.environ if environ is None else environ

        kwargs = {
            "name": env.get("BEACON_APP_NAME", ""),
            "icon_url": env.get("BEACON_ICON_URL") or None,
            "rate_limit": _int(env, "BEACON_RATE_LIMIT", DEFAULT_RATE_LIMIT),
            "rate_limit_window_s": _float(
                env, "BEACON_RATE_LIMIT_WINDOW_S", DEFAULT_RATE_LIMIT_WINDOW_S
            ),
        }
        storage_path = env.get("BEACON_STORAGE_PATH")
        if storage_path:
            kwargs["storage"] = FileStorage(storage_path)
        kwargs.update(overrides)
        return cls(**kwargs)


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidInput(f"{key} must be an integer, got {raw!r}") from e


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise InvalidInput(f"{key} must be a number, got {raw!r}") from e


__all__ = ["DAppClientOptions", "DEFAULT_RATE_LIMIT", "DEFAULT_RATE_LIMIT_WINDOW_S"]
