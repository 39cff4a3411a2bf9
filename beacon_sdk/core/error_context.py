# beacon_sdk/core/error_context.py
# SPDX-License-Identifier: Apache-2.0

"""
Error context utilities for the request pipeline.

Exceptions raised while a request moves through the client are enriched with
where they happened (request kind, correlation id, pipeline stage) without
changing their type or message. The context lives on the exception as a
``__beacon_context__`` attribute:

    try:
        output = await client.request_sign_payload(RequestSignPayloadInput(payload="05..."))
    except BeaconError as exc:
        ctx = get_context(exc)
        logger.error("sign failed", extra={"stage": ctx.get("stage")})

Multiple layers may contribute; later calls merge into the existing mapping,
and keys already present are kept (the innermost layer wins).
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, MutableMapping

logger = logging.getLogger(__name__)

_ATTR = "__beacon_context__"


def attach_context(exc: BaseException, stage: str, **context: Any) -> None:
    """
    Attach debugging context to an exception.

    ``stage`` names the pipeline step (e.g. "gate", "send", "response").
    Attachment is best-effort and never masks the original exception.
    """
    try:
        merged: MutableMapping[str, Any] = {}
        existing = getattr(exc, _ATTR, None)
        if isinstance(existing, Mapping):
            merged.update(existing)

        merged.setdefault("stage", stage)
        for key, value in context.items():
            merged.setdefault(key, value)

        setattr(exc, _ATTR, merged)
    except Exception as attachment_error:  # noqa: BLE001
        logger.debug(
            "Failed to attach error context to %s: %s",
            type(exc).__name__,
            attachment_error,
        )


def get_context(exc: BaseException) -> Mapping[str, Any]:
    """Return the attached context, or an empty dict."""
    ctx = getattr(exc, _ATTR, None)
    if isinstance(ctx, Mapping):
        return ctx
    return {}


def has_context(exc: BaseException) -> bool:
    return bool(get_context(exc))


__all__ = ["attach_context", "get_context", "has_context"]
