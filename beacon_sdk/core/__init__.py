# beacon_sdk/core/__init__.py
# SPDX-License-Identifier: Apache-2.0
"""Protocol-independent infrastructure shared by the client modules."""

from beacon_sdk.core.error_context import attach_context, get_context, has_context

__all__ = ["attach_context", "get_context", "has_context"]
