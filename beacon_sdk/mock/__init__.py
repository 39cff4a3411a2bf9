# beacon_sdk/mock/__init__.py
# SPDX-License-Identifier: Apache-2.0
"""In-process wallet used by tests and examples."""

from beacon_sdk.mock.mock_wallet import HeldRequest, MockWallet

__all__ = ["HeldRequest", "MockWallet"]
