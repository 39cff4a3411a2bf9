# SPDX-License-Identifier: Apache-2.0
"""
Example 03: Error Handling

Walks through the failures a caller can see: local validation, missing
session, missing scope, local rate limiting and wallet-side errors. Every
error is a BeaconError with a machine-readable code and pipeline context.
"""

import asyncio

from beacon_sdk import (
    BeaconError,
    BeaconErrorType,
    BeaconMessageType,
    DAppClient,
    DAppClientOptions,
    LoopbackTransport,
    PermissionScope,
    RequestBroadcastInput,
    RequestOperationInput,
    RequestPermissionInput,
    RequestSignPayloadInput,
)
from beacon_sdk.core import get_context
from beacon_sdk.mock import MockWallet
from examples.common.printing import box, print_table


async def main() -> None:
    box("Example 03: Error Handling")

    wallet = MockWallet()
    wallet.fail(BeaconMessageType.BROADCAST_REQUEST, BeaconErrorType.BROADCAST_ERROR)
    client = DAppClient(
        DAppClientOptions(name="Errors dApp", transport=LoopbackTransport(wallet), rate_limit=3)
    )

    rows = []

    async def attempt(label, call):
        try:
            await call()
            rows.append({"case": label, "code": "OK", "stage": "", "message": ""})
        except BeaconError as exc:
            rows.append({
                "case": label,
                "code": exc.code,
                "stage": get_context(exc).get("stage", "-"),
                "message": exc.message,
            })

    await attempt("empty payload", lambda: client.request_sign_payload(RequestSignPayloadInput(payload="")))
    await attempt("no session", lambda: client.request_sign_payload(RequestSignPayloadInput(payload="05")))
    await attempt(
        "grant sign only",
        lambda: client.request_permissions(RequestPermissionInput(scopes=[PermissionScope.SIGN])),
    )
    await attempt(
        "operation without scope",
        lambda: client.request_operation(RequestOperationInput(operation_details=[{"kind": "transaction"}])),
    )
    await attempt("wallet error", lambda: client.request_broadcast(RequestBroadcastInput(signed_transaction="ff")))
    await attempt("rate limited", lambda: client.request_sign_payload(RequestSignPayloadInput(payload="05")))

    print_table(rows, headers=["case", "code", "stage", "message"])
    await client.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
