# SPDX-License-Identifier: Apache-2.0
"""
Example 01: Permission and Sign

Connects a dApp client to the in-process MockWallet, asks for permissions,
then signs a payload with the granted account.

    python -m examples.ex01_permission_and_sign
"""

import asyncio
import logging

from beacon_sdk import (
    BeaconEvent,
    DAppClient,
    DAppClientOptions,
    LoopbackTransport,
    RequestSignPayloadInput,
)
from beacon_sdk.mock import MockWallet
from examples.common.printing import box, print_kv, print_table


async def main() -> None:
    box("Example 01: Permission and Sign")

    wallet = MockWallet()
    options = DAppClientOptions(name="Example dApp", transport=LoopbackTransport(wallet))

    async with DAppClient(options) as client:
        client.subscribe_to_event(
            BeaconEvent.ACTIVE_ACCOUNT_SET,
            lambda account: print(f"  [event] active account -> {account.address}"),
        )

        granted = await client.request_permissions()
        print_kv({
            "Address": granted.address,
            "Network": granted.network.type,
            "Scopes": granted.scopes,
            "Wallet": granted.beacon_id[:16] + "…",
        })

        signed = await client.request_sign_payload(
            RequestSignPayloadInput(payload="05010000000b48656c6c6f20576f726c64")
        )
        box("Signature")
        print_kv({"Signature": signed.signature})

        box("Known accounts")
        print_table(
            [
                {"address": a.address, "network": a.network.type, "scopes": a.scopes}
                for a in await client.get_accounts()
            ],
            headers=["address", "network", "scopes"],
        )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
