# SPDX-License-Identifier: Apache-2.0
"""
Example 02: Concurrent Requests

Fires several sign requests at once against a wallet that answers in reverse
order, showing that every caller still receives its own signature.
"""

import asyncio

from beacon_sdk import (
    DAppClient,
    DAppClientOptions,
    LoopbackTransport,
    NoopLimiter,
    RequestSignPayloadInput,
)
from beacon_sdk.mock import MockWallet
from examples.common.printing import box, print_table


async def main() -> None:
    box("Example 02: Concurrent Requests")

    wallet = MockWallet()
    client = DAppClient(
        DAppClientOptions(
            name="Concurrent dApp",
            transport=LoopbackTransport(wallet),
            # the default limiter allows two requests per five seconds
            limiter=NoopLimiter(),
        )
    )
    await client.request_permissions()

    wallet.hold = True
    payloads = ["0501", "0502", "0503", "0504"]
    tasks = [
        asyncio.ensure_future(client.request_sign_payload(RequestSignPayloadInput(payload=p)))
        for p in payloads
    ]
    while len(wallet.held) < len(payloads):
        await asyncio.sleep(0)

    order = list(reversed(wallet.held_ids()))
    print(f"  wallet answers in order: {[i[:8] for i in order]}")
    await wallet.release_all(order=order)
    results = await asyncio.gather(*tasks)

    print_table(
        [
            {"payload": p, "signature": r.signature, "matches": r.signature == wallet.sign(p)}
            for p, r in zip(payloads, results)
        ],
        headers=["payload", "signature", "matches"],
    )
    await client.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
