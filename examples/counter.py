# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Interact with a deployed counter contract through Soroban RPC.

The counter keeps one u64 in instance storage: ``count`` reads it, ``add`` and
``subtract`` change it (saturating at the u64 bounds) and return the new value.
Reads are answered by simulation alone; writes are simulated, prepared with the
simulated footprint and resource fee, signed and sent.

Set ``STELLAR_COUNTER_CONTRACT_ID`` to the id of your own deployment.
"""

import asyncio

from stellar_sdk import Keypair

from stellar_bootcamp.async_client import FriendbotClient
from stellar_bootcamp.authorizer import KeypairSigner
from stellar_bootcamp.contracts import CounterClient
from stellar_bootcamp.soroban import SorobanRpcClient

from .common import (
    COUNTER_CONTRACT_ID,
    FRIENDBOT_URL,
    NETWORK_PASSPHRASE,
    OFFLINE,
    SOROBAN_RPC_URL,
)
from .generate_keypair import generate_keypair


def create_contract_client(
    contract_id: str, rpc: SorobanRpcClient, admin: Keypair
) -> CounterClient:
    print(f"Creating counter client for {contract_id} with source {admin.public_key}...")
    return CounterClient(
        contract_id,
        rpc,
        admin.public_key,
        KeypairSigner(admin),
        network_passphrase=NETWORK_PASSPHRASE,
    )


async def read_counter(client: CounterClient) -> int:
    print("Reading current counter value...")
    invocation = await client.count()
    print(f"Current counter value: {invocation.result}")
    return invocation.result


async def increment_counter(client: CounterClient, amount: int) -> int:
    print(f"Incrementing counter by {amount}...")
    invocation = await client.add(amount)
    print("Simulation successful, submitting transaction...")
    sent = await invocation.sign_and_send()
    print(f"Counter incremented successfully to {sent.result}")
    return sent.result


async def decrement_counter(client: CounterClient, amount: int) -> int:
    print(f"Decrementing counter by {amount}...")
    invocation = await client.subtract(amount)
    print("Simulation successful, submitting transaction...")
    sent = await invocation.sign_and_send()
    print(f"Counter decremented successfully to {sent.result}")
    return sent.result


async def main():
    if OFFLINE or not COUNTER_CONTRACT_ID:
        print("Skipping: needs Soroban RPC and STELLAR_COUNTER_CONTRACT_ID")
        return

    print("\n=== Setting up admin account ===")
    admin = generate_keypair()
    friendbot = FriendbotClient(FRIENDBOT_URL)
    try:
        await friendbot.fund_account(admin.public_key)
    finally:
        await friendbot.close()

    rpc = SorobanRpcClient(SOROBAN_RPC_URL)
    try:
        print("\n=== Initializing contract client ===")
        client = create_contract_client(COUNTER_CONTRACT_ID, rpc, admin)

        print("\n=== Reading initial state ===")
        await read_counter(client)

        print("\n=== Demonstrating increment ===")
        await increment_counter(client, 1)
        await increment_counter(client, 2)
        await read_counter(client)

        print("\n=== Demonstrating decrement ===")
        await decrement_counter(client, 1)
        await read_counter(client)
    finally:
        await rpc.close()

    print("\nCounter demonstration completed successfully!")


if __name__ == "__main__":
    asyncio.run(main())
