# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Emit and read back events from the deployed events contract.

``default`` and ``custom`` only publish an event and touch no storage, so their
simulation comes back as a read call. They are sent with ``force=True`` so the
events are actually recorded on the ledger, then fetched through ``getEvents``.
"""

import asyncio

from stellar_sdk import Keypair

from stellar_bootcamp.async_client import FriendbotClient
from stellar_bootcamp.authorizer import KeypairSigner
from stellar_bootcamp.contracts import EventsClient
from stellar_bootcamp.soroban import SentTransaction, SorobanRpcClient

from .common import (
    EVENTS_CONTRACT_ID,
    FRIENDBOT_URL,
    NETWORK_PASSPHRASE,
    OFFLINE,
    SOROBAN_RPC_URL,
)
from .generate_keypair import generate_keypair


def create_contract_client(rpc: SorobanRpcClient, admin: Keypair) -> EventsClient:
    print(f"Creating events client for {EVENTS_CONTRACT_ID} with source {admin.public_key}...")
    return EventsClient(
        EVENTS_CONTRACT_ID,
        rpc,
        admin.public_key,
        KeypairSigner(admin),
        network_passphrase=NETWORK_PASSPHRASE,
    )


async def emit_default_event(client: EventsClient) -> SentTransaction:
    print("Emitting default event...")
    invocation = await client.default()
    print("Simulation successful, submitting transaction...")
    sent = await invocation.sign_and_send(force=True)
    print(f"Default event emitted in ledger {sent.ledger}: {sent.hash}")
    return sent


async def emit_custom_event(client: EventsClient, message: str) -> SentTransaction:
    print(f"Emitting custom event with message: {message}...")
    invocation = await client.custom(message)
    print("Simulation successful, submitting transaction...")
    sent = await invocation.sign_and_send(force=True)
    print(f"Custom event emitted in ledger {sent.ledger}: {sent.hash}")
    return sent


async def main():
    if OFFLINE:
        print("Skipping: the events contract needs Soroban RPC")
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
        client = create_contract_client(rpc, admin)

        print("\n=== Demonstrating default event emission ===")
        first = await emit_default_event(client)

        print("\n=== Demonstrating custom event emission ===")
        await emit_custom_event(client, "HELLO")
        await emit_custom_event(client, "TEST")

        print("\n=== Reading emitted events ===")
        for event in await client.events(first.ledger):
            print(f"Ledger {event.ledger_number}: {event.message}")
    finally:
        await rpc.close()

    print("\nEvent demonstration completed successfully!")


if __name__ == "__main__":
    asyncio.run(main())
