# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Create a new account from an existing (admin) account.

The admin account executes a create-account operation for a keypair that has
been generated but not yet initialized, and pays the 2 XLM starting balance.
2 XLM barely covers the minimum balance of a fresh account (two base reserves
of 0.5 XLM) plus room for one more subentry.
"""

import asyncio

from stellar_sdk import Keypair

from stellar_bootcamp.gateway import SubmissionResult
from stellar_bootcamp.operations import create_account as create_account_op

from .bootcamp import Bootcamp
from .generate_keypair import generate_keypair

STARTING_BALANCE = "2"


async def create_account(
    bootcamp: Bootcamp, admin: Keypair, new_account_public_key: str
) -> SubmissionResult:
    print(f"\nAccount {admin.public_key} will execute a create_account transaction.")
    print(
        f"The account {new_account_public_key} will be initialized with "
        f"{STARTING_BALANCE}XLM."
    )
    operation = create_account_op(
        new_account_public_key, STARTING_BALANCE, source=admin.public_key
    )
    print("Submitting transaction...")
    result = await bootcamp.submit(admin, [operation], [admin])
    print("Success!")
    return result


async def main():
    bootcamp = Bootcamp.connect()
    try:
        print("\n=== Creating and Initializing Admin account ===")
        admin = generate_keypair()
        await bootcamp.fund(admin.public_key)

        print("\n=== Creating new account ===")
        new_account = generate_keypair()
        await create_account(bootcamp, admin, new_account.public_key)
    finally:
        await bootcamp.close()


if __name__ == "__main__":
    asyncio.run(main())
