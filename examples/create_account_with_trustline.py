# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Create an account and its first trustline in a single envelope.

The asset is a dummy ``TEST`` asset issued by the admin account that creates
the new account. The change-trust operation is sourced by the *new* account, so
the new account must sign the envelope as well: this function takes its keypair,
not just its public key.
"""

import asyncio

from stellar_sdk import Asset, Keypair

from stellar_bootcamp.gateway import SubmissionResult
from stellar_bootcamp.operations import change_trust, create_account

from .bootcamp import Bootcamp
from .generate_keypair import generate_keypair


async def create_account_with_trustline(
    bootcamp: Bootcamp, admin: Keypair, new_account: Keypair, asset_symbol: str
) -> SubmissionResult:
    print(f"\nAdmin account {admin.public_key} will execute a create_account transaction.")
    print(f"The account {new_account.public_key} will be initialized with 2XLM and..")
    print(
        f"execute a change_trust operation to create a trustline for the "
        f"{asset_symbol} asset."
    )
    operations = [
        create_account(new_account.public_key, "2", source=admin.public_key),
        change_trust(
            Asset(asset_symbol, admin.public_key), source=new_account.public_key
        ),
    ]
    print("Submitting transaction...")
    result = await bootcamp.submit(admin, operations, [admin, new_account])
    print("Success!")
    return result


async def main():
    bootcamp = Bootcamp.connect()
    try:
        print("\n=== Creating and Initializing Admin account ===")
        admin = generate_keypair()
        await bootcamp.fund(admin.public_key)

        asset_symbol = "TEST"
        print(f"\n=== Creating new account with trustline for {asset_symbol} ===")
        new_account = generate_keypair()
        await create_account_with_trustline(bootcamp, admin, new_account, asset_symbol)
    finally:
        await bootcamp.close()


if __name__ == "__main__":
    asyncio.run(main())
