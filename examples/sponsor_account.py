# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Sponsored account creation: the admin covers the new account's reserves.

A begin-sponsoring / end-sponsoring pair wraps the create-account and
change-trust operations. Everything in between that would raise the new
account's minimum balance is paid for by the admin, so the new account can
start with 0 XLM. The sponsorship block must be closed by the sponsored account
itself, which is why it signs too.
"""

import asyncio

from stellar_sdk import Asset, Keypair

from stellar_bootcamp.gateway import SubmissionResult
from stellar_bootcamp.operations import (
    begin_sponsoring,
    change_trust,
    create_account,
    end_sponsoring,
)

from .bootcamp import Bootcamp
from .generate_keypair import generate_keypair


async def create_sponsored_account_with_trustline(
    bootcamp: Bootcamp, admin: Keypair, new_account: Keypair
) -> SubmissionResult:
    print(f"\nAdmin account {admin.public_key} will execute a create_account transaction")
    print(f"The account {new_account.public_key} will be initialized with 0XLM and..")
    print("...execute a change_trust operation to create a trustline for the TEST asset.")
    print(
        "The operations will be sponsored by the admin account to cover the "
        "minimum balance requirements."
    )
    operations = [
        begin_sponsoring(new_account.public_key, source=admin.public_key),
        create_account(new_account.public_key, "0", source=admin.public_key),
        change_trust(Asset("TEST", admin.public_key), source=new_account.public_key),
        end_sponsoring(source=new_account.public_key),
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

        print("\n=== Sponsoring the creation of a new account with trustline ===")
        new_account = generate_keypair()
        await create_sponsored_account_with_trustline(bootcamp, admin, new_account)
    finally:
        await bootcamp.close()


if __name__ == "__main__":
    asyncio.run(main())
