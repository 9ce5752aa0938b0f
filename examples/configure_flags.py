# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Asset control flags: what an issuer can enforce on the holders of its asset.

1. AUTHORIZATION_REQUIRED: new trustlines cannot hold the asset until the issuer
   authorizes them.
2. AUTHORIZATION_REVOCABLE: the issuer can freeze (and unfreeze) a trustline.
3. AUTHORIZATION_CLAWBACK_ENABLED: the issuer can burn the asset out of any
   holder's trustline. The flag is copied to trustlines at creation, so it must
   be set before the holders open theirs.

The flow sets all three flags, opens trustlines for Alice and Bob, shows a
payment to an unauthorized trustline failing, authorizes both, pays, freezes
Alice, and finally claws back part of Bob's balance.
"""

import asyncio

from stellar_sdk import Asset, AuthorizationFlag, Keypair

from stellar_bootcamp.exceptions import SubmissionError
from stellar_bootcamp.gateway import SubmissionResult
from stellar_bootcamp.operations import (
    allow_trust,
    change_trust,
    clawback,
    payment,
    set_options,
)

from .bootcamp import Bootcamp
from .create_account_with_trustline import create_account_with_trustline
from .generate_keypair import generate_keypair

CONTROL_FLAGS = (
    AuthorizationFlag.AUTHORIZATION_REQUIRED
    | AuthorizationFlag.AUTHORIZATION_REVOCABLE
    | AuthorizationFlag.AUTHORIZATION_CLAWBACK_ENABLED
)


async def enable_control_flags(bootcamp: Bootcamp, issuer: Keypair) -> SubmissionResult:
    print(f"Enabling control flags on issuer account {issuer.public_key}...")
    operation = set_options(set_flags=CONTROL_FLAGS, source=issuer.public_key)
    print("Submitting set flags transaction...")
    result = await bootcamp.submit(issuer, [operation], [issuer])
    print("Flags set successfully!")
    return result


async def create_trustline(
    bootcamp: Bootcamp, account: Keypair, asset: Asset
) -> SubmissionResult:
    print(f"Creating trustline for {account.public_key} to {asset.code}...")
    operation = change_trust(asset, source=account.public_key)
    print("Submitting trustline creation...")
    result = await bootcamp.submit(account, [operation], [account])
    print("Trustline created successfully!")
    return result


async def set_trustline_authorization(
    bootcamp: Bootcamp, issuer: Keypair, trustor: str, asset: Asset, authorize: bool
) -> SubmissionResult:
    action = "Authorizing" if authorize else "Deauthorizing"
    print(f"{action} trustline of {trustor} for {asset.code}...")
    operation = allow_trust(trustor, asset.code, authorize, source=issuer.public_key)
    print("Submitting authorization change...")
    result = await bootcamp.submit(issuer, [operation], [issuer])
    print("Authorization updated successfully!")
    return result


async def make_payment(
    bootcamp: Bootcamp, sender: Keypair, destination: str, asset: Asset, amount: str
) -> SubmissionResult:
    print(f"Making payment of {amount} {asset.code} from {sender.public_key} to {destination}...")
    operation = payment(destination, asset, amount, source=sender.public_key)
    print("Submitting payment transaction...")
    result = await bootcamp.submit(sender, [operation], [sender])
    print("Payment successful!")
    return result


async def claw_back(
    bootcamp: Bootcamp, issuer: Keypair, holder: str, asset: Asset, amount: str
) -> SubmissionResult:
    print(f"Clawing back {amount} {asset.code} from {holder}...")
    operation = clawback(holder, asset, amount, source=issuer.public_key)
    print("Submitting clawback transaction...")
    result = await bootcamp.submit(issuer, [operation], [issuer])
    print("Clawback successful!")
    return result


async def expect_failure(submission, reason: str) -> bool:
    """Await ``submission`` and report whether it was rejected as expected."""
    try:
        await submission
    except SubmissionError as e:
        print(f"Expected error: {reason} ({', '.join(e.operation_codes) or e})")
        return True
    print("Unexpected success: the transaction should have failed")
    return False


async def demonstrate_asset_controls(bootcamp: Bootcamp):
    print("\n=== Creating and initializing issuer account ===")
    issuer = generate_keypair()
    await bootcamp.fund(issuer.public_key)

    asset_code = "CTRL"
    asset = Asset(asset_code, issuer.public_key)

    print("\n=== Enabling control flags on issuer account ===")
    await enable_control_flags(bootcamp, issuer)

    print("\n=== Creating and initializing user account: Alice ===")
    alice = generate_keypair()
    await create_account_with_trustline(bootcamp, issuer, alice, asset_code)

    print("\n=== Creating and initializing user account: Bob ===")
    bob = generate_keypair()
    await create_account_with_trustline(bootcamp, issuer, bob, asset_code)

    print("\n=== Demonstrating AUTHORIZATION_REQUIRED ===")
    await expect_failure(
        make_payment(bootcamp, issuer, alice.public_key, asset, "1000"),
        "payment to an unauthorized trustline failed",
    )

    print("\n=== Authorizing trustlines ===")
    await set_trustline_authorization(bootcamp, issuer, alice.public_key, asset, True)
    await set_trustline_authorization(bootcamp, issuer, bob.public_key, asset, True)

    print("\n=== Making payments ===")
    await make_payment(bootcamp, issuer, alice.public_key, asset, "1000")
    await make_payment(bootcamp, alice, bob.public_key, asset, "500")

    print("\n=== Demonstrating AUTHORIZATION_REVOCABLE ===")
    print("Freezing Alice's trustline...")
    await set_trustline_authorization(bootcamp, issuer, alice.public_key, asset, False)
    await expect_failure(
        make_payment(bootcamp, alice, bob.public_key, asset, "100"),
        "payment from a frozen trustline failed",
    )
    print("Unfreezing Alice's trustline...")
    await set_trustline_authorization(bootcamp, issuer, alice.public_key, asset, True)
    await make_payment(bootcamp, alice, bob.public_key, asset, "100")

    print("\n=== Demonstrating AUTHORIZATION_CLAWBACK_ENABLED ===")
    await claw_back(bootcamp, issuer, bob.public_key, asset, "250")

    for name, keypair in (("Alice", alice), ("Bob", bob)):
        balance = await bootcamp.ledger.account_balance(keypair.public_key, asset)
        print(f"{name}: {balance} {asset_code}")
    return issuer, alice, bob


async def main():
    bootcamp = Bootcamp.connect()
    try:
        await demonstrate_asset_controls(bootcamp)
    finally:
        await bootcamp.close()


if __name__ == "__main__":
    asyncio.run(main())
