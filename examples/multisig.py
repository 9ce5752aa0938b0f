# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Multi-signature accounts: several keys share control of one account.

Every account starts with its master key at weight 1 and all thresholds at 0.
Here the primary account sets thresholds low=1, medium=2, high=3 and adds two
signers with weights 1 and 2. A payment (medium) then needs a combined weight of
2, and changing the signers (set-options, high) needs 3.

The weights are only checked when the ledger receives the envelope. Signing
with too little weight is not an error locally; the submission is rejected with
``InsufficientSignatureWeight`` and the sequence number is still consumed.
"""

import asyncio
from typing import List

from stellar_sdk import Asset, Keypair, Signer

from stellar_bootcamp.exceptions import InsufficientSignatureWeight
from stellar_bootcamp.gateway import SubmissionResult
from stellar_bootcamp.operations import payment, remove_signer, set_options

from .bootcamp import Bootcamp
from .generate_keypair import generate_keypair


async def configure_multisig(
    bootcamp: Bootcamp, primary: Keypair, signer1: Keypair, signer2: Keypair
) -> SubmissionResult:
    print(f"Configuring multisig for {primary.public_key}...")
    operations = [
        set_options(
            low_threshold=1,
            med_threshold=2,
            high_threshold=3,
            signer=Signer.ed25519_public_key(signer1.public_key, 1),
            source=primary.public_key,
        ),
        set_options(
            signer=Signer.ed25519_public_key(signer2.public_key, 2),
            source=primary.public_key,
        ),
    ]
    print("Submitting multisig configuration...")
    result = await bootcamp.submit(primary, operations, [primary])
    print("Multisig configured successfully!")
    return result


async def make_multisig_payment(
    bootcamp: Bootcamp,
    primary: Keypair,
    destination: str,
    amount: str,
    signers: List[Keypair],
) -> SubmissionResult:
    operation = payment(destination, Asset.native(), amount, source=primary.public_key)
    return await bootcamp.submit(primary, [operation], signers)


async def remove_multisig_signer(
    bootcamp: Bootcamp, primary: Keypair, signer: str, signers: List[Keypair]
) -> SubmissionResult:
    print(f"Removing signer {signer}...")
    operation = remove_signer(signer, source=primary.public_key)
    return await bootcamp.submit(primary, [operation], signers)


async def attempt(submission, expected_error: str) -> bool:
    try:
        await submission
    except InsufficientSignatureWeight:
        print(f"Expected error: {expected_error}")
        return False
    return True


async def demonstrate_multisig(bootcamp: Bootcamp):
    print("\n=== Creating and initializing primary account ===")
    primary = generate_keypair()
    await bootcamp.fund(primary.public_key)

    print("\n=== Generating additional signer accounts ===")
    signer1 = generate_keypair()
    signer2 = generate_keypair()

    print("\n=== Configuring multisig setup ===")
    await configure_multisig(bootcamp, primary, signer1, signer2)

    print("\n=== Creating destination account ===")
    destination = generate_keypair()
    await bootcamp.fund(destination.public_key)

    print("\n=== Demonstrating medium threshold (2) payment scenarios ===")
    print("Attempting payment with just weight 1 signer...")
    await attempt(
        make_multisig_payment(bootcamp, primary, destination.public_key, "100", [signer1]),
        "Payment failed - insufficient signatures (weight 1 < threshold 2)",
    )
    print("\nAttempting payment with just weight 2 signer...")
    await make_multisig_payment(
        bootcamp, primary, destination.public_key, "100", [signer2]
    )
    print("Payment successful with weight 2 signer!")

    print("\n=== Demonstrating high threshold (3) operation scenarios ===")
    print("Attempting with just weight 1 signer...")
    await attempt(
        remove_multisig_signer(bootcamp, primary, signer1.public_key, [primary]),
        "Operation failed - insufficient signatures (weight 1 < threshold 3)",
    )
    print("\nAttempting with just weight 2 signer...")
    await attempt(
        remove_multisig_signer(bootcamp, primary, signer1.public_key, [signer2]),
        "Operation failed - insufficient signatures (weight 2 < threshold 3)",
    )
    print("\nAttempting with weight 1 + weight 2 signers combined...")
    await remove_multisig_signer(bootcamp, primary, signer1.public_key, [primary, signer2])
    print("Operation successful with combined weight 3 signatures!")
    return primary, signer1, signer2, destination


async def main():
    bootcamp = Bootcamp.connect()
    try:
        await demonstrate_multisig(bootcamp)
    finally:
        await bootcamp.close()


if __name__ == "__main__":
    asyncio.run(main())
