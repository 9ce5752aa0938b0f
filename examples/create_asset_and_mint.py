# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Issue an asset with the issuer / distribution account pair.

The issuer is the only account that can mint the asset; the distribution
account opens the first trustline and receives the whole initial supply. Keeping
supply management in one account makes the asset's lifecycle easy to audit.

Both accounts must already exist and be funded. The change-trust operation is
sourced by the distribution account, so both keypairs sign.
"""

import asyncio

from stellar_sdk import Asset, Keypair

from stellar_bootcamp.gateway import SubmissionResult
from stellar_bootcamp.operations import change_trust, payment

from .bootcamp import Bootcamp
from .generate_keypair import generate_keypair

INITIAL_SUPPLY = "1000000"


async def create_asset(
    bootcamp: Bootcamp, issuer: Keypair, distribution: Keypair, asset_symbol: str
) -> SubmissionResult:
    asset = Asset(asset_symbol, issuer.public_key)
    print(f"\nCreating asset {asset_symbol} with:")
    print(f"  - Issuer: {issuer.public_key}")
    print(f"  - Distribution: {distribution.public_key}")
    print("The asset identifier is the combination of the asset symbol and the issuer:")
    print(f"  {asset_symbol}:{issuer.public_key}")
    print(
        f"The distribution account will create a trustline for the asset "
        f"and receive {INITIAL_SUPPLY} newly minted {asset_symbol} tokens."
    )
    operations = [
        change_trust(asset, source=distribution.public_key),
        payment(distribution.public_key, asset, INITIAL_SUPPLY, source=issuer.public_key),
    ]
    print("Submitting transaction...")
    result = await bootcamp.submit(issuer, operations, [issuer, distribution])
    print("Success!")
    return result


async def main():
    bootcamp = Bootcamp.connect()
    try:
        print("\n=== Creating and initializing the issuer account ===")
        issuer = generate_keypair()
        await bootcamp.fund(issuer.public_key)

        print("\n=== Creating and initializing the distribution account ===")
        distribution = generate_keypair()
        await bootcamp.fund(distribution.public_key)

        print("\n=== Creating the asset and minting tokens ===")
        await create_asset(bootcamp, issuer, distribution, "FIFO")

        balance = await bootcamp.ledger.account_balance(
            distribution.public_key, Asset("FIFO", issuer.public_key)
        )
        print(f"Distribution balance: {balance} FIFO")
    finally:
        await bootcamp.close()


if __name__ == "__main__":
    asyncio.run(main())
