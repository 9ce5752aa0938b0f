# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Initialize a freshly generated keypair through Friendbot.

Friendbot is a test-network service that executes a create-account operation
for the given public key and funds it with 10,000 XLM, enough to cover the
minimum balance and the fees of every other example.
"""

import asyncio

from .bootcamp import Bootcamp
from .generate_keypair import generate_keypair


async def main():
    bootcamp = Bootcamp.connect()
    try:
        keypair = generate_keypair()
        await bootcamp.fund(keypair.public_key)
        balance = await bootcamp.ledger.account_balance(keypair.public_key)
        print(f"Balance: {balance} XLM")
    finally:
        await bootcamp.close()


if __name__ == "__main__":
    asyncio.run(main())
