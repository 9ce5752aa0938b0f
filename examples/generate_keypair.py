# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Generate a random Stellar keypair.

The keypair is a public key (``G...``, the account id) and a secret seed
(``S...``). Nothing is sent to the network: the keypair only becomes an account
once a create-account operation (or Friendbot) funds it.

The secret seed gives complete control over the account. Never share it.
"""

from stellar_sdk import Keypair

from stellar_bootcamp.cli import generate_keypair as print_keypair


def generate_keypair() -> Keypair:
    print("\nKeypair generated!")
    return print_keypair()


def main():
    generate_keypair()


if __name__ == "__main__":
    main()
