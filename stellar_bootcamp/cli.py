# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Command-line helpers for the bootcamp's testnet chores.

Supported Commands:
- generate-keypair: Print a fresh keypair (public key and secret seed)
- fund: Create and fund an account through Friendbot
- account: Show an account's sequence number, thresholds, signers and balances

Examples:
    Create and fund a throwaway account::

        python -m stellar_bootcamp.cli generate-keypair
        python -m stellar_bootcamp.cli fund --account GABC...

    Inspect a multisig account::

        python -m stellar_bootcamp.cli account --account GABC... \
            --horizon-url https://horizon-testnet.stellar.org
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import unittest
from typing import List
from unittest.mock import patch

from stellar_sdk import Keypair

from .account import AccountState, check_account_id
from .async_client import FriendbotClient, HorizonClient
from .exceptions import ValidationError

HORIZON_URL = "https://horizon-testnet.stellar.org"
FRIENDBOT_URL = "https://friendbot.stellar.org"


def account_id(value: str) -> str:
    try:
        return check_account_id(value)
    except ValidationError as e:
        raise argparse.ArgumentTypeError(str(e))


def generate_keypair() -> Keypair:
    keypair = Keypair.random()
    print(f"Public Key: {keypair.public_key}")
    print(f"Secret Key: {keypair.secret}")
    return keypair


async def fund_account(account: str, friendbot_url: str):
    friendbot = FriendbotClient(friendbot_url)
    try:
        await friendbot.fund_account(account)
    finally:
        await friendbot.close()
    print(f"Funded {account} with 10000 XLM")


def describe_account(state: AccountState) -> List[str]:
    lines = [
        f"Account: {state.account_id}",
        f"Sequence: {state.sequence}",
        f"Thresholds: low={state.thresholds.low} "
        f"medium={state.thresholds.medium} high={state.thresholds.high}",
    ]
    for signer in state.signers:
        lines.append(f"Signer: {signer.key} weight={signer.weight}")
    for balance in state.balances.values():
        lines.append(f"Balance: {balance.balance} {balance.asset_id}")
    return lines


async def show_account(account: str, horizon_url: str):
    async with HorizonClient(horizon_url) as horizon:
        state = await horizon.load_account(account)
    print("\n".join(describe_account(state)))


async def main(args: List[str]):
    parser = argparse.ArgumentParser(description="Stellar bootcamp CLI")
    parser.add_argument(
        "command",
        type=str,
        help="The command to execute",
        choices=["generate-keypair", "fund", "account"],
    )
    parser.add_argument("--account", help="G... public key", type=account_id)
    parser.add_argument(
        "--horizon-url", help="Horizon endpoint", type=str, default=HORIZON_URL
    )
    parser.add_argument(
        "--friendbot-url", help="Friendbot endpoint", type=str, default=FRIENDBOT_URL
    )
    parsed_args = parser.parse_args(args)

    if parsed_args.command == "generate-keypair":
        generate_keypair()
        return

    if parsed_args.account is None:
        parser.error("Missing required argument '--account'")
    if parsed_args.command == "fund":
        await fund_account(parsed_args.account, parsed_args.friendbot_url)
    elif parsed_args.command == "account":
        await show_account(parsed_args.account, parsed_args.horizon_url)


class Test(unittest.IsolatedAsyncioTestCase):
    async def test_generate_keypair(self):
        with patch("builtins.print") as printed:
            await main(["generate-keypair"])
        self.assertEqual(printed.call_count, 2)
        self.assertTrue(printed.call_args_list[0].args[0].startswith("Public Key: G"))

    async def test_missing_account(self):
        with patch("sys.stderr"):
            with self.assertRaises(SystemExit):
                await main(["fund"])
            with self.assertRaises(SystemExit):
                await main(["account", "--account", "not-a-key"])

    def test_describe_account(self):
        state = AccountState.new(Keypair.random().public_key, sequence=5, balance=100)
        lines = describe_account(state)
        self.assertIn("Sequence: 5", lines)
        self.assertIn("Thresholds: low=0 medium=0 high=0", lines)
        self.assertIn("Balance: 100.0000000 native", lines)


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
