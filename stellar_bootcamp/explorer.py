# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""Links to transactions and accounts on stellar.expert."""

import unittest

EXPLORER_URL = "https://stellar.expert/explorer/testnet"


def transaction_url(tx_hash: str, base_url: str = EXPLORER_URL) -> str:
    return f"{base_url.rstrip('/')}/tx/{tx_hash}"


def account_url(account_id: str, base_url: str = EXPLORER_URL) -> str:
    return f"{base_url.rstrip('/')}/account/{account_id}"


def print_hash_link(tx_hash: str, base_url: str = EXPLORER_URL):
    print(f"{transaction_url(tx_hash, base_url)}\n")


class Test(unittest.TestCase):
    def test_urls(self):
        self.assertEqual(
            transaction_url("abc"), "https://stellar.expert/explorer/testnet/tx/abc"
        )
        self.assertEqual(
            account_url("GABC", "https://stellar.expert/explorer/public/"),
            "https://stellar.expert/explorer/public/account/GABC",
        )


if __name__ == "__main__":
    unittest.main()
