# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Runs the classic examples end to end against the in-memory ledger and checks
the state they leave behind.
"""

import unittest
from decimal import Decimal
from unittest.mock import patch

from stellar_sdk import Asset

from stellar_bootcamp.exceptions import InsufficientSignatureWeight, TransactionFailed
from stellar_bootcamp.ledger import LedgerSimulator

from .bootcamp import Bootcamp
from .common import NETWORK_PASSPHRASE
from .configure_flags import demonstrate_asset_controls
from .create_account import STARTING_BALANCE, create_account
from .create_account_with_trustline import create_account_with_trustline
from .create_asset_and_mint import INITIAL_SUPPLY, create_asset
from .generate_keypair import generate_keypair
from .multisig import configure_multisig, demonstrate_multisig, make_multisig_payment
from .sponsor_account import create_sponsored_account_with_trustline


class RecordingLedger(LedgerSimulator):
    """Keeps the result codes of every rejected submission."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.rejections = []

    async def submit_transaction(self, envelope_xdr: str):
        try:
            return await super().submit_transaction(envelope_xdr)
        except TransactionFailed as e:
            self.rejections.append(e.result_codes)
            raise


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.printer = patch("builtins.print")
        self.printer.start()
        self.simulator = LedgerSimulator(NETWORK_PASSPHRASE)
        self.bootcamp = Bootcamp.offline(self.simulator)
        self.admin = generate_keypair()
        await self.bootcamp.fund(self.admin.public_key)

    async def asyncTearDown(self):
        await self.bootcamp.close()
        self.printer.stop()

    async def test_create_account(self):
        new_account = generate_keypair()
        result = await create_account(self.bootcamp, self.admin, new_account.public_key)
        self.assertTrue(result.successful)
        balance = await self.simulator.account_balance(new_account.public_key)
        self.assertEqual(balance, Decimal(STARTING_BALANCE))

    async def test_create_account_with_trustline(self):
        new_account = generate_keypair()
        await create_account_with_trustline(self.bootcamp, self.admin, new_account, "TEST")
        state = await self.simulator.load_account(new_account.public_key)
        self.assertIsNotNone(state.trustline(Asset("TEST", self.admin.public_key)))

    async def test_sponsor_account(self):
        new_account = generate_keypair()
        await create_sponsored_account_with_trustline(self.bootcamp, self.admin, new_account)
        state = await self.simulator.load_account(new_account.public_key)
        self.assertEqual(state.balance(), Decimal(0))
        self.assertEqual(state.sponsor, self.admin.public_key)
        trustline = state.trustline(Asset("TEST", self.admin.public_key))
        self.assertEqual(trustline.sponsor, self.admin.public_key)
        admin = await self.simulator.load_account(self.admin.public_key)
        self.assertEqual(admin.num_sponsoring, 3)

    async def test_create_asset_and_mint(self):
        distribution = generate_keypair()
        await self.bootcamp.fund(distribution.public_key)
        await create_asset(self.bootcamp, self.admin, distribution, "FIFO")
        balance = await self.simulator.account_balance(
            distribution.public_key, Asset("FIFO", self.admin.public_key)
        )
        self.assertEqual(balance, Decimal(INITIAL_SUPPLY))

    async def test_configure_flags(self):
        issuer, alice, bob = await demonstrate_asset_controls(self.bootcamp)
        asset = Asset("CTRL", issuer.public_key)
        self.assertEqual(
            await self.simulator.account_balance(alice.public_key, asset), Decimal(400)
        )
        self.assertEqual(
            await self.simulator.account_balance(bob.public_key, asset), Decimal(350)
        )

    async def test_multisig(self):
        primary, signer1, signer2, destination = await demonstrate_multisig(self.bootcamp)
        state = await self.simulator.load_account(primary.public_key)
        self.assertEqual(state.signer_weight(signer1.public_key), 0)
        self.assertEqual(state.signer_weight(signer2.public_key), 2)
        self.assertEqual(
            await self.simulator.account_balance(destination.public_key), Decimal(10100)
        )

    async def test_multisig_survives_operation_level_auth_failures(self):
        ledger = RecordingLedger(NETWORK_PASSPHRASE)
        bootcamp = Bootcamp.offline(ledger)
        primary, signer1, _, destination = await demonstrate_multisig(bootcamp)
        # Horizon reports weight below an operation's threshold inside tx_failed.
        bad_auth = {"transaction": "tx_failed", "operations": ["op_bad_auth"]}
        self.assertEqual(ledger.rejections, [bad_auth, bad_auth, bad_auth])
        state = await ledger.load_account(primary.public_key)
        self.assertEqual(state.signer_weight(signer1.public_key), 0)
        self.assertEqual(await ledger.account_balance(destination.public_key), Decimal(10100))

    async def test_rejected_attempt_consumes_sequence(self):
        signer1 = generate_keypair()
        signer2 = generate_keypair()
        await configure_multisig(self.bootcamp, self.admin, signer1, signer2)
        before = await self.simulator.account_sequence_number(self.admin.public_key)
        with self.assertRaises(InsufficientSignatureWeight):
            await make_multisig_payment(
                self.bootcamp, self.admin, signer1.public_key, "1", [signer1]
            )
        after = await self.simulator.account_sequence_number(self.admin.public_key)
        self.assertEqual(after, before + 1)


if __name__ == "__main__":
    unittest.main()
