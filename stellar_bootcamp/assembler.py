# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Envelope Assembler: account state + operation set + fee/timeout -> unsigned envelope.

Building an envelope is a pure value construction step. The effective sequence
number is the snapshot's sequence + 1; the fee is the base fee multiplied by the
number of operations; the envelope carries a time bound of ``now + timeout``
after which the ledger refuses it. Nothing is sent anywhere until the signed
envelope reaches the Submission Gateway.

If the assembler was given a ledger query service it re-reads the source
account's sequence number right before building and raises
``StaleSequenceError`` when it moved since the snapshot was taken: an envelope
built from a stale snapshot is guaranteed to be rejected with ``tx_bad_seq``.

The wire format is the XDR ``TransactionEnvelope`` from ``stellar_sdk``; it is
treated as an opaque, lossless pass-through (``to_xdr`` / ``from_xdr``).

Examples:
    Build, sign and submit a payment::

        assembler = EnvelopeAssembler(horizon)
        source = await horizon.load_account(alice.public_key)
        envelope = await assembler.build(
            source, [payment(bob.public_key, Asset.native(), "10")]
        )
        MultiSignerAuthorizer().sign(envelope, [KeypairSigner(alice)])
        await SubmissionGateway(horizon).submit(envelope)

    Rebuild an envelope from XDR handed over by another party::

        envelope = from_xdr(xdr, Network.TESTNET_NETWORK_PASSPHRASE)
"""

from __future__ import annotations

import time
import unittest
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union

from stellar_sdk import (
    Asset,
    Keypair,
    Network,
    TransactionBuilder,
    TransactionEnvelope,
)
from stellar_sdk.operation import Operation

from .account import AccountState
from .exceptions import StaleSequenceError, ValidationError
from .operations import OperationSet, payment


@dataclass
class TransactionConfig:
    """Fee and timeout applied to every envelope.

    Attributes:
        base_fee: Fee per operation in stroops (default: 1000).
        timeout: Seconds from build time after which the ledger refuses the
            envelope (default: 30).
    """

    base_fee: int = 1000
    timeout: int = 30


class EnvelopeAssembler:
    ledger: Optional[Any]
    network_passphrase: str
    config: TransactionConfig
    clock: Callable[[], float]

    def __init__(
        self,
        ledger: Optional[Any] = None,
        network_passphrase: str = Network.TESTNET_NETWORK_PASSPHRASE,
        config: Optional[TransactionConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        :param ledger: Optional query service (``HorizonClient`` or
            ``LedgerSimulator``) used to detect stale sequence numbers.
        :param network_passphrase: Passphrase the envelope hash commits to.
        :param config: Default fee and timeout.
        :param clock: Source of "now" for the time bound.
        """
        self.ledger = ledger
        self.network_passphrase = network_passphrase
        self.config = config if config is not None else TransactionConfig()
        self.clock = clock

    async def build(
        self,
        source: AccountState,
        operations: Union[OperationSet, Sequence[Operation]],
        fee: Optional[int] = None,
        timeout: Optional[int] = None,
    ) -> TransactionEnvelope:
        """
        Build an unsigned envelope after checking the snapshot is still current.

        :raises StaleSequenceError: The source sequence moved since ``source`` was loaded.
        :raises ValidationError: The operation list is empty, too long or malformed.
        """
        if self.ledger is not None:
            actual = await self.ledger.account_sequence_number(source.account_id)
            if actual != source.sequence:
                raise StaleSequenceError(source.account_id, source.sequence, actual)
        return self.build_unchecked(source, operations, fee, timeout)

    def build_unchecked(
        self,
        source: AccountState,
        operations: Union[OperationSet, Sequence[Operation]],
        fee: Optional[int] = None,
        timeout: Optional[int] = None,
    ) -> TransactionEnvelope:
        """Build from the snapshot alone, without a ledger round-trip."""
        operations = OperationSet.of(operations)
        operations.validate_sponsorship(source.account_id)
        base_fee = fee if fee is not None else self.config.base_fee
        timeout = timeout if timeout is not None else self.config.timeout
        if base_fee < 100:
            raise ValidationError(f"base fee must be at least 100 stroops, got {base_fee}")
        if timeout <= 0:
            raise ValidationError(f"timeout must be positive, got {timeout}")

        builder = TransactionBuilder(
            source_account=source.to_account(),
            network_passphrase=self.network_passphrase,
            base_fee=base_fee,
        )
        for operation in operations:
            builder.append_operation(operation)
        builder.add_time_bounds(0, int(self.clock()) + timeout)
        return builder.build()


def to_xdr(envelope: TransactionEnvelope) -> str:
    return envelope.to_xdr()


def from_xdr(xdr: str, network_passphrase: str) -> TransactionEnvelope:
    return TransactionEnvelope.from_xdr(xdr, network_passphrase)


class Test(unittest.IsolatedAsyncioTestCase):
    class FakeLedger:
        def __init__(self, sequence: int):
            self.sequence = sequence

        async def account_sequence_number(self, account_id: str) -> int:
            return self.sequence

    def setUp(self):
        self.alice = Keypair.random()
        self.bob = Keypair.random()
        self.source = AccountState.new(self.alice.public_key, sequence=41)
        self.operations = [payment(self.bob.public_key, Asset.native(), "10")]

    async def test_sequence_fee_and_timeout(self):
        assembler = EnvelopeAssembler(clock=lambda: 1_000)
        envelope = await assembler.build(
            self.source, self.operations + self.operations
        )
        transaction = envelope.transaction
        self.assertEqual(transaction.sequence, 42)
        self.assertEqual(transaction.fee, 2_000)
        self.assertEqual(transaction.preconditions.time_bounds.max_time, 1_030)
        self.assertEqual(len(envelope.signatures), 0)
        # The snapshot itself is left untouched.
        self.assertEqual(self.source.sequence, 41)

    async def test_stale_sequence(self):
        assembler = EnvelopeAssembler(self.FakeLedger(45))
        with self.assertRaises(StaleSequenceError) as context:
            await assembler.build(self.source, self.operations)
        self.assertEqual(context.exception.expected, 41)
        self.assertEqual(context.exception.actual, 45)

    async def test_current_sequence(self):
        assembler = EnvelopeAssembler(self.FakeLedger(41))
        envelope = await assembler.build(self.source, self.operations)
        self.assertEqual(envelope.transaction.sequence, 42)

    def test_empty_operations(self):
        with self.assertRaises(ValidationError):
            EnvelopeAssembler().build_unchecked(self.source, [])

    def test_config_is_per_instance(self):
        tuned = EnvelopeAssembler()
        tuned.config.base_fee = 5_000
        envelope = EnvelopeAssembler().build_unchecked(self.source, self.operations)
        self.assertEqual(envelope.transaction.fee, 1_000)

    def test_xdr_round_trip_signs_identically(self):
        assembler = EnvelopeAssembler(clock=lambda: 1_000)
        direct = assembler.build_unchecked(self.source, self.operations)
        restored = from_xdr(to_xdr(direct), assembler.network_passphrase)
        self.assertEqual(direct.hash(), restored.hash())

        direct.sign(self.alice)
        restored.sign(self.alice)
        self.assertEqual(direct.to_xdr(), restored.to_xdr())


if __name__ == "__main__":
    unittest.main()
