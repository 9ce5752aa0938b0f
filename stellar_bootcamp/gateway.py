# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Submission Gateway: hand a signed envelope to the ledger and report the outcome.

The ledger may be Horizon or the in-memory simulator; both raise
``TransactionFailed`` with Horizon-shaped ``result_codes`` and the gateway maps
those to the submission error taxonomy:

=================  ============================
Result code        Raised
=================  ============================
``tx_bad_auth``    InsufficientSignatureWeight
``tx_bad_seq``     SequenceMismatch
``tx_too_late``    TransactionTimeout
``op_bad_auth``    InsufficientSignatureWeight
anything else      LedgerRejection
=================  ============================

The gateway never retries. Recovering from a sequence mismatch means reloading
the account, rebuilding and re-signing, which only the caller can decide to do.
"""

from __future__ import annotations

import logging
import unittest
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from stellar_sdk import Keypair, TransactionEnvelope

from .exceptions import (
    InsufficientSignatureWeight,
    LedgerRejection,
    NetworkError,
    SequenceMismatch,
    SubmissionError,
    TransactionFailed,
    TransactionTimeout,
)

_ERRORS = {
    "tx_bad_auth": InsufficientSignatureWeight,
    "tx_bad_seq": SequenceMismatch,
    "tx_too_late": TransactionTimeout,
}


@dataclass(frozen=True)
class SubmissionResult:
    hash: str
    ledger: int
    successful: bool = True


def submission_error(result_codes: Dict[str, Any]) -> SubmissionError:
    """The submission error matching a Horizon ``result_codes`` object."""
    code = result_codes.get("transaction", "")
    operations = result_codes.get("operations") or []
    message = code if not operations else f"{code}: {', '.join(operations)}"
    # Horizon reports a per-operation threshold failure inside tx_failed.
    if code == "tx_failed" and "op_bad_auth" in operations:
        return InsufficientSignatureWeight(message, result_codes)
    return _ERRORS.get(code, LedgerRejection)(message, result_codes)


class SubmissionGateway:
    ledger: Any

    def __init__(self, ledger: Any):
        """
        :param ledger: A ``LedgerService`` (``HorizonClient`` or ``LedgerSimulator``).
        """
        self.ledger = ledger

    async def submit(self, envelope: TransactionEnvelope) -> SubmissionResult:
        """
        Submit a signed envelope once.

        :raises InsufficientSignatureWeight: Collected weight is below a threshold.
        :raises SequenceMismatch: The source sequence moved; reload and rebuild.
        :raises TransactionTimeout: The envelope's time bound has elapsed.
        :raises LedgerRejection: Any other rejection, with the opaque result codes.
        :raises NetworkError: The ledger could not be reached.
        """
        tx_hash = envelope.hash_hex()
        logging.info(
            f"submitting {tx_hash} ({len(envelope.transaction.operations)} operations, "
            f"{len(envelope.signatures)} signatures)"
        )
        try:
            result = await self.ledger.submit_transaction(envelope.to_xdr())
        except TransactionFailed as e:
            logging.info(f"transaction {tx_hash} rejected: {e.result_codes}")
            raise submission_error(e.result_codes) from e
        except httpx.TransportError as e:
            raise NetworkError(f"unable to submit {tx_hash}: {e}", e) from e

        submitted = SubmissionResult(
            hash=result.get("hash", tx_hash),
            ledger=int(result.get("ledger", 0)),
            successful=bool(result.get("successful", True)),
        )
        logging.info(f"transaction {submitted.hash} included in ledger {submitted.ledger}")
        return submitted


class Test(unittest.IsolatedAsyncioTestCase):
    class FakeLedger:
        def __init__(self, error: Optional[Exception] = None):
            self.error = error
            self.submitted = []

        async def submit_transaction(self, envelope_xdr: str) -> Dict[str, Any]:
            self.submitted.append(envelope_xdr)
            if self.error is not None:
                raise self.error
            return {"hash": "ab" * 32, "ledger": 12, "successful": True}

    def envelope(self) -> TransactionEnvelope:
        from .account import AccountState
        from .assembler import EnvelopeAssembler
        from .operations import set_options

        keypair = Keypair.random()
        envelope = EnvelopeAssembler().build_unchecked(
            AccountState.new(keypair.public_key), [set_options(home_domain="a.b")]
        )
        envelope.sign(keypair)
        return envelope

    async def test_success(self):
        ledger = self.FakeLedger()
        result = await SubmissionGateway(ledger).submit(self.envelope())
        self.assertEqual(result, SubmissionResult("ab" * 32, 12, True))
        self.assertEqual(len(ledger.submitted), 1)

    async def test_error_mapping(self):
        cases = [
            ({"transaction": "tx_bad_auth"}, InsufficientSignatureWeight),
            ({"transaction": "tx_bad_seq"}, SequenceMismatch),
            ({"transaction": "tx_too_late"}, TransactionTimeout),
            (
                {"transaction": "tx_failed", "operations": ["op_bad_auth"]},
                InsufficientSignatureWeight,
            ),
            (
                {"transaction": "tx_failed", "operations": ["op_success", "op_bad_auth"]},
                InsufficientSignatureWeight,
            ),
            ({"transaction": "tx_failed", "operations": ["op_no_trust"]}, LedgerRejection),
            ({"transaction": "tx_insufficient_fee"}, LedgerRejection),
        ]
        for codes, expected in cases:
            ledger = self.FakeLedger(TransactionFailed("Transaction Failed", 400, codes))
            with self.assertRaises(expected) as context:
                await SubmissionGateway(ledger).submit(self.envelope())
            self.assertEqual(context.exception.result_codes, codes)
            # Never retried.
            self.assertEqual(len(ledger.submitted), 1)

    async def test_operation_codes(self):
        codes = {"transaction": "tx_failed", "operations": ["op_success", "op_underfunded"]}
        ledger = self.FakeLedger(TransactionFailed("Transaction Failed", 400, codes))
        with self.assertRaises(LedgerRejection) as context:
            await SubmissionGateway(ledger).submit(self.envelope())
        self.assertEqual(context.exception.operation_codes, ["op_success", "op_underfunded"])

    async def test_network_error(self):
        ledger = self.FakeLedger(httpx.ConnectError("connection refused"))
        with self.assertRaises(NetworkError) as context:
            await SubmissionGateway(ledger).submit(self.envelope())
        self.assertIsInstance(context.exception.cause, httpx.ConnectError)


if __name__ == "__main__":
    unittest.main()
