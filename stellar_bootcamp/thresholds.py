# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Threshold resolution: how much combined signer weight an envelope needs.

This is the ledger-side rule, reproduced here so the simulator (and tests) can
decide authorization without a real network. The multi-signer authorizer never
calls it; signing is blind to weights and the check only happens at submission
time against the account's *current* configuration.

Every operation kind maps to a level:

- **low**: allow-trust, set-trust-line-flags
- **medium**: create-account, payment, change-trust, clawback,
  begin/end-sponsoring, invoke-host-function, set-options that touches
  neither signers, thresholds nor the master weight
- **high**: set-options that changes a signer, a threshold or the master weight

An envelope may touch several accounts (each operation can have its own source).
For each involved account the required level is the maximum across the
operations it sources; the envelope source additionally needs at least *low*
because it pays the fee and supplies the sequence number. An account is
authorized when the sum of weights of the *distinct* recognized signers that
signed is at least ``max(threshold, 1)``.

Examples:
    Payment signed by a weight-1 signer on a medium=2 account::

        check = authorize(account, ThresholdLevel.MEDIUM, [signer_a])
        assert not check.satisfied and check.weight == 1
"""

from __future__ import annotations

import unittest
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterable, List

from stellar_sdk import Asset, Keypair, SetOptions, Signer
from stellar_sdk.operation import Operation

from .account import AccountState, Thresholds
from .operations import OperationKind, OperationSet, operation_source


class ThresholdLevel(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2


_LEVELS = {
    OperationKind.ALLOW_TRUST: ThresholdLevel.LOW,
    OperationKind.SET_TRUST_LINE_FLAGS: ThresholdLevel.LOW,
    OperationKind.CREATE_ACCOUNT: ThresholdLevel.MEDIUM,
    OperationKind.PAYMENT: ThresholdLevel.MEDIUM,
    OperationKind.CHANGE_TRUST: ThresholdLevel.MEDIUM,
    OperationKind.CLAWBACK: ThresholdLevel.MEDIUM,
    OperationKind.BEGIN_SPONSORING: ThresholdLevel.MEDIUM,
    OperationKind.END_SPONSORING: ThresholdLevel.MEDIUM,
    OperationKind.INVOKE_HOST_FUNCTION: ThresholdLevel.MEDIUM,
    OperationKind.SET_OPTIONS: ThresholdLevel.MEDIUM,
}


def required_level(operation: Operation) -> ThresholdLevel:
    kind = OperationKind.of(operation)
    if kind is OperationKind.SET_OPTIONS and _changes_authorization(operation):
        return ThresholdLevel.HIGH
    return _LEVELS[kind]


def _changes_authorization(operation: SetOptions) -> bool:
    return any(
        value is not None
        for value in (
            operation.signer,
            operation.master_weight,
            operation.low_threshold,
            operation.med_threshold,
            operation.high_threshold,
        )
    )


def envelope_required_level(
    operations: Iterable[Operation], source: str
) -> Dict[str, ThresholdLevel]:
    """Required level per involved account id."""
    levels: Dict[str, ThresholdLevel] = {source: ThresholdLevel.LOW}
    for operation in operations:
        account_id = operation_source(operation) or source
        level = required_level(operation)
        levels[account_id] = max(levels.get(account_id, ThresholdLevel.LOW), level)
    return levels


def signature_weight(account: AccountState, signer_keys: Iterable[str]) -> int:
    """Sum of the weights of distinct recognized signers among ``signer_keys``."""
    return sum(account.signer_weight(key) for key in set(signer_keys))


@dataclass(frozen=True)
class AuthorizationCheck:
    account_id: str
    level: ThresholdLevel
    required: int
    weight: int

    @property
    def satisfied(self) -> bool:
        return self.weight >= self.required

    def __str__(self) -> str:
        verdict = "ok" if self.satisfied else "insufficient"
        return (
            f"{self.account_id} {self.level.name.lower()}: "
            f"weight {self.weight} / threshold {self.required} ({verdict})"
        )


def authorize(
    account: AccountState, level: ThresholdLevel, signer_keys: Iterable[str]
) -> AuthorizationCheck:
    # A zero threshold still needs one signature with non-zero weight.
    required = max(account.thresholds.for_level(level), 1)
    return AuthorizationCheck(
        account_id=account.account_id,
        level=level,
        required=required,
        weight=signature_weight(account, signer_keys),
    )


def authorize_envelope(
    accounts: Dict[str, AccountState],
    operations: OperationSet,
    source: str,
    signer_keys: Iterable[str],
) -> List[AuthorizationCheck]:
    """One check per involved account. Accounts missing from ``accounts``
    are treated as not yet created: master key weight 1, thresholds 0."""
    signer_keys = list(signer_keys)
    checks = []
    for account_id, level in envelope_required_level(operations, source).items():
        account = accounts.get(account_id) or AccountState.new(account_id)
        checks.append(authorize(account, level, signer_keys))
    return checks


def unused_signatures(
    accounts: Iterable[AccountState], signer_keys: Iterable[str]
) -> List[str]:
    """Signing keys that are not a signer of any involved account."""
    recognized = set()
    for account in accounts:
        recognized.update(account.signer_keys())
    return sorted(set(signer_keys) - recognized)


class Test(unittest.TestCase):
    def setUp(self):
        self.master = Keypair.random().public_key
        self.a = Keypair.random().public_key
        self.b = Keypair.random().public_key
        self.destination = Keypair.random().public_key
        self.account = AccountState.new(self.master)
        self.account.set_signer(self.a, 1)
        self.account.set_signer(self.b, 2)
        self.account.thresholds = Thresholds(low=1, medium=2, high=3)

    def test_levels(self):
        from .operations import allow_trust, payment, remove_signer, set_options

        self.assertEqual(
            required_level(allow_trust(self.a, "TEST", True)), ThresholdLevel.LOW
        )
        self.assertEqual(
            required_level(payment(self.a, Asset.native(), "1")), ThresholdLevel.MEDIUM
        )
        self.assertEqual(
            required_level(set_options(set_flags=1)), ThresholdLevel.MEDIUM
        )
        self.assertEqual(
            required_level(remove_signer(self.a, source=self.master)),
            ThresholdLevel.HIGH,
        )
        self.assertEqual(
            required_level(set_options(signer=Signer.ed25519_public_key(self.a, 5))),
            ThresholdLevel.HIGH,
        )

    def test_payment_scenario(self):
        self.assertFalse(authorize(self.account, ThresholdLevel.MEDIUM, [self.a]).satisfied)
        self.assertTrue(authorize(self.account, ThresholdLevel.MEDIUM, [self.b]).satisfied)

    def test_remove_signer_scenario(self):
        high = ThresholdLevel.HIGH
        self.assertFalse(authorize(self.account, high, [self.master]).satisfied)
        self.assertFalse(authorize(self.account, high, [self.b]).satisfied)
        check = authorize(self.account, high, [self.master, self.b])
        self.assertTrue(check.satisfied)
        self.assertEqual(check.weight, 3)

    def test_low_any_single_signer(self):
        for key in (self.master, self.a, self.b):
            self.assertTrue(authorize(self.account, ThresholdLevel.LOW, [key]).satisfied)

    def test_distinct_and_unknown_signers(self):
        stranger = Keypair.random().public_key
        self.assertEqual(signature_weight(self.account, [self.a, self.a, self.a]), 1)
        self.assertEqual(signature_weight(self.account, [stranger]), 0)
        self.assertEqual(
            unused_signatures([self.account], [self.a, stranger]), [stranger]
        )

    def test_zero_threshold_needs_a_signature(self):
        fresh = AccountState.new(self.destination)
        self.assertFalse(authorize(fresh, ThresholdLevel.LOW, []).satisfied)
        self.assertTrue(
            authorize(fresh, ThresholdLevel.HIGH, [self.destination]).satisfied
        )

    def test_envelope_levels_per_source(self):
        from .operations import change_trust, create_account

        operations = OperationSet(
            [
                create_account(self.destination, "2", source=self.master),
                change_trust(Asset("TEST", self.master), source=self.destination),
            ]
        )
        levels = envelope_required_level(operations, self.master)
        self.assertEqual(levels[self.master], ThresholdLevel.MEDIUM)
        self.assertEqual(levels[self.destination], ThresholdLevel.MEDIUM)

        checks = authorize_envelope(
            {self.master: self.account}, operations, self.master, [self.b]
        )
        by_account = {check.account_id: check for check in checks}
        self.assertTrue(by_account[self.master].satisfied)
        self.assertFalse(by_account[self.destination].satisfied)


if __name__ == "__main__":
    unittest.main()
