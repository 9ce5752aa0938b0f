# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Account state as seen by the ledger: sequence number, signers, thresholds,
balances and flags.

An ``AccountState`` is a snapshot. It is produced by the Account State Accessor
(``HorizonClient.load_account`` or ``LedgerSimulator.load_account``) and is the
input the ``EnvelopeAssembler`` reads the sequence number from. It is never
written back to the network; changing an account always goes through a
set-options or change-trust operation inside a submitted envelope.

Stellar account rules modelled here:

- The master key (the account id itself) is an implicit signer with weight 1
  until a set-options operation changes ``master_weight``.
- Signer weights and the three thresholds (low / medium / high) are each in
  the range 0-255.
- A freshly created account has all thresholds at 0.

Examples:
    Parse a Horizon response::

        state = AccountState.from_horizon(await horizon.account(public_key))
        print(state.sequence, state.thresholds, state.signers)

    Build a snapshot for an account that does not exist yet::

        state = AccountState.new(keypair.public_key)
        assert state.master_weight() == 1
"""

from __future__ import annotations

import copy
import unittest
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from stellar_sdk import Account, Asset, AuthorizationFlag, Keypair, StrKey

from .exceptions import ValidationError

MAX_WEIGHT = 255
STROOPS_PER_LUMEN = 10_000_000
AMOUNT_PRECISION = Decimal("0.0000001")
NATIVE = "native"


def asset_id(asset: Asset) -> str:
    """Canonical ``CODE:ISSUER`` text for an asset, ``native`` for lumens."""
    if asset.is_native():
        return NATIVE
    return f"{asset.code}:{asset.issuer}"


def to_amount(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(AMOUNT_PRECISION)


def check_weight(value: int, name: str = "weight") -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if value < 0 or value > MAX_WEIGHT:
        raise ValidationError(f"{name} must be between 0 and {MAX_WEIGHT}, got {value}")
    return value


def check_account_id(account_id: str) -> str:
    if not StrKey.is_valid_ed25519_public_key(account_id):
        raise ValidationError(f"invalid account id: {account_id!r}")
    return account_id


@dataclass(frozen=True)
class Signer:
    key: str
    weight: int

    def __post_init__(self):
        check_account_id(self.key)
        check_weight(self.weight)


@dataclass(frozen=True)
class Thresholds:
    low: int = 0
    medium: int = 0
    high: int = 0

    def __post_init__(self):
        check_weight(self.low, "low threshold")
        check_weight(self.medium, "medium threshold")
        check_weight(self.high, "high threshold")

    def for_level(self, level: int) -> int:
        """Threshold for a ``ThresholdLevel`` (0 = low, 1 = medium, 2 = high)."""
        return (self.low, self.medium, self.high)[int(level)]


@dataclass
class Balance:
    asset: Asset
    balance: Decimal = Decimal(0)
    limit: Optional[Decimal] = None
    authorized: bool = True
    clawback_enabled: bool = False
    sponsor: Optional[str] = None

    @property
    def asset_id(self) -> str:
        return asset_id(self.asset)


@dataclass
class AccountState:
    account_id: str
    sequence: int
    signers: List[Signer] = field(default_factory=list)
    thresholds: Thresholds = field(default_factory=Thresholds)
    balances: Dict[str, Balance] = field(default_factory=dict)
    flags: int = 0
    sponsor: Optional[str] = None
    num_sponsoring: int = 0
    num_sponsored: int = 0

    @staticmethod
    def new(account_id: str, sequence: int = 0, balance: Any = 0) -> AccountState:
        """A fresh account: master key weight 1, every threshold 0."""
        check_account_id(account_id)
        return AccountState(
            account_id=account_id,
            sequence=sequence,
            signers=[Signer(account_id, 1)],
            balances={NATIVE: Balance(Asset.native(), to_amount(balance))},
        )

    @staticmethod
    def from_horizon(data: Dict[str, Any]) -> AccountState:
        """Parse the body of Horizon's ``GET /accounts/{account_id}``."""
        account_id = data["account_id"]
        raw_thresholds = data.get("thresholds", {})
        thresholds = Thresholds(
            low=int(raw_thresholds.get("low_threshold", 0)),
            medium=int(raw_thresholds.get("med_threshold", 0)),
            high=int(raw_thresholds.get("high_threshold", 0)),
        )
        signers = [
            Signer(signer["key"], int(signer["weight"]))
            for signer in data.get("signers", [])
            if signer.get("type", "ed25519_public_key") == "ed25519_public_key"
        ]

        balances: Dict[str, Balance] = {}
        for entry in data.get("balances", []):
            if entry["asset_type"] == "native":
                asset = Asset.native()
            elif entry["asset_type"] in ("credit_alphanum4", "credit_alphanum12"):
                asset = Asset(entry["asset_code"], entry["asset_issuer"])
            else:
                # Liquidity pool shares are not modelled.
                continue
            limit = entry.get("limit")
            balance = Balance(
                asset=asset,
                balance=to_amount(entry["balance"]),
                limit=to_amount(limit) if limit is not None else None,
                authorized=entry.get("is_authorized", True),
                clawback_enabled=entry.get("is_clawback_enabled", False),
                sponsor=entry.get("sponsor"),
            )
            balances[balance.asset_id] = balance

        raw_flags = data.get("flags", {})
        flags = 0
        if raw_flags.get("auth_required"):
            flags |= AuthorizationFlag.AUTHORIZATION_REQUIRED
        if raw_flags.get("auth_revocable"):
            flags |= AuthorizationFlag.AUTHORIZATION_REVOCABLE
        if raw_flags.get("auth_immutable"):
            flags |= AuthorizationFlag.AUTHORIZATION_IMMUTABLE
        if raw_flags.get("auth_clawback_enabled"):
            flags |= AuthorizationFlag.AUTHORIZATION_CLAWBACK_ENABLED

        return AccountState(
            account_id=account_id,
            sequence=int(data["sequence"]),
            signers=signers,
            thresholds=thresholds,
            balances=balances,
            flags=int(flags),
            sponsor=data.get("sponsor"),
            num_sponsoring=int(data.get("num_sponsoring", 0)),
            num_sponsored=int(data.get("num_sponsored", 0)),
        )

    def copy(self) -> AccountState:
        return copy.deepcopy(self)

    def to_account(self) -> Account:
        """``stellar_sdk.Account`` holding this snapshot's sequence number."""
        return Account(self.account_id, self.sequence)

    def master_weight(self) -> int:
        return self.signer_weight(self.account_id)

    def signer_weight(self, key: str) -> int:
        for signer in self.signers:
            if signer.key == key:
                return signer.weight
        return 0

    def signer_keys(self) -> List[str]:
        return [signer.key for signer in self.signers if signer.weight > 0]

    def set_signer(self, key: str, weight: int):
        """Add, update, or (with weight 0) remove a signer."""
        check_weight(weight)
        remaining = [signer for signer in self.signers if signer.key != key]
        if weight > 0:
            remaining.append(Signer(key, weight))
        self.signers = remaining

    def has_flag(self, flag: int) -> bool:
        return bool(self.flags & int(flag))

    def balance(self, asset: Optional[Asset] = None) -> Decimal:
        entry = self.balances.get(asset_id(asset or Asset.native()))
        return entry.balance if entry is not None else Decimal(0)

    def trustline(self, asset: Asset) -> Optional[Balance]:
        if asset.is_native():
            return None
        return self.balances.get(asset_id(asset))

    def subentry_count(self) -> int:
        trustlines = len([key for key in self.balances if key != NATIVE])
        extra_signers = len([s for s in self.signers if s.key != self.account_id])
        return trustlines + extra_signers


class Test(unittest.TestCase):
    def setUp(self):
        self.MASTER = Keypair.random().public_key
        self.OTHER = Keypair.random().public_key

    def horizon_body(self):
        return {
            "account_id": self.MASTER,
            "sequence": "4294967296",
            "thresholds": {"low_threshold": 1, "med_threshold": 2, "high_threshold": 3},
            "flags": {
                "auth_required": True,
                "auth_revocable": False,
                "auth_immutable": False,
                "auth_clawback_enabled": True,
            },
            "balances": [
                {
                    "balance": "12.5000000",
                    "limit": "922337203685.4775807",
                    "asset_type": "credit_alphanum4",
                    "asset_code": "TEST",
                    "asset_issuer": self.OTHER,
                    "is_authorized": False,
                },
                {"balance": "9999.9999900", "asset_type": "native"},
            ],
            "signers": [
                {"weight": 2, "key": self.OTHER, "type": "ed25519_public_key"},
                {"weight": 1, "key": self.MASTER, "type": "ed25519_public_key"},
            ],
        }

    def test_from_horizon(self):
        state = AccountState.from_horizon(self.horizon_body())
        self.assertEqual(state.sequence, 4294967296)
        self.assertEqual(state.thresholds, Thresholds(1, 2, 3))
        self.assertEqual(state.master_weight(), 1)
        self.assertEqual(state.signer_weight(self.OTHER), 2)
        self.assertEqual(state.balance(), Decimal("9999.9999900"))
        trustline = state.trustline(Asset("TEST", self.OTHER))
        self.assertIsNotNone(trustline)
        self.assertFalse(trustline.authorized)
        self.assertTrue(state.has_flag(AuthorizationFlag.AUTHORIZATION_REQUIRED))
        self.assertFalse(state.has_flag(AuthorizationFlag.AUTHORIZATION_REVOCABLE))
        self.assertTrue(state.has_flag(AuthorizationFlag.AUTHORIZATION_CLAWBACK_ENABLED))
        self.assertEqual(state.subentry_count(), 2)

    def test_new_account_defaults(self):
        state = AccountState.new(self.MASTER)
        self.assertEqual(state.master_weight(), 1)
        self.assertEqual(state.thresholds, Thresholds(0, 0, 0))
        self.assertEqual(state.to_account().sequence, 0)

    def test_set_signer(self):
        state = AccountState.new(self.MASTER)
        state.set_signer(self.OTHER, 2)
        self.assertEqual(state.signer_weight(self.OTHER), 2)
        state.set_signer(self.OTHER, 0)
        self.assertEqual(state.signer_weight(self.OTHER), 0)
        self.assertEqual(state.signer_keys(), [self.MASTER])

    def test_weight_range(self):
        with self.assertRaises(ValidationError):
            Signer(self.OTHER, 256)
        with self.assertRaises(ValidationError):
            Thresholds(low=-1)
        with self.assertRaises(ValidationError):
            AccountState.new("not-an-account")


if __name__ == "__main__":
    unittest.main()
