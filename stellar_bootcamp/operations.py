# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Operation Set: the ordered list of ledger mutations applied together or not at all.

The factories in this module wrap the ``stellar_sdk`` operation constructors the
bootcamp scripts use. They validate their arguments up front and turn any SDK
construction error into a ``ValidationError``, so a malformed asset code or
signer weight is reported before anything touches the network.

Supported operation kinds:

======================  ===================================================
Kind                    Used by
======================  ===================================================
create-account          create_account, sponsor_account
payment                 create_asset_and_mint, configure_flags, multisig
change-trust            create_account_with_trustline, create_asset_and_mint
set-options             configure_flags (flags), multisig (signers/thresholds)
allow-trust             configure_flags (authorize / freeze trustlines)
set-trust-line-flags    protocol 17+ replacement for allow-trust
clawback                configure_flags
begin/end-sponsoring    sponsor_account
invoke-host-function    Soroban contract calls
======================  ===================================================

Examples:
    Create an account and its trustline in a single envelope::

        operations = OperationSet([
            create_account(new_account, "2", source=admin),
            change_trust(Asset("TEST", admin), source=new_account),
        ])

    Sponsored creation must close its sponsorship block::

        OperationSet([
            begin_sponsoring(new_account, source=admin),
            create_account(new_account, "0", source=admin),
            end_sponsoring(source=new_account),
        ]).validate_sponsorship()
"""

from __future__ import annotations

import re
import unittest
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Sequence, Union

from stellar_sdk import (
    AllowTrust,
    Asset,
    AuthorizationFlag,
    BeginSponsoringFutureReserves,
    ChangeTrust,
    Clawback,
    CreateAccount,
    EndSponsoringFutureReserves,
    InvokeHostFunction,
    Keypair,
    Payment,
    SetOptions,
    SetTrustLineFlags,
    Signer,
    TrustLineFlags,
)
from stellar_sdk.operation import Operation

from .account import check_account_id, check_weight
from .exceptions import ValidationError

MAX_OPERATIONS = 100
ASSET_CODE = re.compile(r"^[a-zA-Z0-9]{1,12}$")


class OperationKind(Enum):
    CREATE_ACCOUNT = "create_account"
    PAYMENT = "payment"
    CHANGE_TRUST = "change_trust"
    SET_OPTIONS = "set_options"
    ALLOW_TRUST = "allow_trust"
    SET_TRUST_LINE_FLAGS = "set_trust_line_flags"
    CLAWBACK = "clawback"
    BEGIN_SPONSORING = "begin_sponsoring_future_reserves"
    END_SPONSORING = "end_sponsoring_future_reserves"
    INVOKE_HOST_FUNCTION = "invoke_host_function"

    @staticmethod
    def of(operation: Operation) -> OperationKind:
        for op_type, kind in _KINDS:
            if isinstance(operation, op_type):
                return kind
        raise ValidationError(
            f"unsupported operation type: {type(operation).__name__}"
        )


_KINDS = [
    (CreateAccount, OperationKind.CREATE_ACCOUNT),
    (Payment, OperationKind.PAYMENT),
    (ChangeTrust, OperationKind.CHANGE_TRUST),
    (SetOptions, OperationKind.SET_OPTIONS),
    (AllowTrust, OperationKind.ALLOW_TRUST),
    (SetTrustLineFlags, OperationKind.SET_TRUST_LINE_FLAGS),
    (Clawback, OperationKind.CLAWBACK),
    (BeginSponsoringFutureReserves, OperationKind.BEGIN_SPONSORING),
    (EndSponsoringFutureReserves, OperationKind.END_SPONSORING),
    (InvokeHostFunction, OperationKind.INVOKE_HOST_FUNCTION),
]


def operation_source(operation: Operation) -> Optional[str]:
    """Account id of an operation's explicit source, None when it inherits."""
    if operation.source is None:
        return None
    return operation.source.account_id


def check_amount(amount: Union[str, Decimal], allow_zero: bool = False) -> str:
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ValidationError(f"invalid amount: {amount!r}")
    if not value.is_finite() or value < 0 or (value == 0 and not allow_zero):
        raise ValidationError(f"amount must be positive, got {amount!r}")
    if value.as_tuple().exponent < -7:
        raise ValidationError(f"amount has more than 7 decimal places: {amount!r}")
    return str(amount)


def check_asset_code(code: str) -> str:
    if not ASSET_CODE.match(code or ""):
        raise ValidationError(f"asset code must be 1-12 alphanumeric characters: {code!r}")
    return code


def check_source(source: Optional[str]) -> Optional[str]:
    if source is None:
        return None
    return check_account_id(source)


def _build(factory, *args, **kwargs) -> Operation:
    try:
        return factory(*args, **kwargs)
    except ValidationError:
        raise
    except ValueError as e:
        # stellar_sdk.exceptions.ValueError subclasses the builtin.
        raise ValidationError(str(e)) from e


def create_account(
    destination: str, starting_balance: Union[str, Decimal], source: Optional[str] = None
) -> CreateAccount:
    check_account_id(destination)
    check_amount(starting_balance, allow_zero=True)
    return _build(
        CreateAccount,
        destination=destination,
        starting_balance=starting_balance,
        source=check_source(source),
    )


def payment(
    destination: str,
    asset: Asset,
    amount: Union[str, Decimal],
    source: Optional[str] = None,
) -> Payment:
    check_account_id(destination)
    check_amount(amount)
    return _build(
        Payment,
        destination=destination,
        asset=asset,
        amount=amount,
        source=check_source(source),
    )


def change_trust(
    asset: Asset, limit: Optional[str] = None, source: Optional[str] = None
) -> ChangeTrust:
    if asset.is_native():
        raise ValidationError("cannot create a trustline to the native asset")
    if limit is not None:
        check_amount(limit, allow_zero=True)
    return _build(ChangeTrust, asset=asset, limit=limit, source=check_source(source))


def set_options(
    set_flags: Optional[int] = None,
    clear_flags: Optional[int] = None,
    master_weight: Optional[int] = None,
    low_threshold: Optional[int] = None,
    med_threshold: Optional[int] = None,
    high_threshold: Optional[int] = None,
    signer: Optional[Signer] = None,
    home_domain: Optional[str] = None,
    source: Optional[str] = None,
) -> SetOptions:
    """A set-options operation. It carries at most one signer change; use
    one operation per signer when configuring several."""
    for name, value in (
        ("master weight", master_weight),
        ("low threshold", low_threshold),
        ("medium threshold", med_threshold),
        ("high threshold", high_threshold),
    ):
        if value is not None:
            check_weight(value, name)
    if signer is not None:
        check_weight(signer.weight, "signer weight")
    return _build(
        SetOptions,
        set_flags=AuthorizationFlag(set_flags) if set_flags is not None else None,
        clear_flags=AuthorizationFlag(clear_flags) if clear_flags is not None else None,
        master_weight=master_weight,
        low_threshold=low_threshold,
        med_threshold=med_threshold,
        high_threshold=high_threshold,
        signer=signer,
        home_domain=home_domain,
        source=check_source(source),
    )


def add_signer(key: str, weight: int, source: Optional[str] = None) -> SetOptions:
    check_account_id(key)
    check_weight(weight, "signer weight")
    return set_options(signer=Signer.ed25519_public_key(key, weight), source=source)


def remove_signer(key: str, source: Optional[str] = None) -> SetOptions:
    if source is not None and key == source:
        raise ValidationError("the master key is changed with master_weight, not removed")
    return add_signer(key, 0, source=source)


def allow_trust(
    trustor: str, asset_code: str, authorize: bool, source: Optional[str] = None
) -> AllowTrust:
    check_account_id(trustor)
    check_asset_code(asset_code)
    return _build(
        AllowTrust,
        trustor=trustor,
        asset_code=asset_code,
        authorize=authorize,
        source=check_source(source),
    )


def set_trust_line_flags(
    trustor: str,
    asset: Asset,
    set_flags: Optional[TrustLineFlags] = None,
    clear_flags: Optional[TrustLineFlags] = None,
    source: Optional[str] = None,
) -> SetTrustLineFlags:
    check_account_id(trustor)
    if asset.is_native():
        raise ValidationError("the native asset has no trustline flags")
    return _build(
        SetTrustLineFlags,
        trustor=trustor,
        asset=asset,
        set_flags=set_flags,
        clear_flags=clear_flags,
        source=check_source(source),
    )


def clawback(
    from_: str, asset: Asset, amount: Union[str, Decimal], source: Optional[str] = None
) -> Clawback:
    check_account_id(from_)
    check_amount(amount)
    if asset.is_native():
        raise ValidationError("the native asset cannot be clawed back")
    return _build(
        Clawback, asset=asset, from_=from_, amount=amount, source=check_source(source)
    )


def begin_sponsoring(
    sponsored_id: str, source: Optional[str] = None
) -> BeginSponsoringFutureReserves:
    check_account_id(sponsored_id)
    return _build(
        BeginSponsoringFutureReserves,
        sponsored_id=sponsored_id,
        source=check_source(source),
    )


def end_sponsoring(source: Optional[str] = None) -> EndSponsoringFutureReserves:
    return _build(EndSponsoringFutureReserves, source=check_source(source))


class OperationSet:
    """Immutable ordered sequence of 1-100 supported operations."""

    _operations: tuple

    def __init__(self, operations: Iterable[Operation]):
        operations = tuple(operations)
        if not operations:
            raise ValidationError("an envelope needs at least one operation")
        if len(operations) > MAX_OPERATIONS:
            raise ValidationError(
                f"an envelope holds at most {MAX_OPERATIONS} operations, got {len(operations)}"
            )
        for operation in operations:
            OperationKind.of(operation)
        self._operations = operations

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __getitem__(self, index: int) -> Operation:
        return self._operations[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OperationSet):
            return NotImplemented
        return self._operations == other._operations

    def __str__(self) -> str:
        return ", ".join(kind.value for kind in self.kinds())

    def append(self, operation: Operation) -> OperationSet:
        return OperationSet(self._operations + (operation,))

    def kinds(self) -> List[OperationKind]:
        return [OperationKind.of(operation) for operation in self._operations]

    def sources(self, default_source: str) -> List[str]:
        """Effective source of every operation, in order."""
        return [
            operation_source(operation) or default_source
            for operation in self._operations
        ]

    def validate_sponsorship(self, default_source: Optional[str] = None) -> OperationSet:
        """Each begin-sponsoring block must be closed by the sponsored account."""
        open_blocks: List[str] = []
        for operation in self._operations:
            if isinstance(operation, BeginSponsoringFutureReserves):
                if operation.sponsored_id in open_blocks:
                    raise ValidationError(
                        f"{operation.sponsored_id} is already being sponsored"
                    )
                open_blocks.append(operation.sponsored_id)
            elif isinstance(operation, EndSponsoringFutureReserves):
                sponsored = operation_source(operation) or default_source
                if sponsored not in open_blocks:
                    raise ValidationError(
                        f"end-sponsoring from {sponsored} has no matching begin"
                    )
                open_blocks.remove(sponsored)
        if open_blocks:
            raise ValidationError(
                f"sponsorship of {', '.join(open_blocks)} is never ended"
            )
        return self

    @staticmethod
    def of(operations: Union[OperationSet, Sequence[Operation]]) -> OperationSet:
        if isinstance(operations, OperationSet):
            return operations
        return OperationSet(operations)


class Test(unittest.TestCase):
    def setUp(self):
        self.admin = Keypair.random().public_key
        self.user = Keypair.random().public_key

    def test_create_with_trustline(self):
        operations = OperationSet(
            [
                create_account(self.user, "2", source=self.admin),
                change_trust(Asset("TEST", self.admin), source=self.user),
            ]
        )
        self.assertEqual(
            operations.kinds(),
            [OperationKind.CREATE_ACCOUNT, OperationKind.CHANGE_TRUST],
        )
        self.assertEqual(operations.sources(self.admin), [self.admin, self.user])

    def test_default_source(self):
        operations = OperationSet([payment(self.user, Asset.native(), "10")])
        self.assertEqual(operations.sources(self.admin), [self.admin])

    def test_bounds(self):
        with self.assertRaises(ValidationError):
            OperationSet([])
        op = payment(self.user, Asset.native(), "1")
        with self.assertRaises(ValidationError):
            OperationSet([op] * (MAX_OPERATIONS + 1))
        self.assertEqual(len(OperationSet([op] * MAX_OPERATIONS)), MAX_OPERATIONS)

    def test_append_is_immutable(self):
        first = OperationSet([payment(self.user, Asset.native(), "1")])
        second = first.append(end_sponsoring())
        self.assertEqual(len(first), 1)
        self.assertEqual(len(second), 2)

    def test_invalid_params(self):
        with self.assertRaises(ValidationError):
            payment(self.user, Asset.native(), "0")
        with self.assertRaises(ValidationError):
            payment(self.user, Asset.native(), "1.00000001")
        with self.assertRaises(ValidationError):
            payment("GBAD", Asset.native(), "1")
        with self.assertRaises(ValidationError):
            add_signer(self.user, 256, source=self.admin)
        with self.assertRaises(ValidationError):
            set_options(high_threshold=300)
        with self.assertRaises(ValidationError):
            allow_trust(self.user, "WAY_TOO_LONG_CODE", True)
        with self.assertRaises(ValidationError):
            change_trust(Asset.native())

    def test_sponsorship_blocks(self):
        begin = begin_sponsoring(self.user, source=self.admin)
        create = create_account(self.user, "0", source=self.admin)
        end = end_sponsoring(source=self.user)
        OperationSet([begin, create, end]).validate_sponsorship(self.admin)

        with self.assertRaises(ValidationError):
            OperationSet([begin, create]).validate_sponsorship(self.admin)
        with self.assertRaises(ValidationError):
            OperationSet([create, end]).validate_sponsorship(self.admin)


if __name__ == "__main__":
    unittest.main()
