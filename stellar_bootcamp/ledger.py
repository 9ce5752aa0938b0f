# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
An in-memory ledger that accepts the same signed envelopes Horizon does.

``LedgerSimulator`` implements the ``LedgerService`` interface, so the
assembler, the submission gateway and every bootcamp example run unchanged
against it. It exists to make the authorization rules observable offline: the
threshold check runs against each account's configuration at submission time,
the sequence number is consumed on every attempt whose sequence matches, and
operations apply all-or-nothing.

Submission pipeline:

1. Decode the envelope. Fee and operation sanity checks come first and consume
   nothing (``tx_insufficient_fee``, ``tx_no_source_account``,
   ``tx_insufficient_balance``).
2. ``tx_bad_seq`` when the envelope's sequence is not the source's next one.
   Nothing is consumed.
3. The sequence number is consumed and the fee charged, whatever happens next.
4. ``tx_too_early`` / ``tx_too_late`` from the time bounds.
5. ``tx_bad_auth`` when the source lacks signer weight for its low threshold,
   then ``tx_failed`` with ``op_bad_auth`` for the first operation whose source
   lacks weight for that operation's level, as Horizon reports it
   (``tx_bad_auth_extra`` for unused signatures when
   ``strict_extra_signatures`` is on).
6. Operations are applied in order on a scratch copy of the ledger. The first
   failing operation discards the copy and yields ``tx_failed`` with
   per-operation result codes.
7. The scratch copy is committed and the ledger number advances.

Failures are raised as ``TransactionFailed`` with the same ``result_codes``
shape Horizon returns, so the gateway cannot tell the two apart.

Soroban host functions are not executed here; an invoke-host-function
operation fails with ``op_not_supported``.
"""

from __future__ import annotations

import logging
import time
import unittest
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from stellar_sdk import (
    Asset,
    AuthorizationFlag,
    Keypair,
    Network,
    Signer,
    TransactionEnvelope,
    TrustLineFlags,
)

from .account import (
    NATIVE,
    STROOPS_PER_LUMEN,
    AccountState,
    Balance,
    Thresholds,
    to_amount,
)
from .authorizer import signature_keys
from .exceptions import (
    AccountNotFound,
    ApiError,
    FundingError,
    TransactionFailed,
    ValidationError,
)
from .operations import OperationKind, OperationSet, operation_source
from .thresholds import ThresholdLevel, authorize, required_level, unused_signatures

BASE_RESERVE = Decimal("0.5")
BASE_FEE = 100
FRIENDBOT_AMOUNT = 10_000


def account_id_of(value: Any) -> str:
    """Account id of a ``G...`` string or a ``stellar_sdk.MuxedAccount``."""
    if isinstance(value, str):
        return value
    return value.account_id


def minimum_balance(account: AccountState) -> Decimal:
    entries = 2 + account.subentry_count() + account.num_sponsoring - account.num_sponsored
    return entries * BASE_RESERVE


def available_balance(account: AccountState) -> Decimal:
    return account.balance() - minimum_balance(account)


class OperationFailed(Exception):
    """Raised inside operation application with a Horizon operation result code."""

    code: str

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


@dataclass
class _Application:
    """Applies the operations of one envelope to a scratch copy of the ledger."""

    accounts: Dict[str, AccountState]
    new_sequence: int
    sponsorships: Dict[str, str] = field(default_factory=dict)

    def account(self, account_id: str, code: str = "op_no_source_account") -> AccountState:
        account = self.accounts.get(account_id)
        if account is None:
            raise OperationFailed(code)
        return account

    def charge_reserve(self, account: AccountState) -> Optional[str]:
        """Pay for a new subentry of ``account``, or have its sponsor pay."""
        sponsor_id = self.sponsorships.get(account.account_id)
        if sponsor_id is None:
            if available_balance(account) < 0:
                raise OperationFailed("op_low_reserve")
            return None
        sponsor = self.account(sponsor_id)
        sponsor.num_sponsoring += 1
        account.num_sponsored += 1
        if available_balance(sponsor) < 0:
            raise OperationFailed("op_low_reserve")
        return sponsor_id

    def release_reserve(self, account: AccountState, sponsor_id: Optional[str]):
        if sponsor_id is None or sponsor_id not in self.accounts:
            return
        self.accounts[sponsor_id].num_sponsoring -= 1
        account.num_sponsored -= 1

    def apply(self, operation, source_id: str):
        kind = OperationKind.of(operation)
        getattr(self, kind.value)(operation, self.account(source_id))

    def create_account(self, operation, source: AccountState):
        destination = operation.destination
        if destination in self.accounts:
            raise OperationFailed("op_already_exists")
        amount = to_amount(operation.starting_balance)
        sponsor_id = self.sponsorships.get(destination)
        if sponsor_id is None and amount < 2 * BASE_RESERVE:
            raise OperationFailed("op_low_reserve")
        if available_balance(source) < amount:
            raise OperationFailed("op_underfunded")
        source.balances[NATIVE].balance -= amount

        created = AccountState.new(destination, sequence=self.new_sequence, balance=amount)
        self.accounts[destination] = created
        if sponsor_id is not None:
            sponsor = self.account(sponsor_id)
            created.sponsor = sponsor_id
            created.num_sponsored = 2
            sponsor.num_sponsoring += 2
            if available_balance(sponsor) < 0:
                raise OperationFailed("op_low_reserve")

    def payment(self, operation, source: AccountState):
        destination = self.account(
            account_id_of(operation.destination), "op_no_destination"
        )
        asset = operation.asset
        amount = to_amount(operation.amount)

        if asset.is_native():
            if available_balance(source) < amount:
                raise OperationFailed("op_underfunded")
            source.balances[NATIVE].balance -= amount
            destination.balances[NATIVE].balance += amount
            return

        if asset.issuer not in self.accounts:
            raise OperationFailed("op_no_issuer")
        source_line = destination_line = None
        # The issuer mints on send and burns on receive, without a trustline.
        if source.account_id != asset.issuer:
            source_line = source.trustline(asset)
            if source_line is None:
                raise OperationFailed("op_src_no_trust")
            if not source_line.authorized:
                raise OperationFailed("op_src_not_authorized")
            if source_line.balance < amount:
                raise OperationFailed("op_underfunded")
        if destination.account_id != asset.issuer:
            destination_line = destination.trustline(asset)
            if destination_line is None:
                raise OperationFailed("op_no_trust")
            if not destination_line.authorized:
                raise OperationFailed("op_not_authorized")
            limit = destination_line.limit
            if limit is not None and destination_line.balance + amount > limit:
                raise OperationFailed("op_line_full")

        if source_line is not None:
            source_line.balance -= amount
        if destination_line is not None:
            destination_line.balance += amount

    def change_trust(self, operation, source: AccountState):
        asset = operation.asset
        if not isinstance(asset, Asset) or asset.is_native():
            raise OperationFailed("op_malformed")
        if asset.issuer == source.account_id:
            raise OperationFailed("op_self_not_allowed")
        issuer = self.account(asset.issuer, "op_no_issuer")
        limit = to_amount(operation.limit)
        line = source.trustline(asset)

        if line is not None:
            if limit == 0:
                if line.balance > 0:
                    raise OperationFailed("op_invalid_limit")
                del source.balances[line.asset_id]
                self.release_reserve(source, line.sponsor)
            elif limit < line.balance:
                raise OperationFailed("op_invalid_limit")
            else:
                line.limit = limit
            return

        if limit == 0:
            raise OperationFailed("op_invalid_limit")
        line = Balance(
            asset=asset,
            limit=limit,
            authorized=not issuer.has_flag(AuthorizationFlag.AUTHORIZATION_REQUIRED),
            clawback_enabled=issuer.has_flag(
                AuthorizationFlag.AUTHORIZATION_CLAWBACK_ENABLED
            ),
        )
        source.balances[line.asset_id] = line
        line.sponsor = self.charge_reserve(source)

    def set_options(self, operation, source: AccountState):
        if operation.set_flags is not None or operation.clear_flags is not None:
            if source.has_flag(AuthorizationFlag.AUTHORIZATION_IMMUTABLE):
                raise OperationFailed("op_cant_change")
            flags = source.flags | int(operation.set_flags or 0)
            flags &= ~int(operation.clear_flags or 0)
            if flags & AuthorizationFlag.AUTHORIZATION_CLAWBACK_ENABLED and not (
                flags & AuthorizationFlag.AUTHORIZATION_REVOCABLE
            ):
                raise OperationFailed("op_auth_revocable_required")
            source.flags = flags

        if operation.master_weight is not None:
            source.set_signer(source.account_id, operation.master_weight)

        thresholds = source.thresholds
        source.thresholds = Thresholds(
            low=_pick(operation.low_threshold, thresholds.low),
            medium=_pick(operation.med_threshold, thresholds.medium),
            high=_pick(operation.high_threshold, thresholds.high),
        )

        if operation.signer is not None:
            key = operation.signer.signer_key.encoded_signer_key
            if key == source.account_id:
                raise OperationFailed("op_bad_signer")
            is_new = source.signer_weight(key) == 0
            try:
                source.set_signer(key, operation.signer.weight)
            except ValidationError:
                raise OperationFailed("op_bad_signer")
            if is_new and operation.signer.weight > 0 and available_balance(source) < 0:
                raise OperationFailed("op_low_reserve")

    def allow_trust(self, operation, source: AccountState):
        asset = Asset(operation.asset_code, source.account_id)
        self._authorize(
            operation.trustor,
            asset,
            source,
            authorize=bool(int(operation.authorize) & TrustLineFlags.AUTHORIZED_FLAG),
        )

    def set_trust_line_flags(self, operation, source: AccountState):
        asset = operation.asset
        if asset.issuer != source.account_id:
            raise OperationFailed("op_malformed")
        set_flags = int(operation.set_flags or 0)
        clear_flags = int(operation.clear_flags or 0)
        if set_flags & TrustLineFlags.TRUSTLINE_CLAWBACK_ENABLED_FLAG:
            raise OperationFailed("op_malformed")
        authorize = None
        if set_flags & TrustLineFlags.AUTHORIZED_FLAG:
            authorize = True
        elif clear_flags & TrustLineFlags.AUTHORIZED_FLAG:
            authorize = False
        line = self._authorize(operation.trustor, asset, source, authorize)
        if clear_flags & TrustLineFlags.TRUSTLINE_CLAWBACK_ENABLED_FLAG:
            line.clawback_enabled = False

    def _authorize(
        self, trustor_id: str, asset: Asset, issuer: AccountState, authorize: Optional[bool]
    ) -> Balance:
        if trustor_id == issuer.account_id:
            raise OperationFailed("op_self_not_allowed")
        trustor = self.account(trustor_id, "op_no_trust_line")
        line = trustor.trustline(asset)
        if line is None:
            raise OperationFailed("op_no_trust_line")
        if authorize is False and not issuer.has_flag(
            AuthorizationFlag.AUTHORIZATION_REVOCABLE
        ):
            raise OperationFailed("op_cant_revoke")
        if authorize is not None:
            line.authorized = authorize
        return line

    def clawback(self, operation, source: AccountState):
        asset = operation.asset
        if asset.issuer != source.account_id:
            raise OperationFailed("op_malformed")
        holder = self.account(account_id_of(operation.from_), "op_no_trust")
        line = holder.trustline(asset)
        if line is None:
            raise OperationFailed("op_no_trust")
        if not line.clawback_enabled:
            raise OperationFailed("op_not_clawback_enabled")
        amount = to_amount(operation.amount)
        if line.balance < amount:
            raise OperationFailed("op_underfunded")
        line.balance -= amount

    def begin_sponsoring_future_reserves(self, operation, source: AccountState):
        sponsored = operation.sponsored_id
        if sponsored == source.account_id:
            raise OperationFailed("op_malformed")
        if sponsored in self.sponsorships:
            raise OperationFailed("op_already_sponsored")
        if source.account_id in self.sponsorships:
            raise OperationFailed("op_recursive")
        self.sponsorships[sponsored] = source.account_id

    def end_sponsoring_future_reserves(self, operation, source: AccountState):
        if self.sponsorships.pop(source.account_id, None) is None:
            raise OperationFailed("op_not_sponsored")

    def invoke_host_function(self, operation, source: AccountState):
        raise OperationFailed("op_not_supported")


def _pick(value: Optional[int], current: int) -> int:
    return current if value is None else value


class LedgerSimulator:
    """In-memory ledger implementing ``LedgerService``."""

    network_passphrase: str
    clock: Callable[[], float]
    strict_extra_signatures: bool
    ledger_sequence: int
    accounts: Dict[str, AccountState]
    transactions: Dict[str, Dict[str, Any]]

    def __init__(
        self,
        network_passphrase: str = Network.TESTNET_NETWORK_PASSPHRASE,
        clock: Callable[[], float] = time.time,
        strict_extra_signatures: bool = False,
    ):
        """
        :param network_passphrase: Passphrase the submitted envelopes must be signed for.
        :param clock: Source of "now" for the time-bound check.
        :param strict_extra_signatures: Reject envelopes carrying signatures that
            no involved account recognizes (``tx_bad_auth_extra``).
        """
        self.network_passphrase = network_passphrase
        self.clock = clock
        self.strict_extra_signatures = strict_extra_signatures
        self.ledger_sequence = 1
        self.accounts = {}
        self.transactions = {}

    #
    # Account accessors
    #

    def fund(self, public_key: str, amount: Any = FRIENDBOT_AMOUNT) -> AccountState:
        """Create and fund an account, as Friendbot does on testnet."""
        if public_key in self.accounts:
            raise FundingError(f"{public_key} is already funded", 400)
        state = AccountState.new(
            public_key, sequence=self.ledger_sequence << 32, balance=amount
        )
        self.accounts[public_key] = state
        logging.debug(f"funded {public_key} with {amount} XLM")
        return state.copy()

    async def fund_account(self, public_key: str) -> Dict[str, Any]:
        self.fund(public_key)
        return {"account_id": public_key, "ledger": self.ledger_sequence}

    async def load_account(self, account_id: str) -> AccountState:
        state = self.accounts.get(account_id)
        if state is None:
            raise AccountNotFound(f"{account_id} does not exist", account_id)
        return state.copy()

    async def account_sequence_number(self, account_id: str) -> int:
        return (await self.load_account(account_id)).sequence

    async def account_balance(self, account_id: str, asset: Optional[Asset] = None) -> Decimal:
        return (await self.load_account(account_id)).balance(asset)

    async def transaction(self, tx_hash: str) -> Dict[str, Any]:
        if tx_hash not in self.transactions:
            raise ApiError(f"{tx_hash} not found", 404)
        return self.transactions[tx_hash]

    #
    # Submission
    #

    async def submit_transaction(self, envelope_xdr: str) -> Dict[str, Any]:
        """
        Validate, authorize and apply a signed envelope.

        :return: ``{"hash", "ledger", "successful"}`` like Horizon.
        :raises TransactionFailed: With Horizon-shaped ``result_codes``.
        """
        try:
            envelope = TransactionEnvelope.from_xdr(envelope_xdr, self.network_passphrase)
        except (ValueError, TypeError) as e:
            raise TransactionFailed(
                f"undecodable envelope: {e}", 400, {"transaction": "tx_malformed"}
            )
        transaction = envelope.transaction
        source_id = account_id_of(transaction.source)
        try:
            operations = OperationSet(transaction.operations)
        except ValidationError as e:
            raise TransactionFailed(str(e), 400, {"transaction": "tx_malformed"})

        if transaction.fee < BASE_FEE * len(operations):
            self._reject("tx_insufficient_fee")
        source = self.accounts.get(source_id)
        if source is None:
            self._reject("tx_no_source_account")
        fee = Decimal(transaction.fee) / STROOPS_PER_LUMEN
        if source.balance() < fee:
            self._reject("tx_insufficient_balance")
        if transaction.sequence != source.sequence + 1:
            self._reject("tx_bad_seq")

        source.sequence = transaction.sequence
        source.balances[NATIVE].balance -= fee

        now = self.clock()
        time_bounds = transaction.preconditions.time_bounds if transaction.preconditions else None
        if time_bounds is not None:
            if time_bounds.min_time and now < time_bounds.min_time:
                self._reject("tx_too_early")
            if time_bounds.max_time and now > time_bounds.max_time:
                self._reject("tx_too_late")

        self._authorize(envelope, operations, source_id)

        tx_hash = envelope.hash_hex()
        scratch = {key: state.copy() for key, state in self.accounts.items()}
        application = _Application(scratch, new_sequence=self.ledger_sequence << 32)
        codes: List[str] = []
        for operation in operations:
            try:
                application.apply(operation, operation_source(operation) or source_id)
            except OperationFailed as e:
                codes.append(e.code)
                self._reject("tx_failed", codes)
            codes.append("op_success")
        if application.sponsorships:
            self._reject("tx_bad_sponsorship")

        self.accounts = scratch
        ledger = self.ledger_sequence
        self.ledger_sequence += 1
        result = {"hash": tx_hash, "ledger": ledger, "successful": True}
        self.transactions[tx_hash] = dict(result, envelope_xdr=envelope_xdr)
        logging.debug(f"ledger {ledger} closed with {tx_hash} ({operations})")
        return result

    def _authorize(self, envelope: TransactionEnvelope, operations: OperationSet, source_id: str):
        involved = {source_id, *operations.sources(source_id)}
        accounts = {key: self.accounts[key] for key in involved if key in self.accounts}
        candidates = set(involved) | set(self.accounts)
        for account in accounts.values():
            candidates.update(account.signer_keys())
        signed = signature_keys(envelope, sorted(candidates))

        # The source's low threshold is checked for the envelope as a whole,
        # every operation's own level for that operation's source account.
        check = authorize(self._involved(accounts, source_id), ThresholdLevel.LOW, signed)
        if not check.satisfied:
            logging.debug(f"authorization failed: {check}")
            self._reject("tx_bad_auth")
        codes: List[str] = []
        for operation in operations:
            account_id = operation_source(operation) or source_id
            check = authorize(
                self._involved(accounts, account_id), required_level(operation), signed
            )
            if not check.satisfied:
                logging.debug(f"authorization failed: {check}")
                codes.append("op_bad_auth")
                self._reject("tx_failed", codes)
            codes.append("op_success")

        if self.strict_extra_signatures:
            recognized = list(accounts.values()) + [
                AccountState.new(key) for key in involved if key not in accounts
            ]
            unverified = len(envelope.signatures) - len(signed)
            if unverified > 0 or unused_signatures(recognized, signed):
                self._reject("tx_bad_auth_extra")

    @staticmethod
    def _involved(accounts: Dict[str, AccountState], account_id: str) -> AccountState:
        # Accounts created by this envelope sign with their master key.
        return accounts.get(account_id) or AccountState.new(account_id)

    @staticmethod
    def _reject(code: str, operations: Optional[List[str]] = None):
        result_codes: Dict[str, Any] = {"transaction": code}
        if operations is not None:
            result_codes["operations"] = operations
        raise TransactionFailed("Transaction Failed", 400, result_codes)


class Test(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        from .assembler import EnvelopeAssembler

        self.now = 1_000
        self.ledger = LedgerSimulator(clock=lambda: self.now)
        self.assembler = EnvelopeAssembler(self.ledger, clock=lambda: self.now)
        self.alice = Keypair.random()
        self.bob = Keypair.random()
        self.ledger.fund(self.alice.public_key)
        self.ledger.fund(self.bob.public_key)

    async def envelope(self, source: Keypair, operations, signers) -> TransactionEnvelope:
        state = await self.ledger.load_account(source.public_key)
        envelope = await self.assembler.build(state, operations)
        for signer in signers:
            envelope.sign(signer)
        return envelope

    async def submit(self, source: Keypair, operations, signers) -> Dict[str, Any]:
        envelope = await self.envelope(source, operations, signers)
        return await self.ledger.submit_transaction(envelope.to_xdr())

    async def assertRejected(self, code: str, source, operations, signers) -> TransactionFailed:
        with self.assertRaises(TransactionFailed) as context:
            await self.submit(source, operations, signers)
        self.assertEqual(context.exception.transaction_code, code)
        return context.exception

    async def test_native_payment(self):
        from .operations import payment

        before = await self.ledger.account_sequence_number(self.alice.public_key)
        result = await self.submit(
            self.alice, [payment(self.bob.public_key, Asset.native(), "10")], [self.alice]
        )
        self.assertEqual(result["ledger"], 1)
        self.assertEqual(self.ledger.ledger_sequence, 2)
        self.assertEqual(
            await self.ledger.account_sequence_number(self.alice.public_key), before + 1
        )
        self.assertEqual(
            await self.ledger.account_balance(self.bob.public_key), Decimal("10010")
        )
        self.assertEqual(
            await self.ledger.account_balance(self.alice.public_key),
            Decimal("9989.9999000"),
        )
        self.assertIn(result["hash"], self.ledger.transactions)

    async def test_bad_sequence_consumes_nothing(self):
        from .operations import payment

        operations = [payment(self.bob.public_key, Asset.native(), "1")]
        stale = await self.envelope(self.alice, operations, [self.alice])
        await self.submit(self.alice, operations, [self.alice])
        sequence = await self.ledger.account_sequence_number(self.alice.public_key)
        with self.assertRaises(TransactionFailed) as context:
            await self.ledger.submit_transaction(stale.to_xdr())
        self.assertEqual(context.exception.transaction_code, "tx_bad_seq")
        self.assertEqual(
            await self.ledger.account_sequence_number(self.alice.public_key), sequence
        )

    async def test_failed_attempt_consumes_sequence(self):
        from .operations import payment

        sequence = await self.ledger.account_sequence_number(self.alice.public_key)
        await self.assertRejected(
            "tx_bad_auth",
            self.alice,
            [payment(self.bob.public_key, Asset.native(), "1")],
            [self.bob],
        )
        self.assertEqual(
            await self.ledger.account_sequence_number(self.alice.public_key), sequence + 1
        )

    async def test_too_late(self):
        from .operations import payment

        envelope = await self.envelope(
            self.alice, [payment(self.bob.public_key, Asset.native(), "1")], [self.alice]
        )
        self.now += 31
        with self.assertRaises(TransactionFailed) as context:
            await self.ledger.submit_transaction(envelope.to_xdr())
        self.assertEqual(context.exception.transaction_code, "tx_too_late")

    async def test_multisig_thresholds(self):
        from .operations import add_signer, payment, remove_signer, set_options

        signer_a, signer_b = Keypair.random(), Keypair.random()
        await self.submit(
            self.alice,
            [
                add_signer(signer_a.public_key, 1),
                add_signer(signer_b.public_key, 2),
                set_options(low_threshold=1, med_threshold=2, high_threshold=3),
            ],
            [self.alice],
        )
        pay = [payment(self.bob.public_key, Asset.native(), "1")]
        failed = await self.assertRejected("tx_failed", self.alice, pay, [signer_a])
        self.assertEqual(failed.operation_codes, ["op_bad_auth"])
        await self.submit(self.alice, pay, [signer_b])

        remove = [remove_signer(signer_a.public_key)]
        for signers in ([self.alice], [signer_b]):
            failed = await self.assertRejected("tx_failed", self.alice, remove, signers)
            self.assertEqual(failed.operation_codes, ["op_bad_auth"])
        # Below the low threshold the whole envelope is refused.
        await self.assertRejected("tx_bad_auth", self.alice, pay, [Keypair.random()])
        await self.submit(self.alice, remove, [self.alice, signer_b])
        state = await self.ledger.load_account(self.alice.public_key)
        self.assertEqual(state.signer_weight(signer_a.public_key), 0)

    async def test_trustline_all_or_nothing(self):
        from .operations import change_trust, create_account, payment

        carol = Keypair.random()
        asset = Asset("TEST", self.alice.public_key)
        failed = await self.assertRejected(
            "tx_failed",
            self.alice,
            [
                create_account(carol.public_key, "5"),
                payment(carol.public_key, asset, "1"),
            ],
            [self.alice],
        )
        self.assertEqual(failed.operation_codes, ["op_success", "op_no_trust"])
        with self.assertRaises(AccountNotFound):
            await self.ledger.load_account(carol.public_key)

        await self.submit(
            self.alice,
            [
                create_account(carol.public_key, "5"),
                change_trust(asset, source=carol.public_key),
                payment(carol.public_key, asset, "100"),
            ],
            [self.alice, carol],
        )
        self.assertEqual(
            await self.ledger.account_balance(carol.public_key, asset), Decimal("100")
        )

    async def test_authorization_required(self):
        from .operations import allow_trust, change_trust, payment, set_options

        asset = Asset("TEST", self.alice.public_key)
        await self.submit(
            self.alice,
            [
                set_options(
                    set_flags=AuthorizationFlag.AUTHORIZATION_REQUIRED
                    | AuthorizationFlag.AUTHORIZATION_REVOCABLE
                )
            ],
            [self.alice],
        )
        await self.submit(self.bob, [change_trust(asset)], [self.bob])
        mint = [payment(self.bob.public_key, asset, "5")]
        failed = await self.assertRejected("tx_failed", self.alice, mint, [self.alice])
        self.assertEqual(failed.operation_codes, ["op_not_authorized"])

        await self.submit(
            self.alice, [allow_trust(self.bob.public_key, "TEST", True)], [self.alice]
        )
        await self.submit(self.alice, mint, [self.alice])
        self.assertEqual(
            await self.ledger.account_balance(self.bob.public_key, asset), Decimal("5")
        )

    async def test_clawback_needs_flag_at_trustline_creation(self):
        from .operations import change_trust, clawback, payment, set_options

        asset = Asset("TEST", self.alice.public_key)
        await self.submit(self.bob, [change_trust(asset)], [self.bob])
        await self.submit(
            self.alice,
            [
                set_options(
                    set_flags=AuthorizationFlag.AUTHORIZATION_REVOCABLE
                    | AuthorizationFlag.AUTHORIZATION_CLAWBACK_ENABLED
                ),
                payment(self.bob.public_key, asset, "10"),
            ],
            [self.alice],
        )
        failed = await self.assertRejected(
            "tx_failed",
            self.alice,
            [clawback(self.bob.public_key, asset, "1")],
            [self.alice],
        )
        self.assertEqual(failed.operation_codes, ["op_not_clawback_enabled"])

    async def test_sponsored_creation(self):
        from .operations import begin_sponsoring, create_account, end_sponsoring

        carol = Keypair.random()
        await self.submit(
            self.alice,
            [
                begin_sponsoring(carol.public_key),
                create_account(carol.public_key, "0"),
                end_sponsoring(source=carol.public_key),
            ],
            [self.alice, carol],
        )
        carol_state = await self.ledger.load_account(carol.public_key)
        alice_state = await self.ledger.load_account(self.alice.public_key)
        self.assertEqual(carol_state.sponsor, self.alice.public_key)
        self.assertEqual(carol_state.balance(), Decimal(0))
        self.assertEqual(alice_state.num_sponsoring, 2)

    async def test_unsponsored_creation_needs_reserve(self):
        from .operations import create_account

        failed = await self.assertRejected(
            "tx_failed",
            self.alice,
            [create_account(Keypair.random().public_key, "0")],
            [self.alice],
        )
        self.assertEqual(failed.operation_codes, ["op_low_reserve"])

    async def test_strict_extra_signatures(self):
        from .operations import payment

        pay = [payment(self.bob.public_key, Asset.native(), "1")]
        await self.submit(self.alice, pay, [self.alice, Keypair.random()])

        self.ledger.strict_extra_signatures = True
        await self.assertRejected(
            "tx_bad_auth_extra", self.alice, pay, [self.alice, Keypair.random()]
        )

    async def test_fund_twice(self):
        with self.assertRaises(FundingError):
            self.ledger.fund(self.alice.public_key)

    def test_signer_key_encoding(self):
        key = Keypair.random().public_key
        signer = Signer.ed25519_public_key(key, 3)
        self.assertEqual(signer.signer_key.encoded_signer_key, key)


if __name__ == "__main__":
    unittest.main()
