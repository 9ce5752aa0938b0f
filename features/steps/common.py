# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import asyncio
import typing
from decimal import Decimal

from behave import given, then, use_step_matcher
from stellar_sdk import Asset, Keypair, Network

from stellar_bootcamp.assembler import EnvelopeAssembler
from stellar_bootcamp.authorizer import KeypairSigner, MultiSignerAuthorizer
from stellar_bootcamp.exceptions import StaleSequenceError, SubmissionError
from stellar_bootcamp.gateway import SubmissionGateway
from stellar_bootcamp.ledger import LedgerSimulator

# Use regular expressions
use_step_matcher("re")

START_TIME = 1_700_000_000


@given(r"an empty ledger")
def given_empty_ledger(context: typing.Any):
    context.now = START_TIME
    context.ledger = LedgerSimulator(
        Network.TESTNET_NETWORK_PASSPHRASE, clock=lambda: context.now
    )
    context.assembler = EnvelopeAssembler(
        context.ledger, Network.TESTNET_NETWORK_PASSPHRASE, clock=lambda: context.now
    )
    context.gateway = SubmissionGateway(context.ledger)
    context.keypairs = {}
    context.noted_sequences = {}
    context.envelope = None
    context.error = None
    context.result = None


@given(r'a keypair "(?P<name>\w+)"')
def given_keypair(context: typing.Any, name: str):
    keypair(context, name)


@given(r'a funded account "(?P<name>\w+)"')
def given_funded_account(context: typing.Any, name: str):
    context.ledger.fund(keypair(context, name).public_key)


@given(r'"(?P<name>\w+)" noted its sequence number')
def given_noted_sequence(context: typing.Any, name: str):
    context.noted_sequences[name] = run(
        context.ledger.account_sequence_number(keypair(context, name).public_key)
    )


@given(r"(?P<seconds>\d+) seconds pass")
def given_time_passes(context: typing.Any, seconds: str):
    context.now += int(seconds)


@then(r"the submission should succeed")
def then_submission_succeeds(context: typing.Any):
    assert context.error is None, f"Expected success but got {context.error!r}"
    assert context.result is not None and context.result.successful


@then(r"the submission should fail with (?P<error>\w+)")
def then_submission_fails(context: typing.Any, error: str):
    assert context.error is not None, "Expected a failure but the submission succeeded"
    assert type(context.error).__name__ == error, (
        "Expected " + error + " but got " + type(context.error).__name__
    )


@then(r'the operation codes should be \[(?P<codes>.*)]')
def then_operation_codes(context: typing.Any, codes: str):
    expected = parse_list(codes)
    assert context.error.operation_codes == expected, (
        "Expected " + str(expected) + " but got " + str(context.error.operation_codes)
    )


@then(r'the sequence number of "(?P<name>\w+)" should have advanced by (?P<count>\d+)')
def then_sequence_advanced(context: typing.Any, name: str, count: str):
    current = run(context.ledger.account_sequence_number(keypair(context, name).public_key))
    advanced = current - context.noted_sequences[name]
    assert advanced == int(count), f"Expected {count} but got {advanced}"


@then(
    r'"(?P<name>\w+)" should hold (?P<amount>[0-9.]+) (?P<code>\w+)'
    r'(?: issued by "(?P<issuer>\w+)")?'
)
def then_balance(
    context: typing.Any, name: str, amount: str, code: str, issuer: typing.Optional[str]
):
    asset = parse_asset(context, code, issuer)
    balance = run(context.ledger.account_balance(keypair(context, name).public_key, asset))
    assert balance == Decimal(amount), f"Expected {amount} but got {balance}"


def keypair(context: typing.Any, name: str) -> Keypair:
    if name not in context.keypairs:
        context.keypairs[name] = Keypair.random()
    return context.keypairs[name]


def public_key(context: typing.Any, name: str) -> str:
    return keypair(context, name).public_key


def parse_list(input_value: str) -> typing.List[str]:
    """Split ``a, b and c`` or ``a,b`` into names."""
    input_value = input_value.replace(" and ", ",")
    return [val.strip().strip('"') for val in input_value.split(",") if val.strip()]


def parse_asset(context: typing.Any, code: str, issuer: typing.Optional[str]) -> Asset:
    if code == "XLM" and issuer is None:
        return Asset.native()
    return Asset(code, public_key(context, issuer))


def run(coroutine: typing.Awaitable[typing.Any]) -> typing.Any:
    return asyncio.run(coroutine)


def build(context: typing.Any, source: str, operations) -> None:
    """Assemble an unsigned envelope for ``source`` into ``context.envelope``."""
    state = run(context.ledger.load_account(public_key(context, source)))
    context.envelope = run(context.assembler.build(state, operations))


def sign(context: typing.Any, signers: str) -> None:
    MultiSignerAuthorizer().sign(
        context.envelope,
        [KeypairSigner(keypair(context, name)) for name in parse_list(signers)],
    )


def submit(context: typing.Any) -> None:
    context.result = None
    context.error = None
    try:
        context.result = run(context.gateway.submit(context.envelope))
    except (SubmissionError, StaleSequenceError) as e:
        context.error = e


def build_sign_and_submit(context: typing.Any, source: str, operations, signers: str):
    build(context, source, operations)
    sign(context, signers)
    submit(context)
