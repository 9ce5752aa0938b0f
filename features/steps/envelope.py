# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import typing

from behave import then, when, use_step_matcher
from stellar_sdk import Asset, Network

from stellar_bootcamp.assembler import from_xdr, to_xdr
from stellar_bootcamp.authorizer import signature_keys
from stellar_bootcamp.operations import payment

from common import build, parse_list, public_key, sign, submit

# Use regular expressions
use_step_matcher("re")


@when(r'"(?P<source>\w+)" builds a payment of (?P<amount>[0-9.]+) XLM to "(?P<destination>\w+)"')
def when_builds_payment(context: typing.Any, source: str, amount: str, destination: str):
    build(context, source, [payment(public_key(context, destination), Asset.native(), amount)])
    context.original_hash = context.envelope.hash_hex()


@when(r"the envelope is signed by (?P<signers>.+)")
def when_signed(context: typing.Any, signers: str):
    sign(context, signers)


@when(r"the envelope is exported to XDR and imported again")
def when_round_trip(context: typing.Any):
    context.envelope = from_xdr(to_xdr(context.envelope), Network.TESTNET_NETWORK_PASSPHRASE)


@when(r"the envelope is submitted")
def when_submitted(context: typing.Any):
    submit(context)


@then(r"the envelope hash should be unchanged")
def then_hash_unchanged(context: typing.Any):
    assert context.envelope.hash_hex() == context.original_hash


@then(r"the envelope should carry signatures from (?P<signers>.+)")
def then_carries_signatures(context: typing.Any, signers: str):
    expected = sorted(public_key(context, name) for name in parse_list(signers))
    candidates = [pair.public_key for pair in context.keypairs.values()]
    found = sorted(signature_keys(context.envelope, candidates))
    assert found == expected, "Expected " + str(expected) + " but got " + str(found)
    assert len(context.envelope.signatures) == len(expected)
