# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import typing

from behave import given, when, use_step_matcher
from stellar_sdk import Asset, AuthorizationFlag, Signer

from stellar_bootcamp.operations import (
    allow_trust,
    change_trust,
    payment,
    remove_signer,
    set_options,
)

from common import build_sign_and_submit, parse_asset, public_key

# Use regular expressions
use_step_matcher("re")


@given(
    r'"(?P<name>\w+)" sets thresholds low=(?P<low>\d+) medium=(?P<medium>\d+) '
    r"high=(?P<high>\d+)"
)
def given_thresholds(context: typing.Any, name: str, low: str, medium: str, high: str):
    operation = set_options(
        low_threshold=int(low), med_threshold=int(medium), high_threshold=int(high)
    )
    build_sign_and_submit(context, name, [operation], name)
    assert context.error is None, repr(context.error)


@given(r'"(?P<name>\w+)" adds signer "(?P<signer>\w+)" with weight (?P<weight>\d+)')
def given_signer(context: typing.Any, name: str, signer: str, weight: str):
    operation = set_options(
        signer=Signer.ed25519_public_key(public_key(context, signer), int(weight))
    )
    build_sign_and_submit(context, name, [operation], name)
    assert context.error is None, repr(context.error)


@given(r'"(?P<name>\w+)" requires authorization for its assets')
def given_authorization_required(context: typing.Any, name: str):
    operation = set_options(
        set_flags=AuthorizationFlag.AUTHORIZATION_REQUIRED
        | AuthorizationFlag.AUTHORIZATION_REVOCABLE
    )
    build_sign_and_submit(context, name, [operation], name)
    assert context.error is None, repr(context.error)


@given(r'"(?P<name>\w+)" sets its master weight to (?P<weight>\d+)')
def given_master_weight(context: typing.Any, name: str, weight: str):
    build_sign_and_submit(context, name, [set_options(master_weight=int(weight))], name)
    assert context.error is None, repr(context.error)


@when(
    r'"(?P<source>\w+)" pays (?P<amount>[0-9.]+) (?P<code>\w+)'
    r'(?: issued by "(?P<issuer>\w+)")? to "(?P<destination>\w+)" signed by (?P<signers>.+)'
)
def when_pays(
    context: typing.Any,
    source: str,
    amount: str,
    code: str,
    issuer: typing.Optional[str],
    destination: str,
    signers: str,
):
    operation = payment(
        public_key(context, destination), parse_asset(context, code, issuer), amount
    )
    build_sign_and_submit(context, source, [operation], signers)


@when(r'"(?P<source>\w+)" removes signer "(?P<signer>\w+)" signed by (?P<signers>.+)')
def when_removes_signer(context: typing.Any, source: str, signer: str, signers: str):
    operation = remove_signer(public_key(context, signer))
    build_sign_and_submit(context, source, [operation], signers)


@when(
    r'"(?P<source>\w+)" trusts (?P<code>\w+) issued by "(?P<issuer>\w+)" '
    r"signed by (?P<signers>.+)"
)
def when_trusts(context: typing.Any, source: str, code: str, issuer: str, signers: str):
    operation = change_trust(Asset(code, public_key(context, issuer)))
    build_sign_and_submit(context, source, [operation], signers)


@when(
    r'"(?P<issuer>\w+)" authorizes "(?P<trustor>\w+)" to hold (?P<code>\w+) '
    r"signed by (?P<signers>.+)"
)
def when_authorizes(
    context: typing.Any, issuer: str, trustor: str, code: str, signers: str
):
    operation = allow_trust(public_key(context, trustor), code, True)
    build_sign_and_submit(context, issuer, [operation], signers)
