# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Multi-Signer Authorizer: attach signatures to an envelope.

Signing is an explicit capability. Anything with a ``public_key`` and a
``sign(envelope)`` method is a ``TransactionSigner``; the bootcamp uses
``KeypairSigner`` for local keys and passes the same object to Soroban contract
clients instead of a free-floating signing callback.

The authorizer attaches one decorated signature per distinct signer and never
looks at weights or thresholds. Whether the collected weight is enough is
decided by the ledger at submission time, against the account configuration
that is current *then*. A correctly signed envelope can therefore still be
rejected if someone changed the thresholds in the meantime.

Signature order is irrelevant: applying the same signers in any order yields
envelopes that verify identically.
"""

from __future__ import annotations

import unittest
from dataclasses import dataclass
from typing import Iterable, List, Optional

from stellar_sdk import Keypair, Network, TransactionBuilder, TransactionEnvelope
from stellar_sdk.exceptions import BadSignatureError
from typing_extensions import Protocol


class TransactionSigner(Protocol):
    @property
    def public_key(self) -> str:
        ...

    def sign(self, envelope: TransactionEnvelope) -> TransactionEnvelope:
        ...


@dataclass(frozen=True)
class SignedXdr:
    signed_tx_xdr: str
    signer_address: str


class KeypairSigner:
    """Signs with a local ``stellar_sdk.Keypair`` that holds a secret seed."""

    keypair: Keypair

    def __init__(self, keypair: Keypair):
        if not keypair.can_sign():
            raise ValueError("keypair has no secret seed and cannot sign")
        self.keypair = keypair

    def __repr__(self) -> str:
        return f"KeypairSigner({self.public_key})"

    @property
    def public_key(self) -> str:
        return self.keypair.public_key

    def sign(self, envelope: TransactionEnvelope) -> TransactionEnvelope:
        if not has_signed(envelope, self.public_key):
            envelope.sign(self.keypair)
        return envelope

    def sign_xdr(
        self,
        xdr: str,
        network_passphrase: str = Network.TESTNET_NETWORK_PASSPHRASE,
    ) -> SignedXdr:
        """Sign a base64 envelope handed over by a contract client."""
        envelope = TransactionBuilder.from_xdr(xdr, network_passphrase)
        envelope.sign(self.keypair)
        return SignedXdr(envelope.to_xdr(), self.public_key)


def has_signed(envelope: TransactionEnvelope, public_key: str) -> bool:
    return bool(signature_keys(envelope, [public_key]))


def signature_keys(
    envelope: TransactionEnvelope, candidates: Iterable[str]
) -> List[str]:
    """Keys among ``candidates`` that have a valid signature on ``envelope``."""
    tx_hash = envelope.hash()
    found = []
    for candidate in dict.fromkeys(candidates):
        keypair = Keypair.from_public_key(candidate)
        hint = keypair.signature_hint()
        for decorated in envelope.signatures:
            if decorated.signature_hint != hint:
                continue
            try:
                keypair.verify(tx_hash, decorated.signature)
            except BadSignatureError:
                continue
            found.append(candidate)
            break
    return found


class MultiSignerAuthorizer:
    def sign(
        self,
        envelope: TransactionEnvelope,
        signers: Iterable[TransactionSigner],
    ) -> TransactionEnvelope:
        """Attach one signature per distinct signer. Weight is not checked here."""
        seen = set()
        for signer in signers:
            if signer.public_key in seen:
                continue
            seen.add(signer.public_key)
            signer.sign(envelope)
        return envelope


class Test(unittest.TestCase):
    def build(self, source: Optional[Keypair] = None) -> TransactionEnvelope:
        from .account import AccountState
        from .assembler import EnvelopeAssembler
        from .operations import set_options

        source = source or self.master
        return EnvelopeAssembler(clock=lambda: 0).build_unchecked(
            AccountState.new(source.public_key, sequence=7),
            [set_options(home_domain="example.com")],
        )

    def setUp(self):
        self.master = Keypair.random()
        self.a = Keypair.random()
        self.b = Keypair.random()

    def test_signing_is_commutative(self):
        first = MultiSignerAuthorizer().sign(
            self.build(), [KeypairSigner(self.a), KeypairSigner(self.b)]
        )
        second = MultiSignerAuthorizer().sign(
            self.build(), [KeypairSigner(self.b), KeypairSigner(self.a)]
        )
        keys = [self.a.public_key, self.b.public_key, self.master.public_key]
        self.assertEqual(sorted(signature_keys(first, keys)), sorted(keys[:2]))
        self.assertEqual(sorted(signature_keys(second, keys)), sorted(keys[:2]))
        self.assertEqual(
            {sig.signature for sig in first.signatures},
            {sig.signature for sig in second.signatures},
        )

    def test_duplicate_signer_is_noop(self):
        signer = KeypairSigner(self.a)
        envelope = MultiSignerAuthorizer().sign(self.build(), [signer, signer])
        signer.sign(envelope)
        self.assertEqual(len(envelope.signatures), 1)

    def test_sign_xdr(self):
        envelope = self.build()
        signed = KeypairSigner(self.master).sign_xdr(envelope.to_xdr())
        self.assertEqual(signed.signer_address, self.master.public_key)
        restored = TransactionBuilder.from_xdr(
            signed.signed_tx_xdr, Network.TESTNET_NETWORK_PASSPHRASE
        )
        self.assertTrue(has_signed(restored, self.master.public_key))

    def test_public_only_keypair(self):
        with self.assertRaises(ValueError):
            KeypairSigner(Keypair.from_public_key(self.a.public_key))


if __name__ == "__main__":
    unittest.main()
