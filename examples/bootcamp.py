# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Wiring shared by the classic examples: load, assemble, sign, submit.

``Bootcamp.connect()`` talks to Horizon and Friendbot, or to a fresh
``LedgerSimulator`` when ``STELLAR_OFFLINE`` is set. The scripts receive a
``Bootcamp`` explicitly and never reach for a global client.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence, Union

from stellar_sdk import Keypair
from stellar_sdk.operation import Operation

from stellar_bootcamp.assembler import EnvelopeAssembler, TransactionConfig
from stellar_bootcamp.async_client import FriendbotClient, HorizonClient
from stellar_bootcamp.authorizer import KeypairSigner, MultiSignerAuthorizer
from stellar_bootcamp.explorer import print_hash_link
from stellar_bootcamp.gateway import SubmissionGateway, SubmissionResult
from stellar_bootcamp.ledger import LedgerSimulator

from .common import EXPLORER_URL, FRIENDBOT_URL, HORIZON_URL, NETWORK_PASSPHRASE, OFFLINE


class Bootcamp:
    ledger: Any
    friendbot: Any
    assembler: EnvelopeAssembler
    authorizer: MultiSignerAuthorizer
    gateway: SubmissionGateway

    def __init__(
        self,
        ledger: Any,
        friendbot: Any,
        network_passphrase: str = NETWORK_PASSPHRASE,
        explorer_url: Optional[str] = EXPLORER_URL,
    ):
        """
        :param ledger: ``HorizonClient`` or ``LedgerSimulator``.
        :param friendbot: Anything with ``fund_account(public_key)``.
        :param explorer_url: Where to link submitted transactions; None prints
            the ledger number instead.
        """
        self.ledger = ledger
        self.friendbot = friendbot
        self.explorer_url = explorer_url
        self.assembler = EnvelopeAssembler(
            ledger, network_passphrase, TransactionConfig(base_fee=1000, timeout=30)
        )
        self.authorizer = MultiSignerAuthorizer()
        self.gateway = SubmissionGateway(ledger)

    @staticmethod
    def connect() -> Bootcamp:
        if OFFLINE:
            return Bootcamp.offline()
        return Bootcamp(HorizonClient(HORIZON_URL), FriendbotClient(FRIENDBOT_URL))

    @staticmethod
    def offline(simulator: Optional[LedgerSimulator] = None) -> Bootcamp:
        simulator = simulator or LedgerSimulator(NETWORK_PASSPHRASE)
        return Bootcamp(simulator, simulator, explorer_url=None)

    async def close(self):
        for client in (self.ledger, self.friendbot):
            if isinstance(client, (HorizonClient, FriendbotClient)):
                await client.close()

    async def fund(self, public_key: str):
        print(f"\nInitializing account {public_key} with friendbot...")
        await self.friendbot.fund_account(public_key)
        print("Account initialized!")

    async def submit(
        self,
        source: Union[Keypair, str],
        operations: Sequence[Operation],
        signers: Iterable[Keypair],
    ) -> SubmissionResult:
        """Load ``source``, build an envelope from ``operations``, sign it with every
        keypair in ``signers`` and submit it once."""
        source_id = source if isinstance(source, str) else source.public_key
        state = await self.ledger.load_account(source_id)
        envelope = await self.assembler.build(state, operations)
        self.authorizer.sign(envelope, [KeypairSigner(signer) for signer in signers])
        result = await self.gateway.submit(envelope)
        self.show(result)
        return result

    def show(self, result: SubmissionResult):
        if self.explorer_url is None:
            print(f"Included in ledger {result.ledger}: {result.hash}\n")
        else:
            print_hash_link(result.hash, self.explorer_url)
