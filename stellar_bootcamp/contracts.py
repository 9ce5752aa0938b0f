# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Typed clients for the two bootcamp Soroban contracts.

Counter:
    Keeps a single u64 in instance storage. ``count()`` reads it; ``add`` and
    ``subtract`` saturate at the u64 bounds and return the new value.

Events:
    ``default()`` emits a ``DefEvent`` with a fixed message and ``custom(message)``
    one with the given message. Both calls only emit events, so their simulation
    has no read-write footprint and they must be sent with ``force=True``.

Every method returns an ``AssembledInvocation``; read its ``result`` for the
simulated value or call ``sign_and_send()`` to commit the call.
"""

from __future__ import annotations

import unittest
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

from stellar_sdk import Network, scval
from stellar_sdk import xdr as stellar_xdr

from .soroban import AssembledInvocation, ContractClient

EVENTS_FEE = 10_000_000


@dataclass(frozen=True)
class NetworkConfig:
    network_passphrase: str
    rpc_url: str
    events_contract_id: str
    counter_contract_id: Optional[str] = None


class Networks:
    TESTNET = NetworkConfig(
        network_passphrase=Network.TESTNET_NETWORK_PASSPHRASE,
        rpc_url="https://soroban-testnet.stellar.org",
        events_contract_id="CBHHNW5EBF5BNJRD6625UZQGAF46YFVFKHEVSIA6RHA2YGJK54AV5H3F",
    )


class CounterClient(ContractClient):
    async def count(self) -> AssembledInvocation:
        return await self.invoke("count")

    async def add(self, amount: int) -> AssembledInvocation:
        return await self.invoke("add", [scval.to_uint64(amount)])

    async def subtract(self, amount: int) -> AssembledInvocation:
        return await self.invoke("subtract", [scval.to_uint64(amount)])


@dataclass(frozen=True)
class DefEvent:
    """Payload of every event the events contract emits."""

    contract: str
    ledger_number: int
    message: str

    @staticmethod
    def from_native(value: Dict[str, Any]) -> DefEvent:
        contract = value["contract"]
        return DefEvent(
            contract=getattr(contract, "address", contract),
            ledger_number=int(value["ledger_number"]),
            message=str(value["message"]),
        )


class EventsClient(ContractClient):
    async def default(self, fee: int = EVENTS_FEE, timeout: int = 30) -> AssembledInvocation:
        return await self.invoke("default", fee=fee, timeout=timeout)

    async def custom(
        self, message: str, fee: int = EVENTS_FEE, timeout: int = 30
    ) -> AssembledInvocation:
        return await self.invoke(
            "custom", [scval.to_string(message)], fee=fee, timeout=timeout
        )

    async def events(self, start_ledger: int) -> List[DefEvent]:
        """``DefEvent`` payloads this contract emitted since ``start_ledger``."""
        raw_events = await self.rpc.get_events(start_ledger, [self.contract_id])
        events = []
        for event in raw_events:
            value = scval.to_native(stellar_xdr.SCVal.from_xdr(event["value"]))
            if isinstance(value, dict):
                events.append(DefEvent.from_native(value))
        return events


class Test(unittest.IsolatedAsyncioTestCase):
    def client(self, cls):
        from stellar_sdk import Keypair

        from .authorizer import KeypairSigner

        keypair = Keypair.random()
        rpc = AsyncMock()
        client = cls(
            Networks.TESTNET.events_contract_id, rpc, keypair.public_key, KeypairSigner(keypair)
        )
        client.invoke = AsyncMock(return_value="invocation")
        return client

    async def test_counter_arguments(self):
        client = self.client(CounterClient)
        await client.add(5)
        method, args = client.invoke.call_args.args
        self.assertEqual(method, "add")
        self.assertEqual(scval.from_uint64(args[0]), 5)
        await client.count()
        self.assertEqual(client.invoke.call_args.args, ("count",))

    async def test_events_fee(self):
        client = self.client(EventsClient)
        await client.custom("HELLO")
        args = client.invoke.call_args
        self.assertEqual(args.args[0], "custom")
        self.assertEqual(scval.from_string(args.args[1][0]), b"HELLO")
        self.assertEqual(args.kwargs["fee"], EVENTS_FEE)

    def test_def_event(self):
        event = DefEvent.from_native(
            {"contract": Networks.TESTNET.events_contract_id, "ledger_number": 9, "message": "HI"}
        )
        self.assertEqual(event.ledger_number, 9)
        self.assertEqual(event.message, "HI")


if __name__ == "__main__":
    unittest.main()
