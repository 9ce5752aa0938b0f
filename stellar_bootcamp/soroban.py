# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Soroban RPC access and the contract-invocation workflow.

``SorobanRpcClient`` speaks JSON-RPC 2.0 to a Soroban RPC server. ``ContractClient``
builds on it the same assemble / simulate / sign / send sequence the generated
contract bindings use:

1. Load the invoker's account (sequence number) through ``getLedgerEntries``.
2. Build an envelope with a single invoke-host-function operation.
3. Simulate it. The simulation returns the call's result, the resource
   footprint, the minimum resource fee and any authorization entries.
4. For a state-changing call, apply the simulation to the envelope, sign it with
   the injected ``TransactionSigner``, send it and poll until it leaves
   ``NOT_FOUND``.

A read-only call (empty read-write footprint, no authorization entries) is
answered by the simulation alone; sending it raises ``NoSignatureNeeded`` unless
``force=True``.

Examples:
    Increment the testnet counter::

        rpc = SorobanRpcClient("https://soroban-testnet.stellar.org")
        counter = CounterClient(contract_id, rpc, admin.public_key, KeypairSigner(admin))
        invocation = await counter.add(1)
        sent = await invocation.sign_and_send()
        print(sent.result)
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
import unittest
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence
from unittest.mock import AsyncMock

import httpx
from stellar_sdk import (
    Account,
    Keypair,
    Network,
    SorobanDataBuilder,
    TransactionBuilder,
    TransactionEnvelope,
    scval,
)
from stellar_sdk import xdr as stellar_xdr

from .assembler import TransactionConfig
from .async_client import ClientConfig, create_http_client
from .authorizer import KeypairSigner, TransactionSigner
from .exceptions import (
    AccountNotFound,
    ApiError,
    LedgerRejection,
    NetworkError,
    NoSignatureNeeded,
    RpcError,
    TransactionTimeout,
)


class SorobanRpcClient:
    """JSON-RPC 2.0 client for a Soroban RPC server."""

    rpc_url: str
    client: httpx.AsyncClient
    client_config: ClientConfig
    poll_interval: float

    def __init__(
        self,
        rpc_url: str,
        client_config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        poll_interval: float = 1.0,
    ):
        self.rpc_url = rpc_url
        self.client_config = client_config if client_config is not None else ClientConfig()
        self.client = create_http_client(self.client_config, transport)
        self.poll_interval = poll_interval
        self._request_id = 0

    async def close(self):
        await self.client.aclose()

    async def get_health(self) -> Dict[str, Any]:
        return await self._request("getHealth")

    async def get_latest_ledger(self) -> Dict[str, Any]:
        return await self._request("getLatestLedger")

    async def get_network(self) -> Dict[str, Any]:
        return await self._request("getNetwork")

    async def get_account(self, public_key: str) -> Account:
        """Current sequence number of ``public_key``, read from its ledger entry."""
        key = stellar_xdr.LedgerKey(
            type=stellar_xdr.LedgerEntryType.ACCOUNT,
            account=stellar_xdr.LedgerKeyAccount(
                account_id=Keypair.from_public_key(public_key).xdr_account_id()
            ),
        )
        response = await self._request("getLedgerEntries", {"keys": [key.to_xdr()]})
        entries = response.get("entries") or []
        if not entries:
            raise AccountNotFound(f"{public_key} does not exist", public_key)
        data = stellar_xdr.LedgerEntryData.from_xdr(entries[0]["xdr"])
        return Account(public_key, data.account.seq_num.sequence_number.int64)

    async def simulate_transaction(self, envelope_xdr: str) -> Dict[str, Any]:
        return await self._request("simulateTransaction", {"transaction": envelope_xdr})

    async def send_transaction(self, envelope_xdr: str) -> Dict[str, Any]:
        return await self._request("sendTransaction", {"transaction": envelope_xdr})

    async def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        return await self._request("getTransaction", {"hash": tx_hash})

    async def get_events(
        self, start_ledger: int, contract_ids: Sequence[str], limit: int = 100
    ) -> List[Dict[str, Any]]:
        response = await self._request(
            "getEvents",
            {
                "startLedger": start_ledger,
                "filters": [{"type": "contract", "contractIds": list(contract_ids)}],
                "pagination": {"limit": limit},
            },
        )
        return response.get("events", [])

    async def poll_transaction(self, tx_hash: str) -> Dict[str, Any]:
        """
        Waits up to the duration specified in client_config for a transaction to leave the
        NOT_FOUND state.

        :raises TransactionTimeout: The transaction never showed up.
        :raises LedgerRejection: The transaction was included but failed.
        """
        deadline = time.monotonic() + self.client_config.transaction_wait_in_seconds
        response = await self.get_transaction(tx_hash)
        while response["status"] == "NOT_FOUND":
            if time.monotonic() >= deadline:
                raise TransactionTimeout(f"transaction {tx_hash} timed out")
            logging.debug(f"transaction {tx_hash} not found yet, polling")
            await asyncio.sleep(self.poll_interval)
            response = await self.get_transaction(tx_hash)
        if response["status"] == "FAILED":
            raise LedgerRejection(
                f"transaction {tx_hash} failed",
                {"transaction": "tx_failed", "result_xdr": response.get("resultXdr")},
            )
        return response

    async def _request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self._request_id += 1
        payload: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
        }
        if params is not None:
            payload["params"] = params
        try:
            response = await self.client.post(self.rpc_url, json=payload)
        except httpx.TransportError as e:
            raise NetworkError(f"unable to reach {self.rpc_url}: {e}", e) from e
        if response.status_code >= 400:
            raise ApiError(response.text, response.status_code)
        body = response.json()
        if "error" in body:
            error = body["error"]
            raise RpcError(error.get("message", ""), error.get("code", 0), error.get("data"))
        return body["result"]


@dataclass(frozen=True)
class SentTransaction:
    hash: str
    result: Any
    status: str
    ledger: Optional[int] = None


class AssembledInvocation:
    """An invoke-host-function envelope together with its simulation."""

    client: ContractClient
    method: str
    envelope: TransactionEnvelope
    simulation: Optional[Dict[str, Any]]

    def __init__(self, client: ContractClient, method: str, envelope: TransactionEnvelope):
        self.client = client
        self.method = method
        self.envelope = envelope
        self.simulation = None
        self._prepared = False

    async def simulate(self) -> AssembledInvocation:
        simulation = await self.client.rpc.simulate_transaction(self.envelope.to_xdr())
        if simulation.get("error"):
            raise LedgerRejection(f"simulation of {self.method} failed: {simulation['error']}")
        self.simulation = simulation
        return self

    @property
    def result(self) -> Any:
        """Return value of the simulated call, decoded to a Python value."""
        if self.simulation is None:
            return None
        results = self.simulation.get("results") or []
        if not results or not results[0].get("xdr"):
            return None
        return scval.to_native(stellar_xdr.SCVal.from_xdr(results[0]["xdr"]))

    @property
    def is_read_call(self) -> bool:
        if self.simulation is None:
            return False
        data = SorobanDataBuilder.from_xdr(self.simulation["transactionData"]).build()
        return not data.resources.footprint.read_write and not self._auth_entries()

    def _auth_entries(self) -> List[str]:
        results = (self.simulation or {}).get("results") or []
        return list(results[0].get("auth") or []) if results else []

    def prepare(self) -> TransactionEnvelope:
        """Apply footprint, resource fee and authorization entries from the simulation."""
        if self._prepared:
            return self.envelope
        transaction = self.envelope.transaction
        transaction.soroban_data = SorobanDataBuilder.from_xdr(
            self.simulation["transactionData"]
        ).build()
        transaction.fee += int(self.simulation.get("minResourceFee", 0))
        operation = transaction.operations[0]
        if not operation.auth:
            operation.auth = [
                stellar_xdr.SorobanAuthorizationEntry.from_xdr(entry)
                for entry in self._auth_entries()
            ]
        self._prepared = True
        return self.envelope

    async def sign_and_send(self, force: bool = False) -> SentTransaction:
        """
        Sign the prepared envelope with the client's signer, send it and wait for the result.

        :param force: Send a read-only call anyway, e.g. to have its events recorded.
        :raises NoSignatureNeeded: The call is read-only and ``force`` is not set.
        """
        if self.simulation is None:
            await self.simulate()
        if self.is_read_call and not force:
            raise NoSignatureNeeded(
                f"{self.method} is a read call; use .result or pass force=True"
            )
        envelope = self.prepare()
        self.client.signer.sign(envelope)

        rpc = self.client.rpc
        sent = await rpc.send_transaction(envelope.to_xdr())
        status = sent.get("status")
        if status not in ("PENDING", "DUPLICATE"):
            raise LedgerRejection(
                f"sendTransaction returned {status}",
                {"transaction": status, "result_xdr": sent.get("errorResultXdr")},
            )
        logging.info(f"sent {self.method} invocation {sent['hash']}")
        response = await rpc.poll_transaction(sent["hash"])

        result = self.result
        if response.get("returnValue"):
            result = scval.to_native(stellar_xdr.SCVal.from_xdr(response["returnValue"]))
        return SentTransaction(
            hash=sent["hash"],
            result=result,
            status=response["status"],
            ledger=response.get("ledger"),
        )


class ContractClient:
    """Invokes functions of one deployed contract on behalf of one account."""

    contract_id: str
    rpc: SorobanRpcClient
    source_public_key: str
    signer: TransactionSigner
    network_passphrase: str
    config: TransactionConfig

    def __init__(
        self,
        contract_id: str,
        rpc: SorobanRpcClient,
        source_public_key: str,
        signer: TransactionSigner,
        network_passphrase: str = Network.TESTNET_NETWORK_PASSPHRASE,
        config: Optional[TransactionConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.contract_id = contract_id
        self.rpc = rpc
        self.source_public_key = source_public_key
        self.signer = signer
        self.network_passphrase = network_passphrase
        self.config = config if config is not None else TransactionConfig()
        self.clock = clock

    async def invoke(
        self,
        method: str,
        args: Sequence[stellar_xdr.SCVal] = (),
        fee: Optional[int] = None,
        timeout: Optional[int] = None,
        simulate: bool = True,
    ) -> AssembledInvocation:
        source = await self.rpc.get_account(self.source_public_key)
        builder = TransactionBuilder(
            source_account=source,
            network_passphrase=self.network_passphrase,
            base_fee=fee if fee is not None else self.config.base_fee,
        )
        builder.append_invoke_contract_function_op(self.contract_id, method, list(args))
        timeout = timeout if timeout is not None else self.config.timeout
        builder.add_time_bounds(0, int(self.clock()) + timeout)
        invocation = AssembledInvocation(self, method, builder.build())
        if simulate:
            await invocation.simulate()
        return invocation


class Test(unittest.IsolatedAsyncioTestCase):
    CONTRACT_ID = "CBHHNW5EBF5BNJRD6625UZQGAF46YFVFKHEVSIA6RHA2YGJK54AV5H3F"

    def setUp(self):
        self.keypair = Keypair.random()
        self.calls: List[str] = []
        self.sent: List[str] = []
        self.polls = 0
        self.read_write = True
        self.rpc_error = False

    def account_key(self) -> stellar_xdr.LedgerKey:
        return stellar_xdr.LedgerKey(
            type=stellar_xdr.LedgerEntryType.ACCOUNT,
            account=stellar_xdr.LedgerKeyAccount(
                account_id=self.keypair.xdr_account_id()
            ),
        )

    def result(self, request: httpx.Request) -> Any:
        body = json.loads(request.content)
        method = body["method"]
        self.calls.append(method)
        if method == "simulateTransaction":
            builder = SorobanDataBuilder().set_resource_fee(500)
            if self.read_write:
                builder.set_read_write([self.account_key()])
            return {
                "transactionData": builder.build().to_xdr(),
                "minResourceFee": "500",
                "results": [{"auth": [], "xdr": scval.to_uint64(3).to_xdr()}],
                "latestLedger": 10,
            }
        if method == "sendTransaction":
            self.sent.append(body["params"]["transaction"])
            return {"status": "PENDING", "hash": "ef" * 32}
        if method == "getTransaction":
            self.polls += 1
            if self.polls == 1:
                return {"status": "NOT_FOUND"}
            return {
                "status": "SUCCESS",
                "ledger": 11,
                "returnValue": scval.to_uint64(4).to_xdr(),
            }
        return {"status": "healthy"}

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if self.rpc_error:
            return httpx.Response(
                200,
                json={
                    "jsonrpc": "2.0",
                    "id": body["id"],
                    "error": {"code": -32602, "message": "invalid parameters"},
                },
            )
        return httpx.Response(
            200, json={"jsonrpc": "2.0", "id": body["id"], "result": self.result(request)}
        )

    def client(self) -> ContractClient:
        rpc = SorobanRpcClient(
            "https://rpc.test", transport=httpx.MockTransport(self.handler), poll_interval=0
        )
        rpc.get_account = AsyncMock(return_value=Account(self.keypair.public_key, 77))
        return ContractClient(
            self.CONTRACT_ID, rpc, self.keypair.public_key, KeypairSigner(self.keypair)
        )

    async def test_invoke_and_send(self):
        client = self.client()
        invocation = await client.invoke("add", [scval.to_uint64(1)])
        self.assertEqual(invocation.result, 3)
        self.assertFalse(invocation.is_read_call)
        self.assertEqual(invocation.envelope.transaction.sequence, 78)

        sent = await invocation.sign_and_send()
        self.assertEqual(sent.result, 4)
        self.assertEqual(sent.status, "SUCCESS")
        self.assertEqual(self.polls, 2)

        envelope = TransactionEnvelope.from_xdr(
            self.sent[0], Network.TESTNET_NETWORK_PASSPHRASE
        )
        self.assertEqual(envelope.transaction.fee, client.config.base_fee + 500)
        self.assertIsNotNone(envelope.transaction.soroban_data)
        self.assertEqual(len(envelope.signatures), 1)
        await client.rpc.close()

    async def test_read_call(self):
        self.read_write = False
        invocation = await self.client().invoke("count")
        self.assertTrue(invocation.is_read_call)
        self.assertEqual(invocation.result, 3)
        with self.assertRaises(NoSignatureNeeded):
            await invocation.sign_and_send()
        self.assertEqual(self.sent, [])
        await invocation.sign_and_send(force=True)
        self.assertEqual(len(self.sent), 1)

    async def test_rpc_error(self):
        self.rpc_error = True
        with self.assertRaises(RpcError) as context:
            await self.client().rpc.get_health()
        self.assertEqual(context.exception.code, -32602)

    async def test_poll_timeout(self):
        rpc = SorobanRpcClient(
            "https://rpc.test",
            ClientConfig(transaction_wait_in_seconds=0),
            transport=httpx.MockTransport(self.handler),
            poll_interval=0,
        )
        with self.assertRaises(TransactionTimeout):
            await rpc.poll_transaction("ef" * 32)


if __name__ == "__main__":
    unittest.main()
