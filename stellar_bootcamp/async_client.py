# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Asynchronous clients for the Stellar network services the bootcamp talks to.

- **HorizonClient**: account state queries and transaction submission against a
  Horizon server. It is the real-network implementation of the
  ``LedgerService`` interface the assembler and submission gateway depend on.
- **FriendbotClient**: test-network account funding. Friendbot creates the
  account (if needed) and funds it with 10,000 XLM.

Both clients use ``httpx`` with connection pooling and identify themselves with
the ``X-Client-Name`` / ``X-Client-Version`` headers. Nothing in this module
keeps global state; a client is created, passed explicitly to whatever needs it
and closed when the caller is done.

Examples:
    Load an account and inspect its signers::

        from stellar_bootcamp.async_client import HorizonClient

        async with HorizonClient("https://horizon-testnet.stellar.org") as horizon:
            state = await horizon.load_account(public_key)
            print(state.sequence, state.thresholds)

    Fund a new keypair on testnet::

        friendbot = FriendbotClient("https://friendbot.stellar.org")
        await friendbot.fund_account(Keypair.random().public_key)

Error Handling:
    - ApiError: any status >= 400 not covered below
    - AccountNotFound: Horizon returned 404 for the account
    - TransactionFailed: Horizon rejected a submission; carries ``result_codes``
    - FundingError: Friendbot refused to fund the account
"""

from __future__ import annotations

import unittest
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx
from stellar_sdk import Asset, Keypair, Network
from typing_extensions import Protocol

from .account import AccountState
from .exceptions import AccountNotFound, ApiError, FundingError, TransactionFailed
from .metadata import Metadata


@dataclass
class ClientConfig:
    """Configuration shared by the bootcamp network clients.

    Transaction Parameters:
        base_fee: Fee per operation in stroops (default: 1000)
        timeout: Envelope validity window in seconds (default: 30)
        network_passphrase: Network the envelopes are signed for (default: testnet)

    Network Parameters:
        http2: Enable HTTP/2 (default: True)
        request_timeout: Seconds before an HTTP request is abandoned (default: 60)
        transaction_wait_in_seconds: How long to poll for a Soroban
            transaction before giving up (default: 30)
    """

    base_fee: int = 1000
    timeout: int = 30
    network_passphrase: str = Network.TESTNET_NETWORK_PASSPHRASE
    http2: bool = True
    request_timeout: float = 60.0
    transaction_wait_in_seconds: int = 30


def create_http_client(
    client_config: ClientConfig, transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    # Default timeouts but do not set a pool timeout, since the idea is that jobs will wait as
    # long as progress is being made.
    timeout = httpx.Timeout(client_config.request_timeout, pool=None)
    return httpx.AsyncClient(
        http2=client_config.http2,
        limits=httpx.Limits(),
        timeout=timeout,
        headers=Metadata.headers(),
        transport=transport,
    )


class LedgerService(Protocol):
    """What the assembler and the submission gateway need from a ledger."""

    async def load_account(self, account_id: str) -> AccountState:
        ...

    async def account_sequence_number(self, account_id: str) -> int:
        ...

    async def submit_transaction(self, envelope_xdr: str) -> Dict[str, Any]:
        ...


class HorizonClient:
    """Async client for the Horizon REST API."""

    base_url: str
    client: httpx.AsyncClient
    client_config: ClientConfig

    def __init__(
        self,
        base_url: str,
        client_config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client_config = client_config if client_config is not None else ClientConfig()
        self.client = create_http_client(self.client_config, transport)

    async def __aenter__(self) -> HorizonClient:
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self.client.aclose()

    #
    # Account accessors
    #

    async def account(self, account_id: str) -> Dict[str, Any]:
        """
        Fetch the raw account record: sequence, signers, thresholds, balances and flags.

        :param account_id: ``G...`` public key of the account.
        :raises AccountNotFound: The account has not been created on this network.
        """
        response = await self._get(f"accounts/{account_id}")
        if response.status_code == 404:
            raise AccountNotFound(f"{account_id} does not exist", account_id)
        if response.status_code >= 400:
            raise ApiError(f"{response.text} - {account_id}", response.status_code)
        return response.json()

    async def load_account(self, account_id: str) -> AccountState:
        return AccountState.from_horizon(await self.account(account_id))

    async def account_sequence_number(self, account_id: str) -> int:
        account = await self.account(account_id)
        return int(account["sequence"])

    async def account_balance(
        self, account_id: str, asset: Optional[Asset] = None
    ) -> Decimal:
        """Balance of ``asset`` (lumens by default); 0 when there is no trustline."""
        state = await self.load_account(account_id)
        return state.balance(asset)

    #
    # Transactions
    #

    async def submit_transaction(self, envelope_xdr: str) -> Dict[str, Any]:
        """
        Submit a signed base64 envelope and wait for Horizon to report the outcome.

        :return: The transaction record, including ``hash`` and ``ledger``.
        :raises TransactionFailed: The envelope was rejected; ``result_codes``
            holds the transaction and per-operation codes.
        """
        response = await self.client.post(
            f"{self.base_url}/transactions", data={"tx": envelope_xdr}
        )
        if response.status_code >= 400:
            raise self._transaction_error(response)
        return response.json()

    async def transaction(self, tx_hash: str) -> Dict[str, Any]:
        response = await self._get(f"transactions/{tx_hash}")
        if response.status_code >= 400:
            raise ApiError(f"{response.text} - {tx_hash}", response.status_code)
        return response.json()

    @staticmethod
    def _transaction_error(response: httpx.Response) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            return ApiError(response.text, response.status_code)
        extras = body.get("extras") or {}
        result_codes = extras.get("result_codes")
        if result_codes is None:
            return ApiError(body.get("detail", response.text), response.status_code)
        return TransactionFailed(
            body.get("title", "Transaction Failed"),
            response.status_code,
            result_codes,
            extras.get("result_xdr"),
        )

    async def _get(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        # format params:
        params = {} if params is None else params
        params = {key: val for key, val in params.items() if val is not None}
        return await self.client.get(url=f"{self.base_url}/{endpoint}", params=params)


class FriendbotClient:
    """Friendbot creates and funds test-network accounts. This is a thin wrapper around that."""

    base_url: str
    client: httpx.AsyncClient

    def __init__(
        self,
        base_url: str,
        client_config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = create_http_client(client_config or ClientConfig(), transport)

    async def close(self):
        await self.client.aclose()

    async def fund_account(self, account_id: str) -> Dict[str, Any]:
        """Create ``account_id`` with 10,000 XLM; returns the funding transaction."""
        response = await self.client.get(self.base_url, params={"addr": account_id})
        if response.status_code >= 400:
            raise FundingError(
                f"Friendbot responded with an error! status: {response.status_code} "
                f"Message: {response.text}",
                response.status_code,
            )
        return response.json()


class Test(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.account_id = Keypair.random().public_key
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == f"/accounts/{self.account_id}":
            return httpx.Response(
                200,
                json={
                    "account_id": self.account_id,
                    "sequence": "123",
                    "thresholds": {
                        "low_threshold": 0,
                        "med_threshold": 0,
                        "high_threshold": 0,
                    },
                    "balances": [{"balance": "10000.0000000", "asset_type": "native"}],
                    "signers": [
                        {"weight": 1, "key": self.account_id, "type": "ed25519_public_key"}
                    ],
                    "flags": {},
                },
            )
        if path.startswith("/accounts/"):
            return httpx.Response(404, json={"status": 404, "title": "Resource Missing"})
        if path == "/transactions" and request.method == "POST":
            if b"tx=bad" in request.content:
                return httpx.Response(
                    400,
                    json={
                        "title": "Transaction Failed",
                        "status": 400,
                        "extras": {
                            "result_codes": {"transaction": "tx_bad_auth"},
                            "result_xdr": "AAAAAAAAA+j////6AAAAAA==",
                        },
                    },
                )
            return httpx.Response(
                200, json={"hash": "ab" * 32, "ledger": 7, "successful": True}
            )
        if path == "/friendbot":
            if request.url.params["addr"] == self.account_id:
                return httpx.Response(400, text="createAccountAlreadyExist")
            return httpx.Response(200, json={"hash": "cd" * 32})
        return httpx.Response(500)

    def horizon(self) -> HorizonClient:
        return HorizonClient("https://horizon.test", transport=httpx.MockTransport(self.handler))

    async def test_load_account(self):
        horizon = self.horizon()
        state = await horizon.load_account(self.account_id)
        self.assertEqual(state.sequence, 123)
        self.assertEqual(state.master_weight(), 1)
        self.assertEqual(await horizon.account_balance(self.account_id), Decimal("10000"))
        self.assertEqual(
            self.requests[0].headers[Metadata.CLIENT_NAME_HEADER], Metadata.CLIENT_NAME
        )
        await horizon.close()

    async def test_account_not_found(self):
        async with self.horizon() as horizon:
            with self.assertRaises(AccountNotFound) as context:
                await horizon.load_account(Keypair.random().public_key)
            self.assertEqual(context.exception.status_code, 404)

    async def test_submit(self):
        async with self.horizon() as horizon:
            result = await horizon.submit_transaction("good")
            self.assertEqual(result["ledger"], 7)
            with self.assertRaises(TransactionFailed) as context:
                await horizon.submit_transaction("bad")
            self.assertEqual(context.exception.transaction_code, "tx_bad_auth")

    async def test_friendbot(self):
        friendbot = FriendbotClient(
            "https://horizon.test/friendbot", transport=httpx.MockTransport(self.handler)
        )
        result = await friendbot.fund_account(Keypair.random().public_key)
        self.assertIn("hash", result)
        with self.assertRaises(FundingError) as context:
            await friendbot.fund_account(self.account_id)
        self.assertEqual(context.exception.status_code, 400)
        await friendbot.close()


if __name__ == "__main__":
    unittest.main()
