# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Shared configuration for the bootcamp examples.

All values can be overridden with environment variables, which is how the
integration test points the classic scripts at the in-memory simulator.
"""

import os

from stellar_sdk import Network

from stellar_bootcamp.contracts import Networks
from stellar_bootcamp.explorer import EXPLORER_URL as DEFAULT_EXPLORER_URL

# :!:>section_1
# Horizon REST API, used to load accounts and submit classic transactions
HORIZON_URL = os.getenv("STELLAR_HORIZON_URL", "https://horizon-testnet.stellar.org")

# Friendbot funds new testnet accounts with 10,000 XLM
FRIENDBOT_URL = os.getenv("STELLAR_FRIENDBOT_URL", "https://friendbot.stellar.org")

# Soroban RPC, used by the contract examples
SOROBAN_RPC_URL = os.getenv("STELLAR_SOROBAN_RPC_URL", Networks.TESTNET.rpc_url)

NETWORK_PASSPHRASE = os.getenv(
    "STELLAR_NETWORK_PASSPHRASE", Network.TESTNET_NETWORK_PASSPHRASE
)

EXPLORER_URL = os.getenv("STELLAR_EXPLORER_URL", DEFAULT_EXPLORER_URL)
# <:!:section_1

# Deployed contract ids; the counter has no shared testnet deployment
COUNTER_CONTRACT_ID = os.getenv("STELLAR_COUNTER_CONTRACT_ID")
EVENTS_CONTRACT_ID = os.getenv(
    "STELLAR_EVENTS_CONTRACT_ID", Networks.TESTNET.events_contract_id
)

# Run the classic examples against the in-memory ledger instead of testnet
OFFLINE = os.getenv("STELLAR_OFFLINE", "").lower() not in ("", "0", "false", "no")
