"""
Stellar bootcamp examples - short, linear walkthroughs of the classic and
Soroban use cases.

Every script runs against testnet by default. Set ``STELLAR_OFFLINE=1`` to run
the classic scripts against the in-memory ``LedgerSimulator`` instead; the
Soroban scripts need a real RPC server.

Account:
- **generate_keypair**: a random keypair, not yet known to any network
- **initialize_with_friendbot**: create and fund an account through Friendbot
- **create_account**: an admin account creates a new one with 2 XLM
- **create_account_with_trustline**: the same, plus a trustline in one envelope
- **sponsor_account**: sponsored creation with a 0 XLM starting balance

Asset:
- **create_asset_and_mint**: issuer / distribution pattern, 1M tokens minted
- **configure_flags**: AUTH_REQUIRED, AUTH_REVOCABLE and AUTH_CLAWBACK_ENABLED

Authorization:
- **multisig**: signer weights against low / medium / high thresholds

Soroban:
- **counter**: read, increment and decrement the counter contract
- **events**: emit default and custom events

Running::

    python -m examples.multisig
    STELLAR_OFFLINE=1 python -m examples.configure_flags
    python -m unittest examples.integration_test
"""
