# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Stellar Bootcamp - transaction assembly and multi-party authorization on Stellar.

The package turns "what should happen on the ledger" into a signed transaction
envelope the network accepts, in three explicit steps:

1. **Assemble**: an account snapshot (sequence number) plus an ordered set of
   operations, a base fee and a timeout become an unsigned envelope.
2. **Authorize**: any number of signers attach their signatures. Signing never
   looks at weights; whether the collected weight is enough is decided by the
   ledger, at submission time, against the account's current thresholds.
3. **Submit**: the envelope goes to the ledger once; the outcome is a
   ledger number or a typed rejection.

Modules:
- **account**: ``AccountState`` snapshots, signers, thresholds, balances
- **operations**: validated operation factories and the ``OperationSet``
- **thresholds**: the low / medium / high threshold resolution rules
- **assembler**: ``EnvelopeAssembler`` and XDR pass-through
- **authorizer**: ``TransactionSigner``, ``KeypairSigner``, ``MultiSignerAuthorizer``
- **gateway**: ``SubmissionGateway`` and result-code mapping
- **async_client**: ``HorizonClient`` and ``FriendbotClient`` over httpx
- **ledger**: ``LedgerSimulator``, an in-memory ledger for offline runs and tests
- **soroban**: Soroban RPC client and the contract-invocation workflow
- **contracts**: typed clients for the counter and events contracts
- **explorer**: stellar.expert links
- **cli**: ``python -m stellar_bootcamp.cli``

Networks:
- **Testnet**: Horizon at https://horizon-testnet.stellar.org, Friendbot at
  https://friendbot.stellar.org, Soroban RPC at https://soroban-testnet.stellar.org
- **Simulator**: ``LedgerSimulator`` implements the same ``LedgerService``
  interface as ``HorizonClient``; nothing else needs to change

Quick Start:
    Two-party payment from a multisig account::

        import asyncio

        from stellar_sdk import Asset, Keypair

        from stellar_bootcamp.assembler import EnvelopeAssembler
        from stellar_bootcamp.async_client import FriendbotClient, HorizonClient
        from stellar_bootcamp.authorizer import KeypairSigner, MultiSignerAuthorizer
        from stellar_bootcamp.gateway import SubmissionGateway
        from stellar_bootcamp.operations import payment

        async def main():
            async with HorizonClient("https://horizon-testnet.stellar.org") as horizon:
                source = await horizon.load_account(alice.public_key)
                envelope = await EnvelopeAssembler(horizon).build(
                    source, [payment(bob.public_key, Asset.native(), "10")]
                )
                MultiSignerAuthorizer().sign(
                    envelope, [KeypairSigner(signer_a), KeypairSigner(signer_b)]
                )
                result = await SubmissionGateway(horizon).submit(envelope)
                print(result.hash, result.ledger)

        asyncio.run(main())

Error Handling:
    See ``stellar_bootcamp.exceptions``. Nothing retries on its own; after a
    ``SequenceMismatch`` or ``StaleSequenceError`` reload the account, rebuild and
    re-sign.

License:
    Apache License 2.0
"""
