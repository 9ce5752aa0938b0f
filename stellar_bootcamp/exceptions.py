# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Error taxonomy shared by the bootcamp clients, the assembler and the simulator.

Every error surfaces to the caller immediately. Nothing in this package retries
on its own: callers decide whether to reload account state and rebuild.

Hierarchy::

    ApiError                    HTTP/JSON-RPC status >= 400
    ├── AccountNotFound         Horizon 404 for an account id
    ├── FundingError            Friendbot refused to fund
    ├── RpcError                JSON-RPC error object from Soroban RPC
    └── TransactionFailed       Horizon rejected a submission (result codes)

    ValidationError             malformed operation / asset / signer params
    StaleSequenceError          sequence moved between load and build
    SubmissionError             a submission was rejected by the ledger
    ├── InsufficientSignatureWeight   tx_bad_auth
    ├── SequenceMismatch              tx_bad_seq
    ├── TransactionTimeout            tx_too_late / polling gave up
    └── LedgerRejection               any other opaque result code
    NetworkError                transport failure reaching a service
    NoSignatureNeeded           read-only contract call sent without force
"""

from typing import Any, Dict, List, Optional


class ApiError(Exception):
    """The API returned a non-success status code, e.g., >= 400"""

    status_code: int

    def __init__(self, message: str, status_code: int):
        # Call the base class constructor with the parameters it needs
        super().__init__(message)
        self.status_code = status_code


class AccountNotFound(ApiError):
    """The account was not found"""

    account_id: str

    def __init__(self, message: str, account_id: str):
        super().__init__(message, 404)
        self.account_id = account_id


class FundingError(ApiError):
    """Friendbot responded with an error"""


class RpcError(ApiError):
    """A JSON-RPC error object was returned by Soroban RPC"""

    code: int
    data: Any

    def __init__(self, message: str, code: int, data: Any = None):
        super().__init__(message, 200)
        self.code = code
        self.data = data


class TransactionFailed(ApiError):
    """Horizon (or the simulator) rejected a transaction submission."""

    result_codes: Dict[str, Any]
    result_xdr: Optional[str]

    def __init__(
        self,
        message: str,
        status_code: int,
        result_codes: Dict[str, Any],
        result_xdr: Optional[str] = None,
    ):
        super().__init__(message, status_code)
        self.result_codes = result_codes
        self.result_xdr = result_xdr

    @property
    def transaction_code(self) -> str:
        return self.result_codes.get("transaction", "")

    @property
    def operation_codes(self) -> List[str]:
        return list(self.result_codes.get("operations", []))


class ValidationError(ValueError):
    """Malformed operation, asset or signer parameters."""


class StaleSequenceError(Exception):
    """The source account's sequence changed between load and build."""

    account_id: str
    expected: int
    actual: int

    def __init__(self, account_id: str, expected: int, actual: int):
        super().__init__(
            f"sequence for {account_id} moved from {expected} to {actual}, reload the account"
        )
        self.account_id = account_id
        self.expected = expected
        self.actual = actual


class SubmissionError(Exception):
    """Base for ledger-side rejections of a signed envelope."""

    result_codes: Dict[str, Any]

    def __init__(self, message: str, result_codes: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.result_codes = result_codes or {}

    @property
    def operation_codes(self) -> List[str]:
        return list(self.result_codes.get("operations", []))


class InsufficientSignatureWeight(SubmissionError):
    """Combined signer weight is below the required threshold (tx_bad_auth)."""


class SequenceMismatch(SubmissionError):
    """The envelope's sequence number is not the source's next one (tx_bad_seq)."""


class TransactionTimeout(SubmissionError):
    """The envelope was submitted after its time bound elapsed (tx_too_late)."""


class LedgerRejection(SubmissionError):
    """Any other rejection; carries the opaque result codes."""


class NetworkError(Exception):
    """Transport-level failure talking to an external service."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class NoSignatureNeeded(Exception):
    """A read-only contract call does not need to be signed and sent."""
