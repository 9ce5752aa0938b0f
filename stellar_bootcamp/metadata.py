# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Client identification headers sent with every Horizon, Friendbot and Soroban RPC
request.

Horizon and Soroban RPC record ``X-Client-Name`` / ``X-Client-Version`` in their
access logs, which makes bootcamp traffic easy to spot when debugging a testnet
run::

    from stellar_bootcamp.metadata import Metadata

    headers = Metadata.headers()
    # {"X-Client-Name": "stellar-bootcamp-python", "X-Client-Version": "0.1.0"}
"""

import importlib.metadata as metadata

# Package name constant for metadata lookup
PACKAGE_NAME = "stellar-bootcamp"


class Metadata:
    CLIENT_NAME_HEADER = "X-Client-Name"
    CLIENT_VERSION_HEADER = "X-Client-Version"
    CLIENT_NAME = "stellar-bootcamp-python"

    @staticmethod
    def get_version() -> str:
        """Version of the installed distribution, "0.0.0" when running from a checkout."""
        try:
            return metadata.version(PACKAGE_NAME)
        except metadata.PackageNotFoundError:
            return "0.0.0"

    @staticmethod
    def headers() -> dict:
        return {
            Metadata.CLIENT_NAME_HEADER: Metadata.CLIENT_NAME,
            Metadata.CLIENT_VERSION_HEADER: Metadata.get_version(),
        }
