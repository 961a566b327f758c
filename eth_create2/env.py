"""Read deployment configuration from environment variables.

============================  ==================================================
Variable                      Meaning
============================  ==================================================
``JSON_RPC_URL``              Node to connect to. Required.
``PRIVATE_KEY``               ``0x`` prefixed key to sign with. If not set,
                              the first account of the node is used.
``INIT_CODE``                 ``0x`` prefixed init code, or a path to a file
                              containing it. Required.
``SALT``                      Decimal or ``0x`` hex integer. Default 0.
``GAS_LIMIT``                 Unset for manual estimate, ``estimate``
                              to ask the node, or an integer.
``FACTORY_BOOTSTRAP``         ``signer_account`` or ``presigned_transaction``.
``LOG_LEVEL``                 Console log level for the command line tool.
============================  ==================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from hexbytes import HexBytes

from eth_create2.address import InvalidCreate2Argument, encode_salt
from eth_create2.deployer import FactoryBootstrapMethod
from eth_create2.gas import GasLimit
from eth_create2.init_code import normalise_init_code


@dataclass(slots=True, frozen=True)
class DeployConfig:
    """What to deploy and how, as given in the environment."""

    json_rpc_url: str

    init_code: HexBytes

    salt: int = 0

    gas_limit: GasLimit = GasLimit.manual()

    #: If not set, sign with a node account
    private_key: Optional[str] = None

    bootstrap_method: FactoryBootstrapMethod = FactoryBootstrapMethod.signer_account

    def __repr__(self):
        # Never print the private key
        return f"<DeployConfig rpc:{self.json_rpc_url} init code:{len(self.init_code)} bytes salt:{self.salt} gas:{self.gas_limit} local key:{self.private_key is not None}>"


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if not value:
        raise InvalidCreate2Argument(f"Environment variable {name} is not set")
    return value


def read_init_code(value: str) -> HexBytes:
    """Read init code given as hex or as a file path holding hex."""
    if not value.startswith("0x"):
        path = Path(value)
        if not path.exists():
            raise InvalidCreate2Argument(f"INIT_CODE is neither 0x hex nor an existing file: {value}")
        value = path.read_text().strip()
        if not value.startswith("0x"):
            value = "0x" + value
    return normalise_init_code(value)


def read_salt(value: str | None) -> int:
    """Parse decimal or 0x hex salt."""
    if not value:
        return 0
    try:
        salt = int(value, 0)
    except ValueError as e:
        raise InvalidCreate2Argument(f"SALT is not an integer: {value}") from e
    encode_salt(salt)
    return salt


def read_gas_limit(value: str | None) -> GasLimit:
    """Parse gas limit choice."""
    if not value:
        return GasLimit.manual()
    if value == "estimate":
        return GasLimit.estimate()
    try:
        return GasLimit.explicit(int(value))
    except ValueError as e:
        raise InvalidCreate2Argument(f"GAS_LIMIT must be 'estimate' or an integer: {value}") from e


def read_deploy_config(environ: Mapping[str, str] = os.environ) -> DeployConfig:
    """Read :py:class:`DeployConfig` from environment variables.

    :raise InvalidCreate2Argument:
        A variable is missing or malformed
    """
    private_key = environ.get("PRIVATE_KEY") or None
    if private_key is not None and not private_key.startswith("0x"):
        raise InvalidCreate2Argument("PRIVATE_KEY must start with 0x hex prefix")

    bootstrap = environ.get("FACTORY_BOOTSTRAP") or FactoryBootstrapMethod.signer_account.value
    try:
        bootstrap_method = FactoryBootstrapMethod(bootstrap)
    except ValueError as e:
        raise InvalidCreate2Argument(f"Unknown FACTORY_BOOTSTRAP: {bootstrap}") from e

    return DeployConfig(
        json_rpc_url=_require(environ, "JSON_RPC_URL"),
        init_code=read_init_code(_require(environ, "INIT_CODE")),
        salt=read_salt(environ.get("SALT")),
        gas_limit=read_gas_limit(environ.get("GAS_LIMIT")),
        private_key=private_key,
        bootstrap_method=bootstrap_method,
    )
