"""Gas limits and gas prices for deployment transactions.

- How the gas limit of a factory deployment transaction is chosen,
  see :py:class:`GasLimit`

- Manual gas limit estimation that works without talking to a node,
  see :py:func:`estimate_create2_deployment_gas`

- Gas price for locally signed transactions, see :py:func:`estimate_gas_price`
"""

import enum
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from eth_create2.address import InvalidCreate2Argument

#: Transaction data cost per zero byte
ZERO_BYTE_GAS = 4

#: Transaction data cost per non-zero byte
NON_ZERO_BYTE_GAS = 16

#: Code deposit cost per byte
CODE_DEPOSIT_BYTE_GAS = 200

#: Hashing cost per word, as used in the manual estimate
HASH_WORD_GAS = 6

#: Base cost of contract creation
CREATE_GAS = 32_000

#: Base cost of any transaction
TRANSACTION_GAS = 21_000


class GasLimitMode(enum.Enum):
    """How the gas limit for a deployment transaction is resolved."""

    #: Calculate from the init code size, no network access
    manual = "manual"

    #: Ask the node with ``eth_estimateGas``
    estimate = "estimate"

    #: Use the value given by the caller
    explicit = "explicit"


@dataclass(slots=True, frozen=True)
class GasLimit:
    """Gas limit choice for :py:meth:`eth_create2.deployer.Create2Deployer.deploy`."""

    mode: GasLimitMode

    #: Set only for :py:attr:`GasLimitMode.explicit`
    value: Optional[int] = None

    def __post_init__(self):
        if self.mode == GasLimitMode.explicit:
            if type(self.value) != int or self.value <= 0:
                raise InvalidCreate2Argument(f"Explicit gas limit must be a positive integer, got {self.value!r}")
        else:
            assert self.value is None, f"Gas limit mode {self.mode.name} does not take a value"

    def __repr__(self):
        if self.mode == GasLimitMode.explicit:
            return f"<GasLimit {self.value:,}>"
        return f"<GasLimit {self.mode.name}>"

    @staticmethod
    def manual() -> "GasLimit":
        return GasLimit(GasLimitMode.manual)

    @staticmethod
    def estimate() -> "GasLimit":
        return GasLimit(GasLimitMode.estimate)

    @staticmethod
    def explicit(value: int) -> "GasLimit":
        return GasLimit(GasLimitMode.explicit, value)

    @staticmethod
    def parse(value: "GasLimit | int | str | None") -> "GasLimit":
        """Map the short hand forms to a gas limit choice.

        - ``None``: manual estimate
        - ``"estimate"``: node estimate
        - ``int``: explicit value
        """
        if isinstance(value, GasLimit):
            return value

        if value is None:
            return GasLimit.manual()

        if isinstance(value, str):
            if value == "estimate":
                return GasLimit.estimate()
            raise InvalidCreate2Argument(f"Unknown gas limit: {value!r}")

        return GasLimit.explicit(value)


def estimate_create2_deployment_gas(init_code: bytes) -> int:
    """Estimate gas limit for deploying init code through the factory.

    Does not need a node. The estimate errs on the large side,
    because the size of the deployed code is not known before
    the constructor has run, so we pay the code deposit for the whole init code.

    - Transaction data cost per byte of init code
    - Code deposit for every init code byte
    - Hashing the init code for the CREATE2 address
    - Contract creation and transaction base cost

    The total is multiplied by 64/63, as the factory can forward
    only 63/64 of its remaining gas to the created contract.

    :param init_code:
        Contract creation bytecode

    :return:
        Gas limit
    """
    length = len(init_code)
    data_gas = sum(ZERO_BYTE_GAS if b == 0 else NON_ZERO_BYTE_GAS for b in init_code)
    deposit_gas = CODE_DEPOSIT_BYTE_GAS * length
    hash_gas = HASH_WORD_GAS * ((length + 63) // 64)
    gas = data_gas + deposit_gas + hash_gas + CREATE_GAS + TRANSACTION_GAS
    return gas * 64 // 63


class GasPriceMethod(enum.Enum):
    """What method we did use for setting the gas price."""

    #: Legacy chains
    legacy = "legacy"

    #: Post London hard work
    london = "london"


@dataclass
class GasPriceSuggestion:
    """Gas price details for building a transaction.

    - EIP-1559 London hard fork chains (Ethereum mainnet)

    - Legacy EVM
    """

    #: How the gas price was determined
    method: GasPriceMethod

    #: Non London hard fork chains
    legacy_gas_price: Optional[int] = None

    #: London hard fork chains
    base_fee: Optional[int] = None

    #: London hard fork chains
    max_priority_fee_per_gas: Optional[int] = None

    #: London hard fork chains
    max_fee_per_gas: Optional[int] = None

    def __repr__(self):
        return f"<Gas pricing method:{self.method.name} base:{self.base_fee} priority:{self.max_priority_fee_per_gas} max:{self.max_fee_per_gas} legacy:{self.legacy_gas_price}>"


def estimate_gas_price(web3: Web3) -> GasPriceSuggestion:
    """Get a gas price for a transaction we sign ourselves."""

    last_block = web3.eth.get_block("latest")
    base_fee = last_block.get("baseFeePerGas")

    if base_fee is None:
        return GasPriceSuggestion(method=GasPriceMethod.legacy, legacy_gas_price=web3.eth.gas_price)

    max_priority_fee_per_gas = web3.eth.max_priority_fee
    max_fee_per_gas = max_priority_fee_per_gas + 2 * base_fee
    return GasPriceSuggestion(
        method=GasPriceMethod.london,
        base_fee=base_fee,
        max_priority_fee_per_gas=max_priority_fee_per_gas,
        max_fee_per_gas=max_fee_per_gas,
    )


def apply_gas(tx: dict, suggestion: GasPriceSuggestion) -> dict:
    """Apply gas fees to a raw transaction dict.

    :return:
        Mutated dict
    """

    assert isinstance(tx, dict), f"Expected tx to be dict, got {type(tx)}"

    if suggestion.method == GasPriceMethod.london:
        tx["maxFeePerGas"] = suggestion.max_fee_per_gas
        tx["maxPriorityFeePerGas"] = suggestion.max_priority_fee_per_gas

        if "gasPrice" in tx:
            # Cannot have both maxFeePerGas + maxPriorityFeePerGas and gasPrice
            del tx["gasPrice"]
    else:
        tx["gasPrice"] = suggestion.legacy_gas_price

    return tx
