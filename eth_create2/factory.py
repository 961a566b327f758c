"""Deterministic deployment factory identity.

The factory is a tiny contract, shared by everyone on a chain, that takes
``salt ++ init_code`` as call data and runs ``CREATE2`` with them.
See `deterministic-deployment-proxy <https://github.com/Arachnid/deterministic-deployment-proxy>`__.

The factory itself is deployed by a pre-signed transaction
from a throwaway deployer account. Because that transaction is the first (nonce 0)
transaction of the deployer, the factory lands at the same address on every chain
where the transaction is accepted.
"""

from dataclasses import dataclass

from eth_account import Account
from eth_typing import ChecksumAddress, HexAddress
from eth_utils import to_checksum_address, to_hex
from hexbytes import HexBytes

from eth_create2.address import calculate_create_address
from eth_create2.tx import DecodeFailure, decode_signed_transaction

#: Factory contract address
FACTORY_ADDRESS: ChecksumAddress = to_checksum_address("0x1e8fda220759f2b4e3fa68b875c73e21fdc737ec")

#: Account that signed :py:data:`FACTORY_RAW_TRANSACTION`
FACTORY_DEPLOYER: ChecksumAddress = to_checksum_address("0x538e86c294cd4d7870790B51Ab063B860Ca9cAEE")

#: Gas price of the pre-signed bootstrap transaction, 1000 gwei
FACTORY_DEPLOYMENT_GAS_PRICE = 1_000_000_000_000

#: Gas limit of the pre-signed bootstrap transaction
FACTORY_DEPLOYMENT_GAS_LIMIT = 100_000

#: How much ETH the deployer account needs to broadcast the bootstrap transaction
FACTORY_DEPLOYMENT_FEE = FACTORY_DEPLOYMENT_GAS_PRICE * FACTORY_DEPLOYMENT_GAS_LIMIT

#: Factory init code.
#:
#: The deployed factory reads a 32 bytes salt from the beginning of the call data,
#: runs ``CREATE2`` with the rest and returns the created address,
#: or reverts if the creation failed.
FACTORY_BYTECODE = HexBytes("0x604580600e600039806000f350fe7fffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffe03601600081602082378035828234f58015156039578182fd5b8082525050506014600cf3")

#: Pre-signed bootstrap transaction
FACTORY_RAW_TRANSACTION = HexBytes(
    "0xf8a78085e8d4a51000830186a08080b853604580600e600039806000f350fe7fffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffe03601600081602082378035828234f58015156039578182fd5b8082525050506014600cf382f4f6a03b907605c26842388dafcf7ed3076a9e3e493f99ef2920fa0a1b16e881b22c48a0283eaf454fcf77f65e220c0c1a836105cf6a562cebca4a22517675c058fa7c76"
)


class InvalidFactoryIdentity(Exception):
    """Factory constants do not describe the same bootstrap transaction."""


@dataclass(slots=True, frozen=True)
class FactoryIdentity:
    """Everything needed to find or bootstrap a deterministic deployment factory.

    The values must agree with each other: ``raw_transaction`` is
    a nonce 0 contract creation signed by ``deployer`` with ``gas_price`` and ``gas_limit``,
    carrying ``bytecode``, and creating a contract at ``address``.
    See :py:func:`verify_factory_identity`.
    """

    #: Where the factory lives
    address: ChecksumAddress

    #: Pre-signed bootstrap transaction
    raw_transaction: HexBytes

    #: Signer of the bootstrap transaction
    deployer: ChecksumAddress

    #: Gas price of the bootstrap transaction
    gas_price: int

    #: Gas limit of the bootstrap transaction
    gas_limit: int

    #: Factory init code
    bytecode: HexBytes

    def __repr__(self):
        return f"<Factory {self.address} deployer:{self.deployer}>"

    @property
    def fee(self) -> int:
        """ETH needed by the deployer account to broadcast the bootstrap transaction."""
        return self.gas_price * self.gas_limit

    @staticmethod
    def from_raw_transaction(raw_transaction: bytes | str) -> "FactoryIdentity":
        """Derive the factory identity from a pre-signed bootstrap transaction.

        Example:

        .. code-block:: python

            signed = throwaway_account.sign_transaction({
                "nonce": 0,
                "gasPrice": 100 * 10**9,
                "gas": 100_000,
                "value": 0,
                "data": FACTORY_BYTECODE,
                "chainId": web3.eth.chain_id,
            })
            factory = FactoryIdentity.from_raw_transaction(signed.raw_transaction)

        :raise InvalidFactoryIdentity:
            The transaction is not a nonce 0 legacy contract creation
        """
        raw_transaction = HexBytes(raw_transaction)
        decoded = _decode_bootstrap_transaction(raw_transaction)
        deployer = Account.recover_transaction(raw_transaction)
        return FactoryIdentity(
            address=calculate_create_address(deployer, 0),
            raw_transaction=raw_transaction,
            deployer=to_checksum_address(deployer),
            gas_price=decoded["gasPrice"],
            gas_limit=decoded["gas"],
            bytecode=HexBytes(decoded["data"]),
        )


def _decode_bootstrap_transaction(raw_transaction: HexBytes) -> dict:
    try:
        decoded = decode_signed_transaction(raw_transaction)
    except DecodeFailure as e:
        raise InvalidFactoryIdentity("Cannot decode bootstrap transaction") from e

    if "gasPrice" not in decoded:
        raise InvalidFactoryIdentity(f"Bootstrap transaction must be a legacy transaction with a fixed gas price: {decoded}")

    if decoded.get("to"):
        raise InvalidFactoryIdentity(f"Bootstrap transaction is not a contract creation, it is sent to {to_hex(decoded['to'])}")

    if decoded["nonce"] != 0:
        raise InvalidFactoryIdentity(f"Bootstrap transaction must have nonce 0, has {decoded['nonce']}")

    return decoded


def verify_factory_identity(identity: FactoryIdentity):
    """Check that the factory constants describe one and the same bootstrap transaction.

    :raise InvalidFactoryIdentity:
        Naming the first value that does not match
    """
    decoded = _decode_bootstrap_transaction(identity.raw_transaction)

    if decoded["gasPrice"] != identity.gas_price:
        raise InvalidFactoryIdentity(f"Gas price mismatch, transaction has {decoded['gasPrice']}, identity has {identity.gas_price}")

    if decoded["gas"] != identity.gas_limit:
        raise InvalidFactoryIdentity(f"Gas limit mismatch, transaction has {decoded['gas']}, identity has {identity.gas_limit}")

    if HexBytes(decoded["data"]) != identity.bytecode:
        raise InvalidFactoryIdentity("Bytecode in the bootstrap transaction does not match the factory bytecode")

    signer = Account.recover_transaction(identity.raw_transaction)
    if signer.lower() != identity.deployer.lower():
        raise InvalidFactoryIdentity(f"Bootstrap transaction is signed by {signer}, expected deployer {identity.deployer}")

    expected_address = calculate_create_address(identity.deployer, 0)
    if expected_address.lower() != identity.address.lower():
        raise InvalidFactoryIdentity(f"Deployer {identity.deployer} creates {expected_address} with its first transaction, identity has factory at {identity.address}")


#: The factory used unless something else is given
DETERMINISTIC_DEPLOYMENT_PROXY = FactoryIdentity(
    address=FACTORY_ADDRESS,
    raw_transaction=FACTORY_RAW_TRANSACTION,
    deployer=FACTORY_DEPLOYER,
    gas_price=FACTORY_DEPLOYMENT_GAS_PRICE,
    gas_limit=FACTORY_DEPLOYMENT_GAS_LIMIT,
    bytecode=FACTORY_BYTECODE,
)
