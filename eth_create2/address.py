"""CREATE2 and CREATE contract address calculation.

Deterministic deployment relies on knowing the contract address
before the deployment transaction is sent.

- CREATE2 (`EIP-1014 <https://eips.ethereum.org/EIPS/eip-1014>`__):
  ``keccak256(0xff ++ factory ++ salt ++ keccak256(init_code))[12:]``

- CREATE: ``keccak256(rlp([sender, nonce]))[12:]``

All functions here are pure and do not touch the network.
"""

import rlp
from eth_typing import ChecksumAddress, HexAddress
from eth_utils import keccak, to_canonical_address, to_checksum_address
from hexbytes import HexBytes

#: Salt is a 256-bit word
SALT_MAX = 2**256 - 1


class InvalidCreate2Argument(ValueError):
    """Caller gave a salt, address, init code or gas limit outside the allowed domain."""


def encode_salt(salt: int | bytes) -> bytes:
    """Encode a salt as a 32-byte big-endian word.

    :param salt:
        Integer in the range ``0 ... 2**256 - 1``,
        or already encoded 32 bytes.

    :raise InvalidCreate2Argument:
        If the salt does not fit in 256 bits.

    :return:
        32 bytes
    """
    if isinstance(salt, bool):
        raise InvalidCreate2Argument(f"Salt must be an integer or 32 bytes, got {salt!r}")

    if isinstance(salt, int):
        if salt < 0 or salt > SALT_MAX:
            raise InvalidCreate2Argument(f"Salt must fit in 256 bits, got {salt}")
        return salt.to_bytes(32, "big")

    if isinstance(salt, (bytes, bytearray)):
        if len(salt) != 32:
            raise InvalidCreate2Argument(f"Salt must be 32 bytes, got {len(salt)}")
        return bytes(salt)

    raise InvalidCreate2Argument(f"Salt must be an integer or 32 bytes, got {type(salt)}")


def _to_address_bytes(address: HexAddress | str | bytes) -> bytes:
    try:
        value = to_canonical_address(address)
    except (ValueError, TypeError) as e:
        raise InvalidCreate2Argument(f"Not a valid address: {address!r}") from e

    if len(value) != 20:
        raise InvalidCreate2Argument(f"Address must be 20 bytes, got {len(value)}")
    return value


def get_init_code_hash(init_code: bytes) -> HexBytes:
    """Keccak-256 hash of contract init code."""
    return HexBytes(keccak(bytes(init_code)))


def calculate_create2_address_with_code_hash(
    factory_address: HexAddress | str | bytes,
    salt: int | bytes,
    init_code_hash: bytes,
) -> ChecksumAddress:
    """Calculate CREATE2 address from a precomputed init code hash.

    Useful when only the hash of the init code is known,
    e.g. from a block explorer.

    :param factory_address:
        The contract executing ``CREATE2``

    :param salt:
        256-bit salt

    :param init_code_hash:
        32 bytes keccak-256 of the init code

    :return:
        Checksummed contract address
    """
    if len(init_code_hash) != 32:
        raise InvalidCreate2Argument(f"Init code hash must be 32 bytes, got {len(init_code_hash)}")

    preimage = b"\xff" + _to_address_bytes(factory_address) + encode_salt(salt) + bytes(init_code_hash)
    return to_checksum_address(keccak(preimage)[12:])


def calculate_create2_address(
    factory_address: HexAddress | str | bytes,
    salt: int | bytes,
    init_code: bytes,
) -> ChecksumAddress:
    """Calculate the address where a CREATE2 deployment lands.

    Example:

    .. code-block:: python

        from eth_create2.address import calculate_create2_address
        from eth_create2.factory import FACTORY_ADDRESS

        init_code = bytes.fromhex("69602a60005260206000f3600052600a6016f3")
        address = calculate_create2_address(FACTORY_ADDRESS, 0, init_code)

    :param factory_address:
        The contract executing ``CREATE2``, usually the deterministic deployment factory

    :param salt:
        256-bit salt as an integer or 32 bytes

    :param init_code:
        Contract creation bytecode, constructor arguments included

    :raise InvalidCreate2Argument:
        Bad salt or factory address

    :return:
        Checksummed contract address
    """
    return calculate_create2_address_with_code_hash(
        factory_address,
        salt,
        get_init_code_hash(init_code),
    )


def calculate_create_address(sender: HexAddress | str | bytes, nonce: int) -> ChecksumAddress:
    """Calculate the address of a contract created by a plain deployment transaction.

    :param sender:
        Account sending the deployment transaction

    :param nonce:
        Transaction count of the sender at the time of sending

    :return:
        Checksummed contract address
    """
    assert type(nonce) == int and nonce >= 0, f"Bad nonce: {nonce}"
    encoded = rlp.encode([_to_address_bytes(sender), nonce])
    return to_checksum_address(keccak(encoded)[12:])
