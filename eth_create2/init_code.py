"""Init code input normalisation.

:py:meth:`eth_create2.deployer.Create2Deployer.deploy` accepts init code either as raw bytes
or as a transaction-like value that carries the init code in its ``data`` field,
e.g. what web3.py ``Contract.constructor(...).build_transaction()`` returns.
Both are reduced to raw bytes before the address is calculated.
"""

from dataclasses import dataclass
from typing import TypeAlias

from eth_utils import is_hex
from hexbytes import HexBytes
from web3.contract.contract import ContractConstructor

from eth_create2.address import InvalidCreate2Argument


@dataclass(slots=True, frozen=True)
class RawInitCode:
    """Init code given as bytes."""

    #: Contract creation bytecode, constructor arguments included
    data: HexBytes


@dataclass(slots=True, frozen=True)
class TransactionInitCode:
    """Init code given as a transaction-like dict.

    Only the ``data`` field is used, other fields like ``gas`` are ignored.
    """

    transaction: dict


#: Everything :py:func:`normalise_init_code` understands
InitCode: TypeAlias = RawInitCode | TransactionInitCode


def _to_bytes(value) -> HexBytes:
    if isinstance(value, str):
        if not value.startswith("0x") or not is_hex(value):
            raise InvalidCreate2Argument(f"Init code must be 0x prefixed hex, got {value[0:16]}...")
        if len(value) % 2 != 0:
            raise InvalidCreate2Argument(f"Init code hex must have an even number of digits, got {len(value) - 2}")
        return HexBytes(value)

    if isinstance(value, (bytes, bytearray)):
        return HexBytes(value)

    raise InvalidCreate2Argument(f"Init code must be bytes or hex string, got {type(value)}")


def as_init_code(value) -> InitCode:
    """Wrap a caller supplied value into one of the init code variants.

    :param value:
        Bytes, ``0x`` hex string, transaction dict, web3.py ``ContractConstructor``,
        or already wrapped :py:class:`RawInitCode` / :py:class:`TransactionInitCode`.

    :raise InvalidCreate2Argument:
        Unsupported type
    """
    if isinstance(value, (RawInitCode, TransactionInitCode)):
        return value

    if isinstance(value, dict):
        return TransactionInitCode(value)

    if isinstance(value, ContractConstructor):
        return RawInitCode(HexBytes(value.data_in_transaction))

    return RawInitCode(_to_bytes(value))


def normalise_init_code(value) -> HexBytes:
    """Get raw init code bytes out of any supported init code input.

    Example:

    .. code-block:: python

        Contract = web3.eth.contract(abi=abi, bytecode=bytecode)
        init_code = normalise_init_code(Contract.constructor(owner))

    :raise InvalidCreate2Argument:
        Transaction without ``data``, bad hex or unsupported type

    :return:
        Raw init code
    """
    init_code = as_init_code(value)

    match init_code:
        case RawInitCode(data=data):
            return data
        case TransactionInitCode(transaction=tx):
            data = tx.get("data")
            if data is None:
                raise InvalidCreate2Argument(f"Transaction does not carry init code in data field: {tx}")
            return _to_bytes(data)
