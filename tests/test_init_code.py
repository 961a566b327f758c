"""Init code input normalisation."""

import pytest
from hexbytes import HexBytes
from web3 import Web3

from eth_create2.address import InvalidCreate2Argument
from eth_create2.init_code import RawInitCode, TransactionInitCode, as_init_code, normalise_init_code

INIT_CODE = bytes.fromhex("69602a60005260206000f3600052600a6016f3")


@pytest.mark.parametrize(
    "value",
    [
        INIT_CODE,
        HexBytes(INIT_CODE),
        "0x69602a60005260206000f3600052600a6016f3",
        RawInitCode(HexBytes(INIT_CODE)),
        {"data": "0x69602a60005260206000f3600052600a6016f3", "gas": 1},
        TransactionInitCode({"data": INIT_CODE}),
    ],
)
def test_normalise_init_code(value):
    """Every supported form gives the raw bytes."""
    assert normalise_init_code(value) == INIT_CODE


def test_as_init_code_variants():
    """Dicts are transaction-like, everything else raw."""
    assert isinstance(as_init_code({"data": INIT_CODE}), TransactionInitCode)
    assert isinstance(as_init_code(INIT_CODE), RawInitCode)


def test_contract_constructor():
    """Use the deployment data of a web3.py contract constructor."""
    web3 = Web3()
    Contract = web3.eth.contract(abi=[], bytecode=INIT_CODE)
    assert normalise_init_code(Contract.constructor()) == INIT_CODE


@pytest.mark.parametrize("value", [{"to": "0x0000000000000000000000000000000000000000"}, {"data": "0x600"}, "6060", "0xzz", "0x600a600c60005", "0x1", 123, None])
def test_bad_init_code(value):
    """Unusable input is rejected."""
    with pytest.raises(InvalidCreate2Argument):
        normalise_init_code(value)
