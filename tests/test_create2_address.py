"""CREATE2 and CREATE address calculation."""

import pytest
from eth_utils import keccak

from eth_create2.address import (
    InvalidCreate2Argument,
    calculate_create2_address,
    calculate_create2_address_with_code_hash,
    calculate_create_address,
    encode_salt,
    get_init_code_hash,
)

#: Returns 42 when called
SIMPLE_INIT_CODE = bytes.fromhex("69602a60005260206000f3600052600a6016f3")

FACTORY = "0x1e8fda220759f2b4e3fa68b875c73e21fdc737ec"


@pytest.mark.parametrize(
    "factory,salt,init_code,expected",
    [
        # Examples from EIP-1014
        ("0x0000000000000000000000000000000000000000", 0, "00", "0x4D1A2e2bB4F88F0250f26Ffff098B0b30B26BF38"),
        ("0xdeadbeef00000000000000000000000000000000", 0, "00", "0xB928f69Bb1D91Cd65274e3c79d8986362984fDA3"),
        ("0xdeadbeef00000000000000000000000000000000", 0xFEED << (18 * 8), "00", "0xD04116cDd17beBE565EB2422F2497E06cC1C9833"),
        ("0x0000000000000000000000000000000000000000", 0, "deadbeef", "0x70f2b2914A2a4b783FaEFb75f459A580616Fcb5e"),
        ("0x00000000000000000000000000000000deadbeef", 0xCAFEBABE, "deadbeef", "0x60f3f640a8508fC6a86d45DF051962668E1e8AC7"),
        ("0x0000000000000000000000000000000000000000", 0, "", "0xE33C0C7F7df4809055C3ebA6c09CFe4BaF1BD9e0"),
    ],
)
def test_eip_1014_examples(factory: str, salt: int, init_code: str, expected: str):
    """Match the reference vectors bit for bit."""
    address = calculate_create2_address(factory, salt, bytes.fromhex(init_code))
    assert address.lower() == expected.lower()


def test_create2_address_deterministic():
    """Same input, same address."""
    address_1 = calculate_create2_address(FACTORY, 0, SIMPLE_INIT_CODE)
    address_2 = calculate_create2_address(FACTORY, 0, SIMPLE_INIT_CODE)
    assert address_1 == address_2
    assert address_1.startswith("0x")
    assert len(address_1) == 42


def test_create2_address_changes_with_init_code_byte():
    """Flipping the last byte of init code moves the contract."""
    address_1 = calculate_create2_address(FACTORY, 0, bytes.fromhex("600a600c600055"))
    address_2 = calculate_create2_address(FACTORY, 0, bytes.fromhex("600a600c600056"))
    assert address_1 != address_2


def test_create2_address_changes_with_salt_and_factory():
    """Salt bit and factory both matter."""
    base = calculate_create2_address(FACTORY, 0, SIMPLE_INIT_CODE)
    assert calculate_create2_address(FACTORY, 1, SIMPLE_INIT_CODE) != base
    assert calculate_create2_address(FACTORY, 2**255, SIMPLE_INIT_CODE) != base
    assert calculate_create2_address("0x4e59b44847b379578588920ca78fbf26c0b4956c", 0, SIMPLE_INIT_CODE) != base


def test_create2_address_with_code_hash():
    """Precomputed hash gives the same result."""
    init_code_hash = get_init_code_hash(SIMPLE_INIT_CODE)
    assert init_code_hash == keccak(SIMPLE_INIT_CODE)
    assert calculate_create2_address_with_code_hash(FACTORY, 5, init_code_hash) == calculate_create2_address(FACTORY, 5, SIMPLE_INIT_CODE)


def test_salt_as_bytes():
    """32 bytes salt is the same as its integer value."""
    salt_bytes = bytes(31) + b"\x07"
    assert calculate_create2_address(FACTORY, salt_bytes, SIMPLE_INIT_CODE) == calculate_create2_address(FACTORY, 7, SIMPLE_INIT_CODE)


def test_encode_salt():
    """Salt is left padded big endian."""
    assert encode_salt(0) == bytes(32)
    assert encode_salt(1) == bytes(31) + b"\x01"
    assert encode_salt(2**256 - 1) == b"\xff" * 32


@pytest.mark.parametrize("salt", [-1, 2**256, True, 1.5, "0x01", bytes(31), bytes(33)])
def test_encode_salt_out_of_domain(salt):
    """Salt must fit in 256 bits."""
    with pytest.raises(InvalidCreate2Argument):
        encode_salt(salt)


def test_bad_factory_address():
    """Factory must be 20 bytes."""
    with pytest.raises(InvalidCreate2Argument):
        calculate_create2_address(bytes(19), 0, SIMPLE_INIT_CODE)

    with pytest.raises(InvalidCreate2Argument):
        calculate_create2_address("0x1234", 0, SIMPLE_INIT_CODE)


def test_invalid_argument_is_value_error():
    """Callers can catch the standard exception."""
    with pytest.raises(ValueError):
        calculate_create2_address(FACTORY, -5, SIMPLE_INIT_CODE)


def test_create_address():
    """CREATE address from sender and nonce."""
    sender = "0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0"
    assert calculate_create_address(sender, 0).lower() == "0xcd234a471b72ba2f1ccf0a70fcaba648a5eecd8d"
    assert calculate_create_address(sender, 1).lower() == "0x343c43a37d37dff08ae8c4a11544c718abb4fcf8"


def test_create_address_of_canonical_proxy():
    """The well known deterministic deployment proxy is the first contract of its deployer."""
    address = calculate_create_address("0x3fab184622dc19b6109349b94811493bf2a45362", 0)
    assert address.lower() == "0x4e59b44847b379578588920ca78fbf26c0b4956c"
