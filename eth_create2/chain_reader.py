"""Read chain state needed by deterministic deployment."""

from abc import ABC, abstractmethod

from eth_typing import HexAddress
from web3 import Web3


class ChainReader(ABC):
    """Read account code, balance and nonce from a chain.

    The deployer only needs to know whether an address holds a contract,
    and for the factory bootstrap, the balance and transaction count of
    the deployer account.
    """

    @abstractmethod
    def get_code(self, address: HexAddress | str) -> bytes:
        """Get the code stored at an address.

        :return:
            Empty bytes if there is no contract
        """
        pass

    @abstractmethod
    def get_balance(self, address: HexAddress | str) -> int:
        """Get native currency balance in wei."""
        pass

    @abstractmethod
    def get_transaction_count(self, address: HexAddress | str) -> int:
        """Get the nonce of an account."""
        pass

    def has_code(self, address: HexAddress | str) -> bool:
        """Is there a contract at the address."""
        return len(self.get_code(address)) > 0


class Web3ChainReader(ChainReader):
    """Read chain state over web3.py JSON-RPC connection."""

    def __init__(self, web3: Web3):
        self.web3 = web3

    def __repr__(self):
        return f"<Web3ChainReader chain:{self.web3.eth.chain_id}>"

    def get_code(self, address: HexAddress | str) -> bytes:
        return bytes(self.web3.eth.get_code(Web3.to_checksum_address(address)))

    def get_balance(self, address: HexAddress | str) -> int:
        return self.web3.eth.get_balance(Web3.to_checksum_address(address))

    def get_transaction_count(self, address: HexAddress | str) -> int:
        return self.web3.eth.get_transaction_count(Web3.to_checksum_address(address))
