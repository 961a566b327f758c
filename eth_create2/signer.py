"""Submit deployment transactions and wait for them to be mined.

Two ways to sign:

- :py:class:`NodeAccountSigner`: the node holds the key, e.g. Anvil, Hardhat or a test backend

- :py:class:`HotWalletSigner`: sign locally with :py:class:`eth_create2.hotwallet.HotWallet`

.. note ::

    Neither signer coordinates nonces with other processes using the same account.
    Serialise submissions from one account yourself.
"""

import datetime
import logging
from abc import ABC, abstractmethod
from pprint import pformat

from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.types import TxReceipt

from eth_create2.hotwallet import HotWallet

logger = logging.getLogger(__name__)

#: How long we wait for a transaction to be mined before giving up
DEFAULT_CONFIRMATION_TIMEOUT = datetime.timedelta(minutes=5)


class DeploymentSigner(ABC):
    """Sends transactions on behalf of an account.

    Subclasses only need to know how to sign and send,
    gas estimation, raw broadcasts and receipt polling go through web3.py.
    """

    def __init__(self, web3: Web3, confirmation_timeout: datetime.timedelta = DEFAULT_CONFIRMATION_TIMEOUT):
        self.web3 = web3
        self.confirmation_timeout = confirmation_timeout

    @property
    @abstractmethod
    def address(self) -> HexAddress:
        """The account sending the transactions."""
        pass

    @abstractmethod
    def send_transaction(self, tx: dict) -> HexBytes:
        """Sign and send a transaction from our account.

        :param tx:
            Transaction with ``to``, ``data``, ``value`` and ``gas`` as needed.
            ``from`` is filled in.

        :return:
            Transaction hash
        """
        pass

    def estimate_gas(self, tx: dict) -> int:
        """Ask the node how much gas a transaction from our account needs."""
        return self.web3.eth.estimate_gas({"from": self.address, **tx})

    def send_raw_transaction(self, raw_transaction: bytes) -> HexBytes:
        """Broadcast a transaction signed by someone else."""
        return HexBytes(self.web3.eth.send_raw_transaction(raw_transaction))

    def wait_for_receipt(self, tx_hash: HexBytes) -> TxReceipt:
        """Block until the transaction is mined.

        :raise web3.exceptions.TimeExhausted:
            If not mined within ``confirmation_timeout``
        """
        logger.info("Waiting for transaction %s to be mined", Web3.to_hex(tx_hash))
        return self.web3.eth.wait_for_transaction_receipt(
            tx_hash,
            timeout=self.confirmation_timeout.total_seconds(),
        )


class NodeAccountSigner(DeploymentSigner):
    """Send transactions from an account unlocked on the node with ``eth_sendTransaction``."""

    def __init__(self, web3: Web3, address: HexAddress | str, **kwargs):
        super().__init__(web3, **kwargs)
        self._address = Web3.to_checksum_address(address)

    def __repr__(self):
        return f"<NodeAccountSigner {self._address}>"

    @property
    def address(self) -> HexAddress:
        return self._address

    def send_transaction(self, tx: dict) -> HexBytes:
        return HexBytes(self.web3.eth.send_transaction({**tx, "from": self.address}))


class HotWalletSigner(DeploymentSigner):
    """Sign transactions locally and broadcast with ``eth_sendRawTransaction``.

    Gas limit must be given in the transaction, gas price is filled in
    from the latest block.
    """

    def __init__(self, web3: Web3, hot_wallet: HotWallet, **kwargs):
        super().__init__(web3, **kwargs)
        self.hot_wallet = hot_wallet
        if hot_wallet.current_nonce is None:
            hot_wallet.sync_nonce(web3)

    def __repr__(self):
        return f"<HotWalletSigner {self.hot_wallet.address}>"

    @property
    def address(self) -> HexAddress:
        return self.hot_wallet.address

    def send_transaction(self, tx: dict) -> HexBytes:
        assert "gas" in tx, f"Gas limit must be set for locally signed transactions: {tx}"
        tx = {**tx, "from": self.address, "chainId": self.web3.eth.chain_id}
        tx.setdefault("value", 0)
        self.hot_wallet.fill_in_gas_price(self.web3, tx)

        try:
            signed_tx = self.hot_wallet.sign(tx)
        except Exception as e:
            # Probably mismatch between network expected gas parameter format and what we give
            raise RuntimeError(f"Could not sign:\n{pformat(tx)}") from e

        logger.info("Broadcasting %s from %s", signed_tx, self.address)
        tx_hash = self.send_raw_transaction(signed_tx.raw_transaction)
        assert tx_hash == signed_tx.hash, f"Node returned hash {Web3.to_hex(tx_hash)} for {signed_tx}"
        return tx_hash
