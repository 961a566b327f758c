"""Sign deployment transactions with a private key held in memory.

Nonces are counted locally. While deployments are running, a :py:class:`HotWallet`
must be the only sender for its account.

A nonce is taken when a transaction is signed. If signing fails the nonce is
given back. If the node rejects the broadcast, the nonce stays taken and the next
transaction leaves a gap: call :py:meth:`HotWallet.sync_nonce` before retrying.

.. code-block:: python

    hot_wallet = HotWallet.from_private_key(os.environ["PRIVATE_KEY"])
    hot_wallet.sync_nonce(web3)
    signer = HotWalletSigner(web3, hot_wallet)

"""

import logging
from typing import NamedTuple, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3 import Web3

from eth_create2.gas import apply_gas, estimate_gas_price
from eth_create2.tx import get_tx_broadcast_data

logger = logging.getLogger(__name__)


class SignedDeploymentTransaction(NamedTuple):
    """Signed bytes with their hash and nonce."""

    #: Bytes for ``eth_sendRawTransaction``
    raw_transaction: HexBytes

    #: Transaction hash
    hash: HexBytes

    #: Nonce consumed by this transaction
    nonce: int

    def __repr__(self):
        return f"<SignedDeploymentTransaction nonce:{self.nonce} hash:{Web3.to_hex(self.hash)} size:{len(self.raw_transaction)} bytes>"


class HotWallet:
    """A local account and its nonce counter.

    Not thread safe.
    """

    def __init__(self, account: LocalAccount):
        self.account = account

        #: Nonce for the next transaction, ``None`` until :py:meth:`sync_nonce` is called
        self.current_nonce: Optional[int] = None

    def __repr__(self):
        return f"<HotWallet {self.address} nonce:{self.current_nonce}>"

    @property
    def address(self) -> ChecksumAddress:
        return self.account.address

    def sync_nonce(self, web3: Web3):
        """Read the nonce from the chain.

        The counter never moves backwards. Transactions we have signed,
        but the node has not seen yet, keep their nonces.
        """
        onchain_nonce = web3.eth.get_transaction_count(self.address)
        if self.current_nonce is not None and onchain_nonce < self.current_nonce:
            logger.warning("%s: chain reports nonce %d, keeping local nonce %d", self.address, onchain_nonce, self.current_nonce)
            return
        self.current_nonce = onchain_nonce
        logger.info("%s: nonce synced to %d", self.address, self.current_nonce)

    def allocate_nonce(self) -> int:
        """Take the next nonce."""
        assert self.current_nonce is not None, f"{self}: call sync_nonce() before signing"
        nonce = self.current_nonce
        self.current_nonce += 1
        return nonce

    def sign(self, tx: dict) -> SignedDeploymentTransaction:
        """Sign a transaction with the next nonce.

        :param tx:
            Transaction with gas and chain id filled in, without ``nonce``.
            Not modified.
        """
        assert "nonce" not in tx, f"Nonce is allocated by the wallet: {tx}"
        nonce = self.allocate_nonce()
        tx = {**tx, "nonce": nonce}
        try:
            signed = self.account.sign_transaction(tx)
        except Exception:
            self.current_nonce = nonce
            raise
        return SignedDeploymentTransaction(
            raw_transaction=get_tx_broadcast_data(signed),
            hash=HexBytes(signed.hash),
            nonce=tx["nonce"],
        )

    @staticmethod
    def fill_in_gas_price(web3: Web3, tx: dict) -> dict:
        """Set gas price fields from the latest block.

        Mutates ``tx`` in place.
        """
        return apply_gas(tx, estimate_gas_price(web3))

    @staticmethod
    def from_private_key(key: str) -> "HotWallet":
        """Create a wallet from a ``0x`` prefixed hex private key."""
        assert isinstance(key, str), f"Expected private key as string, got {type(key)}"
        assert key.startswith("0x"), f"Private key must be 0x prefixed hex, got {key[0:4]}..."
        return HotWallet(Account.from_key(key))

    @staticmethod
    def create_for_testing(web3: Web3, test_account_n=0, eth_amount=1) -> "HotWallet":
        """Random key, funded from one of the node test accounts."""
        wallet = HotWallet(Account.create())
        tx_hash = web3.eth.send_transaction(
            {
                "from": web3.eth.accounts[test_account_n],
                "to": wallet.address,
                "value": Web3.to_wei(eth_amount, "ether"),
            }
        )
        web3.eth.wait_for_transaction_receipt(tx_hash)
        wallet.sync_nonce(web3)
        return wallet
