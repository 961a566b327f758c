"""Deterministic contract deployment through a CREATE2 factory.

- Predict the address of a contract before deploying it

- Deploy the contract only if the address is still empty

- Deploy the factory itself first if the chain does not have it yet

Example:

.. code-block:: python

    from eth_create2.deployer import Create2Deployer
    from eth_create2.signer import NodeAccountSigner

    signer = NodeAccountSigner(web3, web3.eth.accounts[0])
    deployer = Create2Deployer.create_for_web3(web3, signer)

    predicted = deployer.get_deployed_address(init_code, salt=1)
    address = deployer.deploy(init_code, salt=1)
    assert address == predicted

    # Second call does not send anything
    assert deployer.deploy(init_code, salt=1) == address

.. warning ::

    The factory liveness is cached for the lifetime of the :py:class:`Create2Deployer`
    instance and never invalidated. If the factory code disappears from the chain later,
    the deployer does not notice.
"""

import dataclasses
import enum
import logging

from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3 import Web3

from eth_create2.address import (
    calculate_create2_address,
    calculate_create_address,
    encode_salt,
)
from eth_create2.chain_reader import ChainReader, Web3ChainReader
from eth_create2.factory import DETERMINISTIC_DEPLOYMENT_PROXY, FactoryIdentity
from eth_create2.gas import GasLimit, GasLimitMode, estimate_create2_deployment_gas
from eth_create2.init_code import normalise_init_code
from eth_create2.signer import DeploymentSigner

logger = logging.getLogger(__name__)


class FactoryBootstrapFailed(Exception):
    """The factory could not be deployed.

    Either the bootstrap transaction was mined and there still is no code
    at the factory address, or the bootstrap was refused before sending anything.
    """

    def __init__(self, tx_hash: HexBytes | None, msg: str):
        super().__init__(msg)
        self.tx_hash = tx_hash


class ContractDeploymentFailed(Exception):
    """Deployment transaction was mined, but no code appeared at the predicted address.

    Usually out of gas, or the init code reverted.
    """

    def __init__(self, tx_hash: HexBytes, address: ChecksumAddress, status: int | None, msg: str):
        super().__init__(msg)
        self.tx_hash = tx_hash
        self.address = address
        self.status = status


class FactoryBootstrapMethod(enum.Enum):
    """How to deploy the factory when it is missing."""

    #: Send the factory bytecode from our own signer account.
    #:
    #: Works everywhere, but the factory lands at
    #: ``CREATE(signer, signer nonce)``, not at the canonical address.
    signer_account = "signer_account"

    #: Fund the factory deployer account and broadcast the pre-signed bootstrap transaction.
    #:
    #: The factory lands at the canonical address, but only if the deployer account
    #: has never sent a transaction on this chain and the chain accepts the transaction
    #: signature.
    presigned_transaction = "presigned_transaction"


class Create2Deployer:
    """Deploy contracts at predictable addresses.

    - One instance per signer account

    - Not thread safe, calls block until transactions are mined
    """

    def __init__(
        self,
        reader: ChainReader,
        signer: DeploymentSigner,
        factory: FactoryIdentity = DETERMINISTIC_DEPLOYMENT_PROXY,
        bootstrap_method: FactoryBootstrapMethod = FactoryBootstrapMethod.signer_account,
    ):
        """Create a deployer.

        :param reader:
            Where we read code, balances and nonces

        :param signer:
            Who sends the transactions

        :param factory:
            Factory to use.

            Our copy is updated if the factory gets bootstrapped
            at a different address.

        :param bootstrap_method:
            How to deploy the factory when the chain does not have it
        """
        assert isinstance(reader, ChainReader), f"Got {type(reader)}"
        assert isinstance(signer, DeploymentSigner), f"Got {type(signer)}"
        assert isinstance(factory, FactoryIdentity), f"Got {type(factory)}"
        self.reader = reader
        self.signer = signer
        self.factory = factory
        self.bootstrap_method = bootstrap_method

        #: Set when we have seen code at the factory address.
        #:
        #: Never reset.
        self.factory_deployed = False

    def __repr__(self):
        return f"<Create2Deployer factory:{self.factory.address} signer:{self.signer.address} factory deployed:{self.factory_deployed}>"

    @staticmethod
    def create_for_web3(web3: Web3, signer: DeploymentSigner, **kwargs) -> "Create2Deployer":
        """Create a deployer reading chain state from a web3 connection."""
        return Create2Deployer(Web3ChainReader(web3), signer, **kwargs)

    @property
    def factory_address(self) -> ChecksumAddress:
        """Where the factory is, or is going to be."""
        return self.factory.address

    def is_factory_deployed(self) -> bool:
        """Check if the factory has code.

        Only a positive result is cached.
        """
        if self.factory_deployed:
            logger.debug("Factory %s known to be deployed", self.factory.address)
            return True

        if self.reader.has_code(self.factory.address):
            self.factory_deployed = True

        return self.factory_deployed

    def deploy_factory(self):
        """Deploy the factory, unless it is already deployed.

        Sends at most one transaction, plus a funding transaction
        for :py:attr:`FactoryBootstrapMethod.presigned_transaction`.

        :raise FactoryBootstrapFailed:
            The factory has no code after the bootstrap. Not retried.
        """
        if self.is_factory_deployed():
            return

        logger.info("Factory not found at %s, bootstrapping with %s", self.factory.address, self.bootstrap_method.name)

        match self.bootstrap_method:
            case FactoryBootstrapMethod.signer_account:
                tx_hash, receipt = self._bootstrap_from_signer()
            case FactoryBootstrapMethod.presigned_transaction:
                tx_hash, receipt = self._bootstrap_presigned()
            case _:
                raise NotImplementedError(f"Unknown bootstrap method: {self.bootstrap_method}")

        contract_address = receipt.get("contractAddress")
        if not contract_address:
            raise FactoryBootstrapFailed(tx_hash, f"fatal: bootstrap transaction {Web3.to_hex(tx_hash)} did not create a contract, status {receipt.get('status')}")

        contract_address = Web3.to_checksum_address(contract_address)
        if contract_address != self.factory.address:
            logger.info("Factory deployed at %s instead of %s", contract_address, self.factory.address)
            self.factory = dataclasses.replace(self.factory, address=contract_address)

        logger.info("Factory address: %s", self.factory.address)

        if not self.is_factory_deployed():
            raise FactoryBootstrapFailed(tx_hash, f"fatal: failed to deploy deterministic deployer, no code at {self.factory.address} after transaction {Web3.to_hex(tx_hash)}")

    def _bootstrap_from_signer(self) -> tuple[HexBytes, dict]:
        nonce = self.reader.get_transaction_count(self.signer.address)
        predicted = calculate_create_address(self.signer.address, nonce)
        if predicted != self.factory.address:
            logger.warning(
                "Factory bootstrapped from %s with nonce %d will land at %s, not at %s. Addresses of contracts deployed through it differ from other chains.",
                self.signer.address,
                nonce,
                predicted,
                self.factory.address,
            )

        tx_hash = self.signer.send_transaction(
            {
                "value": 0,
                "gas": self.factory.gas_limit,
                "data": self.factory.bytecode,
            }
        )
        logger.info("Factory bootstrap transaction %s sent from %s", Web3.to_hex(tx_hash), self.signer.address)
        return tx_hash, self.signer.wait_for_receipt(tx_hash)

    def _bootstrap_presigned(self) -> tuple[HexBytes, dict]:
        deployer = self.factory.deployer
        nonce = self.reader.get_transaction_count(deployer)
        if nonce != 0:
            raise FactoryBootstrapFailed(None, f"Factory deployer {deployer} has already sent {nonce} transactions, the pre-signed bootstrap transaction can no longer be mined")

        balance = self.reader.get_balance(deployer)
        if balance < self.factory.fee:
            top_up = self.factory.fee - balance
            logger.info("Funding factory deployer %s with %d wei", deployer, top_up)
            fund_hash = self.signer.send_transaction({"to": deployer, "value": top_up, "gas": 21_000})
            self.signer.wait_for_receipt(fund_hash)

        tx_hash = self.signer.send_raw_transaction(self.factory.raw_transaction)
        logger.info("Pre-signed factory bootstrap transaction %s broadcasted", Web3.to_hex(tx_hash))
        return tx_hash, self.signer.wait_for_receipt(tx_hash)

    def get_deployed_address(self, init_code, salt: int | bytes = 0) -> ChecksumAddress:
        """Predict where the init code lands when deployed through our factory.

        :param init_code:
            Anything :py:func:`eth_create2.init_code.normalise_init_code` accepts

        :param salt:
            256-bit salt
        """
        return calculate_create2_address(self.factory.address, salt, normalise_init_code(init_code))

    def get_deploy_call_data(self, init_code, salt: int | bytes = 0) -> HexBytes:
        """Factory call data: 32 bytes salt followed by the init code."""
        return HexBytes(encode_salt(salt) + normalise_init_code(init_code))

    def resolve_gas_limit(self, gas_limit: GasLimit, tx: dict, init_code: bytes) -> int:
        """Turn a gas limit choice into a number."""
        match gas_limit.mode:
            case GasLimitMode.estimate:
                return self.signer.estimate_gas(tx)
            case GasLimitMode.explicit:
                return gas_limit.value
            case GasLimitMode.manual:
                return estimate_create2_deployment_gas(init_code)
            case _:
                raise NotImplementedError(f"Unknown gas limit mode: {gas_limit.mode}")

    def deploy(
        self,
        init_code,
        salt: int | bytes = 0,
        gas_limit: GasLimit | int | str | None = None,
    ) -> ChecksumAddress:
        """Deploy a contract through the factory.

        - Deploys the factory first if needed

        - If the predicted address already has code, returns it without
          sending a transaction. Sending would revert, as the factory
          cannot create the same contract twice.

        :param init_code:
            Contract creation bytecode: bytes, hex string, transaction dict
            or web3.py ``ContractConstructor``

        :param salt:
            256-bit salt

        :param gas_limit:
            :py:class:`GasLimit`, or ``None`` to estimate from the init code size,
            ``"estimate"`` to ask the node, or an integer.

        :raise eth_create2.address.InvalidCreate2Argument:
            Bad salt, init code or gas limit

        :raise FactoryBootstrapFailed:
            Could not deploy the factory

        :raise ContractDeploymentFailed:
            Transaction was mined but the contract is not there

        :return:
            Contract address
        """
        # Reject bad input before any transaction is sent
        gas_limit = GasLimit.parse(gas_limit)
        init_code = normalise_init_code(init_code)
        encode_salt(salt)

        self.deploy_factory()

        address = calculate_create2_address(self.factory.address, salt, init_code)

        if self.reader.has_code(address):
            logger.info("Contract already deployed at %s, not deploying", address)
            return address

        tx = {
            "to": self.factory.address,
            "data": self.get_deploy_call_data(init_code, salt),
        }
        tx["gas"] = self.resolve_gas_limit(gas_limit, tx, init_code)

        logger.info("Deploying %d bytes of init code to %s, gas limit %d (%s)", len(init_code), address, tx["gas"], gas_limit.mode.name)

        tx_hash = self.signer.send_transaction(tx)
        receipt = self.signer.wait_for_receipt(tx_hash)

        if not self.reader.has_code(address):
            status = receipt.get("status")
            raise ContractDeploymentFailed(
                tx_hash,
                address,
                status,
                f"failed to deploy: no code at {address} after transaction {Web3.to_hex(tx_hash)}, status {status}, gas limit {tx['gas']}",
            )

        logger.info("Deployed %s in transaction %s", address, Web3.to_hex(tx_hash))
        return address
