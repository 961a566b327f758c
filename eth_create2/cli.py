"""Command line deployment.

Deploy init code through the factory, configured with environment variables,
see :py:mod:`eth_create2.env`.

.. code-block:: shell

    export JSON_RPC_URL=http://localhost:8545
    export INIT_CODE=0x69602a60005260206000f3600052600a6016f3
    export SALT=1
    eth-create2-deploy

"""

import logging

from eth_typing import ChecksumAddress
from web3 import HTTPProvider, Web3

from eth_create2.deployer import Create2Deployer
from eth_create2.env import DeployConfig, read_deploy_config
from eth_create2.hotwallet import HotWallet
from eth_create2.signer import DeploymentSigner, HotWalletSigner, NodeAccountSigner
from eth_create2.utils import setup_console_logging

logger = logging.getLogger(__name__)


def create_signer(web3: Web3, config: DeployConfig) -> DeploymentSigner:
    """Sign locally if we have a private key, otherwise use the first node account."""
    if config.private_key:
        hot_wallet = HotWallet.from_private_key(config.private_key)
        hot_wallet.sync_nonce(web3)
        return HotWalletSigner(web3, hot_wallet)

    accounts = web3.eth.accounts
    assert accounts, "PRIVATE_KEY not set and the node does not have unlocked accounts"
    return NodeAccountSigner(web3, accounts[0])


def run_deploy(web3: Web3, config: DeployConfig) -> ChecksumAddress:
    """Deploy the configured init code.

    :return:
        Contract address
    """
    signer = create_signer(web3, config)
    deployer = Create2Deployer.create_for_web3(web3, signer, bootstrap_method=config.bootstrap_method)

    logger.info("Connected to chain %d, deploying as %s", web3.eth.chain_id, signer.address)
    logger.info("Predicted address before factory check: %s", deployer.get_deployed_address(config.init_code, config.salt))

    return deployer.deploy(config.init_code, config.salt, config.gas_limit)


def main():
    """Console script entry point."""
    setup_console_logging(default_log_level="info")
    config = read_deploy_config()
    logger.info("Using %s", config)
    web3 = Web3(HTTPProvider(config.json_rpc_url))
    address = run_deploy(web3, config)
    print(f"Contract deployed at {address}")


if __name__ == "__main__":
    main()
