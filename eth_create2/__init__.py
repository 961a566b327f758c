"""eth_create2 package root.

Deploy contracts at addresses that are known before deployment,
through a CREATE2 factory contract.

- :py:mod:`eth_create2.address` for address calculation
- :py:mod:`eth_create2.deployer` for deployment
"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 10)


def _check_python_version():
    """Try early abort if the Python version is too old."""

    # Use Python tuple comparison for version numbers
    # https://stackoverflow.com/a/1093331/315168
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"eth-create2 needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()
