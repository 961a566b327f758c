"""web3.py v6/v7 compatibility."""

from importlib.metadata import version

from packaging.version import Version

pkg_version = version("web3")
WEB3_PY_V7 = Version(pkg_version) >= Version("7.0.0")
