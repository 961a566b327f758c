"""Console logging for the command line tool."""

import logging
import os

import coloredlogs

#: Loggers that report every JSON-RPC request at debug level
NOISY_LOGGERS = ("web3", "urllib3")


def setup_console_logging(default_log_level: str = "warning") -> logging.Logger:
    """Set up coloured log output.

    :param default_log_level:
        Used when ``LOG_LEVEL`` environment variable is not set

    :raise ValueError:
        Unknown log level name

    :return:
        Root logger
    """
    level_name = os.environ.get("LOG_LEVEL") or default_log_level
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")

    coloredlogs.install(level=level, fmt="%(asctime)s %(name)-30s %(levelname)-8s %(message)s", datefmt="%H:%M:%S")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logging.getLogger()
