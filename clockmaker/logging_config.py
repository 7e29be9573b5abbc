"""Logging configuration module for clockmaker.

Provides the logging setup used by the command-line runner and by
applications that want clockmaker's log output configured from the same
YAML file as their timers.
"""

import logging
import os
import re

from clockmaker.clockmaker_config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(module)s] %(message)s"


def _prepare_log_file(log_file: str, max_size: int) -> str:
    # Strip leading and trailing whitespace, collapse repeated slashes
    log_file = re.sub(r"/+", "/", log_file.strip())

    if not os.path.isabs(log_file):
        log_file = os.path.join(os.getcwd(), log_file)

    log_dir = os.path.dirname(log_file)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    # Keep only the tail of an oversized log file
    if os.path.exists(log_file) and os.path.getsize(log_file) > max_size:
        with open(log_file, "r+") as f:
            data = f.read()
            f.seek(0)
            f.write(data[len(data) - max_size :])
            f.truncate()

    return log_file


def configure_logging(logging_config: LoggingConfig) -> list[logging.Handler]:
    """Configure logging based on the provided logging configuration.

    Args:
        logging_config: Configuration object containing logging settings.

    Returns:
        The handlers installed on the root logger.
    """
    log_level = logging.getLevelName(logging_config.log_level.upper())
    max_size = logging_config.log_file_max_size * 1024 * 1024  # MB to bytes
    handlers: list[logging.Handler] = []

    if logging_config.log_file:
        log_file = _prepare_log_file(logging_config.log_file, max_size)
        handlers.append(logging.FileHandler(log_file))

    if not logging_config.disable_console_logging:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    for logger_name, level in (logging_config.loggers or {}).items():
        logging.getLogger(logger_name).setLevel(level.upper())

    return handlers
