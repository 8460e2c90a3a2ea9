"""Logging setup for the learnsync CLI.

Modules use the standard pattern:

    import logging
    logger = logging.getLogger(__name__)

and the CLI entry point calls setup_logging() once per invocation.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_HANDLER_NAME = "learnsync-cli"


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the learnsync logger to write to the current stderr."""
    logger = logging.getLogger("learnsync")
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    for existing in list(logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
