"""Tests for CLI logging setup."""

from __future__ import annotations

import logging

import pytest

from learnsync.utils.logging import setup_logging


@pytest.fixture
def learnsync_logger():
    logger = logging.getLogger("learnsync")
    saved_handlers = list(logger.handlers)
    saved_level = logger.level
    yield logger
    logger.handlers = saved_handlers
    logger.setLevel(saved_level)


def _cli_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if h.get_name() == "learnsync-cli"]


class TestSetupLogging:
    @pytest.mark.parametrize(
        "verbose,quiet,level",
        [
            (False, False, logging.WARNING),
            (True, False, logging.DEBUG),
            (False, True, logging.ERROR),
        ],
    )
    def test_levels(self, learnsync_logger, verbose, quiet, level) -> None:
        setup_logging(verbose=verbose, quiet=quiet)

        assert learnsync_logger.level == level
        assert _cli_handlers(learnsync_logger)[0].level == level

    def test_info_is_hidden_by_default(self, learnsync_logger) -> None:
        setup_logging()

        assert not learnsync_logger.isEnabledFor(logging.INFO)
        assert learnsync_logger.isEnabledFor(logging.WARNING)

    def test_repeated_setup_keeps_one_handler(self, learnsync_logger) -> None:
        setup_logging()
        setup_logging(verbose=True)

        handlers = _cli_handlers(learnsync_logger)
        assert len(handlers) == 1
        assert handlers[0].level == logging.DEBUG
