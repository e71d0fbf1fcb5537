"""Tests for logging configuration."""

import logging

from ledgerrecon.utils.logging_config import ROOT_LOGGER_NAME, get_logger, setup_logging


def test_get_logger_nests_under_package():
    assert get_logger("ledgerrecon.domain.account").name == "ledgerrecon.domain.account"
    assert get_logger("scripts.backfill").name == "ledgerrecon.scripts.backfill"


def test_setup_logging_replaces_handlers(tmp_path):
    setup_logging(level="INFO")
    logger = setup_logging(level="debug", log_file=str(tmp_path / "ledgerrecon.log"))

    assert logger.name == ROOT_LOGGER_NAME
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2

    get_logger("ledgerrecon.test").debug("written to file")
    for handler in logger.handlers:
        handler.flush()
    assert "written to file" in (tmp_path / "ledgerrecon.log").read_text()
    logger.handlers[0].close()


def test_unknown_level_falls_back_to_warning():
    assert setup_logging(level="chatty", console_output=False).level == logging.WARNING
