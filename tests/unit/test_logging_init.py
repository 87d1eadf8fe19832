from __future__ import annotations

import logging
from io import StringIO

from audio_extract.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    set_debug,
    setup_logging,
)


def _capture() -> StringIO:
    """Point the application logger at a fresh buffer."""
    reset_logging()
    logger = setup_logging()
    buf = StringIO()
    logger.handlers[0].setStream(buf)
    return buf


def test_setup_logging_creates_logger_with_labeled_formatter():
    reset_logging()
    logger = setup_logging()
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    reset_logging()
    assert setup_logging() is setup_logging()
    assert get_logger() is setup_logging()


def test_labeled_prefixes():
    buf = _capture()
    logger = get_logger()
    logger.info("Parsing CSV file: a.csv")
    logger.warning("2 input rows merged into existing bundles")
    logger.error("Error parsing CSV: boom")
    log_summary("status=complete rows=1")
    lines = buf.getvalue().splitlines()
    assert lines == [
        "INFO Parsing CSV file: a.csv",
        "WARN 2 input rows merged into existing bundles",
        "ERROR Error parsing CSV: boom",
        "SUMMARY status=complete rows=1",
    ]


def test_module_loggers_propagate_to_application_logger():
    buf = _capture()
    logging.getLogger("audio_extract.services.pipeline").warning("from module")
    assert buf.getvalue() == "WARN from module\n"


def test_debug_hidden_until_enabled():
    buf = _capture()
    logger = get_logger()
    logger.debug("hidden")
    set_debug(True)
    logger.debug("shown")
    set_debug(False)
    logger.debug("hidden again")
    assert buf.getvalue() == "DEBUG shown\n"
    assert logger.level == logging.INFO


def test_summary_level_name_registered():
    reset_logging()
    setup_logging()
    assert logging.getLevelName(SUMMARY_LEVEL) == "SUMMARY"
