from __future__ import annotations

import logging

from roster_ingest.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()

    assert logger.name == LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert len(second.handlers) == 1


def test_debug_raises_verbosity_on_existing_logger():
    setup_logging()
    logger = setup_logging(debug=True)
    assert logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in logger.handlers)


def test_labeled_prefixes(capsys):
    logger = setup_logging()
    logger.info("hello")
    logger.warning("careful")
    logger.error("bad")
    log_summary("saved=1")

    out = capsys.readouterr().out.splitlines()
    assert out == ["INFO hello", "WARN careful", "ERROR bad", "SUMMARY saved=1"]


def test_module_loggers_share_the_handler(capsys):
    setup_logging()
    logging.getLogger("roster_ingest.services.pipeline").info("from a module")
    assert "INFO from a module" in capsys.readouterr().out


def test_get_logger_configures_on_first_use():
    reset_logging()
    assert get_logger().name == LOGGER_NAME


def test_summary_level_between_info_and_warning():
    assert logging.INFO < SUMMARY_LEVEL < logging.WARNING


def test_formatter_falls_back_to_level_name():
    record = logging.LogRecord("x", 5, __file__, 1, "trace", None, None)
    record.levelname = "TRACE"
    assert LabeledFormatter().format(record) == "TRACE trace"
