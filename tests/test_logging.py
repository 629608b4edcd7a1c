# tests/test_logging.py
import logging

import logging_setup

LOGGER_NAME = logging_setup.LOGGER_NAME


def _attach_caplog(caplog):
    """Attach caplog.handler to our named logger (propagate=False means root won't see it)."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(caplog.handler)
    return logger


def test_logger_includes_context(caplog):
    logging_setup.setup_logging(verbosity=1)  # INFO
    log = logging_setup.get_logger(course_id="_101_1", column="HW1")

    logger = _attach_caplog(caplog)
    try:
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            log.info("sequenced attempts", extra={"attempts": 3})
    finally:
        logger.removeHandler(caplog.handler)

    rec = next(r for r in caplog.records if r.message == "sequenced attempts")
    assert rec.course_id == "_101_1"
    assert rec.column == "HW1"
    assert rec.attempts == 3


def test_reserved_extra_keys_are_prefixed(caplog):
    logging_setup.setup_logging(verbosity=2)
    log = logging_setup.get_logger(course_id="_101_1")

    logger = _attach_caplog(caplog)
    try:
        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            log.debug("attempt seen", extra={"created": "2025-01-01", "column": "ignored"})
    finally:
        logger.removeHandler(caplog.handler)

    rec = next(r for r in caplog.records if r.message == "attempt seen")
    assert rec.meta_created == "2025-01-01"
    assert rec.column == "-"  # adapter default wins


def test_default_context_filter_unit():
    f = logging_setup.DefaultContextFilter()
    record = logging.LogRecord(
        name=LOGGER_NAME, level=logging.INFO, pathname=__file__, lineno=0, msg="no extras", args=(), exc_info=None,
    )
    assert f.filter(record) is True
    assert record.course_id == "-"
    assert record.column == "-"


def test_verbosity_levels():
    logging_setup.setup_logging(verbosity=0)
    assert logging.getLogger(LOGGER_NAME).level == logging.WARNING
    logging_setup.setup_logging(verbosity=2)
    assert logging.getLogger(LOGGER_NAME).level == logging.DEBUG
