# logging_setup.py
from __future__ import annotations

import logging
import logging.config

LOGGER_NAME = "blackboard_grabber"


class DefaultContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "course_id"):
            record.course_id = "-"
        if not hasattr(record, "column"):
            record.column = "-"
        return True


def setup_logging(verbosity: int = 1) -> None:
    """
    Configure a consistent logger for the project.
    - WARNING at 0, INFO at 1, DEBUG when verbosity >= 2
    - Always prints course_id and column so logs are grep-able.
    - Writes to stderr; module loggers under utils.* share the handler.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    fmt = (
        "%(asctime)s %(levelname)s "
        "course=%(course_id)s column=%(column)s "
        "%(message)s"
    )

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"std": {"format": fmt}},
        "filters": {
            "default_context": {"()": DefaultContextFilter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "std",
                "level": level,
                "filters": ["default_context"],
            }
        },
        "loggers": {
            LOGGER_NAME: {"handlers": ["console"], "level": level, "propagate": False},
            "utils": {"handlers": ["console"], "level": level, "propagate": False},
        },
    })


class _Adapter(logging.LoggerAdapter):
    """LoggerAdapter that ensures course_id and column keys exist, and avoids LogRecord collisions."""

    _RESERVED = {
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module", "lineno", "funcName",
        "created", "asctime", "msecs", "relativeCreated", "thread", "threadName", "processName", "process",
        "exc_info", "exc_text", "stack_info", "stacklevel", "message",
    }

    def process(self, msg, kwargs):
        extra = dict(self.extra)
        user_extra = kwargs.get("extra") or {}
        for k, v in user_extra.items():
            key = k if k not in self._RESERVED else f"meta_{k}"
            if key not in extra:  # don't clobber adapter defaults
                extra[key] = v
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(*, course_id: str, column: str = "-") -> logging.LoggerAdapter:
    """
    Create a logger bound to course_id + column.
    Usage:
        log = get_logger(course_id="_123_1", column="HW1")
        log.info("sequenced attempts", extra={"count": 12})
    """
    base = logging.getLogger(LOGGER_NAME)
    return _Adapter(base, extra={"course_id": course_id, "column": column})
