"""
Loan engine log output

Every servicing step (origination, approval, allocation, penalty
assessment, cashout) is written as one JSON object per line so collection
agents can index loan and agent ids. A plain text layout is kept for
local runs.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Attributes log_action attaches to a record, in output order
STRUCTURED_FIELDS = ("correlation_id", "action", "resource", "extra")


class JSONFormatter(logging.Formatter):
    """Renders a record as a single JSON line"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Decimals and dates fall back to str
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", logger_name: str = "loanstar",
                  log_format: str = "json") -> logging.Logger:
    """
    Attach a single stream handler to the engine logger.

    Calling it again replaces the handler, so the level or layout can be
    switched at runtime.

    Args:
        level: Level name; unknown names fall back to INFO
        logger_name: Logger to configure, "loanstar" for the engine itself
        log_format: "json" for one object per line, "text" for TEXT_FORMAT

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if log_format == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    else:
        handler.setFormatter(JSONFormatter())

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Records stop here; the root logger never sees them twice
    logger.propagate = False

    return logger


def get_logger(name: str = "loanstar") -> logging.Logger:
    """Engine logger, or one of its children"""
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               action: Optional[str] = None, resource: Optional[str] = None,
               correlation_id: Optional[str] = None, extra: Optional[dict] = None):
    """
    Emit a servicing event with its loan context attached.

    Args:
        logger: Logger the event goes to
        level: Level name such as "info" or "warning"
        message: Human readable summary
        action: Event name, e.g. "allocate_payment"
        resource: Tagged id the event concerns, e.g. "loan:<id>"
        correlation_id: Request id carried across one API call
        extra: Amounts and other fields for the JSON line
    """
    log_level = getattr(logging, level.upper())
    if not logger.isEnabledFor(log_level):
        return

    record = logger.makeRecord(
        logger.name, log_level,
        __name__, 0, message, (), None
    )

    context = {
        "action": action,
        "resource": resource,
        "correlation_id": correlation_id,
        "extra": extra,
    }
    for name, value in context.items():
        if value:
            setattr(record, name, value)

    logger.handle(record)
