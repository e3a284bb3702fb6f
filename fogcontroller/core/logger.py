"""
Console logging for the server and the CLI.

Every module calls `setup_logger(__name__, include_location=True)`. Records go
to stdout, either as a human readable block or, with
`FOGCONTROLLER_LOG_FORMAT=json`, one JSON object per line. Fields pushed with
`LoggingContext` (CLI command, fog uuid...) are printed with each record.
"""
import json
import logging
import os
import re
import sys
import traceback
from datetime import datetime

from fogcontroller.core.logging_context import ContextFilter, LoggingContext

SUCCESS_LEVEL = 25
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

LOG_FORMAT_ENV = "FOGCONTROLLER_LOG_FORMAT"
LOG_LEVEL_ENV = "FOGCONTROLLER_LOG_LEVEL"

# LogRecord attributes that are not context fields
_RECORD_ATTRIBUTES = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}


class FogControllerLogger(logging.Logger):
    def success(self, message, *args, **kwargs):
        """Outcome of a CLI command that changed something."""
        if self.isEnabledFor(SUCCESS_LEVEL):
            self.log(SUCCESS_LEVEL, message, *args, stacklevel=2, **kwargs)


def context_fields(record: logging.LogRecord) -> dict:
    return {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES}


class ConsoleFormatter(logging.Formatter):

    def __init__(self, include_location=False):
        super().__init__("%(message)s")
        self.include_location = include_location

    def format(self, record):
        header = f"{datetime.now().isoformat()} [{record.levelname}]"
        fields = context_fields(record)
        scope = fields.pop("scope", None)
        if scope:
            header += f" {scope}"
        if self.include_location:
            header += f" {record.pathname}:{record.lineno} ({record.module}:{record.funcName})"

        first, *rest = record.getMessage().splitlines() or [""]
        lines = [header, f"     Message: {first}"]
        lines.extend(f"             {line}" for line in rest)
        if fields:
            lines.append("     " + " ".join(f"{key}: {value}" for key, value in fields.items()))
        text = "\n".join(lines)

        if record.exc_info:
            # "File path:line" is clickable in most terminals
            trace = "".join(traceback.format_exception(*record.exc_info))
            text += "\n" + re.sub(r'File "([^"]+)", line (\d+),', r'File "\1:\2"', trace)
        return text


class JSONFormatter(logging.Formatter):
    def format(self, record):
        entry = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **context_fields(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _level_from_env() -> int:
    name = os.environ.get(LOG_LEVEL_ENV, "DEBUG").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.DEBUG


def setup_logger(name: str, include_location=False, use_json=None):
    """
    Logger writing to stdout. `use_json` defaults to the
    FOGCONTROLLER_LOG_FORMAT environment variable.
    """
    if use_json is None:
        use_json = os.environ.get(LOG_FORMAT_ENV, "").strip().lower() == "json"

    logging.setLoggerClass(FogControllerLogger)
    logger = logging.getLogger(name)
    if not any(isinstance(f, ContextFilter) for f in logger.filters):
        logger.addFilter(ContextFilter())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter() if use_json else ConsoleFormatter(include_location=include_location))
        logger.addHandler(handler)
    logger.setLevel(_level_from_env())
    logger.propagate = False
    return logger


__all__ = ["setup_logger", "LoggingContext", "ConsoleFormatter", "JSONFormatter", "SUCCESS_LEVEL"]
