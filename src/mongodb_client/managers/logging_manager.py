"""
# Logging Manager

Central access point for loggers. Every module obtains its logger through
`get_logger()`, optionally with a bracketed prefix that tags the subsystem:

```python
logger = get_logger()
db_logger = get_logger(prefix="[DATABASE]")

db_logger.info("Connection attempt %d", 1)
# 2026-01-01 12:00:00,000 INFO mongodb_client [DATABASE] Connection attempt 1
```

`setup_logging()` is called once by the CLI before anything else logs. It
installs a single stderr handler on the package logger so repeated calls (for
example from tests) do not duplicate output.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple, Union

LOGGER_NAME = "mongodb_client"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_HANDLER_NAME = "mongodb_client-stderr"


class PrefixedLogger(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed subsystem prefix to every message."""

    def __init__(self, logger: logging.Logger, prefix: str = ""):
        super().__init__(logger, {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        if self.prefix:
            return f"{self.prefix} {msg}", kwargs
        return msg, kwargs


def get_logger(name: str = LOGGER_NAME, prefix: str = "") -> PrefixedLogger:
    """
    Return a prefix-aware logger.

    Args:
        name: Logger name; defaults to the package logger.
        prefix: Optional tag such as `"[DB_HEALTH]"` prepended to each message.
    """
    return PrefixedLogger(logging.getLogger(name), prefix)


def setup_logging(level: Union[int, str] = logging.INFO, stream: Optional[Any] = None) -> logging.Logger:
    """Configure the package logger with a single stream handler."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    handler = next((h for h in logger.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    handler.setLevel(level)
    return logger
