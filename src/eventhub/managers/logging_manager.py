"""
# Logging Manager

Central factory for application loggers.

Every module obtains its logger through `get_logger()`. Loggers share one
stream handler configured on first use, and an optional **prefix** tags every
message from a subsystem so log lines can be filtered without structured
logging infrastructure:

```python
from eventhub.managers.logging_manager import get_logger

logger = get_logger()
db_logger = get_logger(prefix="[DATABASE]")

db_logger.info("Connected to %s", "eventhub")
# 2026-10-19 12:00:00,000 - EventHub - INFO - [DATABASE] Connected to eventhub
```

The level comes from `settings.LOG_LEVEL`.
"""

import logging
import sys
from typing import Any, MutableMapping, Tuple

from eventhub.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured_loggers = set()


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix to every message."""

    def __init__(self, logger: logging.Logger, prefix: str = ""):
        super().__init__(logger, {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        if self.prefix:
            return f"{self.prefix} {msg}", kwargs
        return msg, kwargs


def _configure(logger: logging.Logger) -> None:
    if logger.name in _configured_loggers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))
    logger.propagate = False
    _configured_loggers.add(logger.name)


def get_logger(name: str = "EventHub", prefix: str = "") -> PrefixedLoggerAdapter:
    """
    Return a logger for `name`, tagging each message with `prefix`.

    Args:
        name: Logger name. All application modules share the default name so a
            single handler serves the whole process.
        prefix: Text prepended to each message, e.g. `"[DATABASE]"`.

    Returns:
        A `PrefixedLoggerAdapter` exposing the usual `debug`/`info`/`warning`/
        `error`/`exception` methods.
    """
    logger = logging.getLogger(name)
    _configure(logger)
    return PrefixedLoggerAdapter(logger, prefix)
