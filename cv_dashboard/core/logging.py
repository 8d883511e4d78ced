"""Structured logging configuration.

Services log snake_case event names with their context passed through
``extra={...}``.  ``ContextFormatter`` renders that context as ``key=value``
pairs after the message, so ``candidates_fetch_completed`` shows up with its
batch, page and record counts.  The level comes from ``settings.LOG_LEVEL``.
"""

import logging
import sys

from cv_dashboard.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

# Chatty transport loggers (supabase -> postgrest/storage -> httpx)
_QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "uvicorn.access")


class ContextFormatter(logging.Formatter):
    """Formatter appending ``extra`` context to the message."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_FIELDS and not key.startswith("_")
        }
        if not context:
            return line
        pairs = " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))
        return f"{line} | {pairs}"


def setup_logging() -> None:
    """Install a single stdout handler on the root logger.

    Safe to call more than once: previously installed handlers (uvicorn's
    included) are dropped.
    """
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(ContextFormatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
