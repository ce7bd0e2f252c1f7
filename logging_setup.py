"""
Logging configuration for the app and the CLI.

Call setup_logging() once at an entry point. Every module logs through
logging.getLogger(__name__) with a bracketed component tag in the message.

Env:
  FLOODWATCH_LOG_LEVEL  level name (default INFO)
  FLOODWATCH_LOG_DIR    when set, also write a rotating floodwatch.log there
"""

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s - [%(levelname)s] - %(name)s - %(message)s"


def setup_logging(level: str | None = None, log_dir: str | None = None) -> logging.Logger:
    root = logging.getLogger()
    root.setLevel((level or os.getenv("FLOODWATCH_LOG_LEVEL", "INFO")).upper())

    # Repeated calls (Flask reloader, tests) must not stack handlers
    if getattr(root, "_floodwatch_configured", False):
        return root

    formatter = logging.Formatter(LOG_FORMAT)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    root.addHandler(stream)

    log_dir = log_dir or os.getenv("FLOODWATCH_LOG_DIR")
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handler = RotatingFileHandler(
            os.path.join(log_dir, "floodwatch.log"),
            maxBytes=5_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root._floodwatch_configured = True
    return root
