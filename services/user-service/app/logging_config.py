"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger.

    Calling this more than once replaces the previous handler instead of stacking
    duplicates, so the app factory can be invoked repeatedly in tests.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_user_service", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._user_service = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request at INFO; keep wallet chatter out of the service log
    logging.getLogger("httpx").setLevel(logging.WARNING)
