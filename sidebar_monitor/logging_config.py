"""sidebar-monitor logging configuration.

All modules log through stdlib loggers named after their module
(`logging.getLogger(__name__)`). This sets up the shared handler once.
The level comes from `SIDEBAR_MONITOR_LOG_LEVEL` (default INFO).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure sidebar-monitor logging.

    Args:
        level: Optional override for `SIDEBAR_MONITOR_LOG_LEVEL`.
    """
    if level:
        os.environ["SIDEBAR_MONITOR_LOG_LEVEL"] = level

    level_name = os.getenv("SIDEBAR_MONITOR_LOG_LEVEL", "INFO").upper()
    logger = logging.getLogger("sidebar_monitor")
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
