"""Monitor configuration.

Resolution order for the config file:
    1. explicit path passed to get_config()
    2. SIDEBAR_MONITOR_CONFIG (from the environment or a .env file)
    3. ~/.sidebar-monitor/config.yml
Missing files yield the built-in defaults.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from sidebar_monitor.config.loader import DEFAULT_CONFIG_PATH, load_config, load_monitor_config
from sidebar_monitor.config.schema import (
    BadgeConfig,
    IconsConfig,
    LookupConfig,
    MonitorConfig,
    NotificationsConfig,
    SelectorTable,
)

load_dotenv()


def get_config(path: Optional[Path] = None) -> MonitorConfig:
    """Load the monitor configuration from the resolved config path."""
    if path is None:
        env_path = os.getenv("SIDEBAR_MONITOR_CONFIG")
        path = Path(env_path).expanduser() if env_path else DEFAULT_CONFIG_PATH.expanduser()
    return load_monitor_config(path)


__all__ = [
    "BadgeConfig",
    "IconsConfig",
    "LookupConfig",
    "MonitorConfig",
    "NotificationsConfig",
    "SelectorTable",
    "get_config",
    "load_config",
    "load_monitor_config",
]
