"""Error types for sidebar-monitor.

Only ConfigError ever reaches a caller, and only at load time. Everything that
can go wrong while watching the page is recovered where it happens.
"""


class SidebarMonitorError(Exception):
    """Base class for sidebar-monitor errors."""


class ConfigError(SidebarMonitorError, ValueError):
    """Raised when the monitor configuration or selector table is invalid."""


class IconLoadError(SidebarMonitorError):
    """Raised by icon renderers when a source image cannot be loaded."""

    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        self.reason = reason
        message = f"Image not found: {url}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
