"""Constants used across sidebar-monitor.

Values here are host-page facts and internal defaults that the YAML config
can override (see sidebar_monitor.config.schema).
"""

# Hidden screen-reader text the host page puts inside unread rows
UNREAD_MARKER_TEXT = "Unread message:"

# Attributes used to cache rendered icons on the avatar element
ICON_ATTRIBUTE = "data-sidebar-icon"
ICON_UNREAD_ATTRIBUTE = "data-sidebar-icon-unread"

# A valid zero-size image (what a failed avatar load renders to)
EMPTY_ICON = "data:,"

ICON_SIZE = 50
DEFAULT_ICON_URL = "https://facebook.com/favicon.ico"

# Notification text
FALLBACK_NOTIFICATION_BODY = "New message"
THUMBS_UP_ALIASES = ("(Y)", "(y)")
THUMBS_UP_GLYPH = "\U0001f44d"

# Badge debounce
ZERO_CONFIRMATION_THRESHOLD = 3  # Consecutive zero readings before the badge clears
BADGE_POLL_INTERVAL_S = 2.0

# Deferred element lookup
LOOKUP_POLL_INTERVAL_S = 0.1
LOOKUP_TIMEOUT_S = 10.0  # Give up on a missing element after this long

# Notification ids are folded into a positive 31-bit range
CONVERSATION_ID_MODULUS = 2_147_483_647

SUPPORTED_SELECTOR_VERSIONS = frozenset({1})
