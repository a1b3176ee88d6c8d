"""Badge stabilizer - debounces the unread count shown on the tray/dock badge.

The host page briefly drops its unread markers while re-rendering (for
example when the window gains focus). A rise in the count is shown at once;
a drop to zero is only trusted after several consecutive zero readings.
"""

from __future__ import annotations

import logging

from sidebar_monitor.config.schema import BadgeConfig, SelectorTable
from sidebar_monitor.extractor import ConversationExtractor
from sidebar_monitor.models import BadgeState, NotificationState
from sidebar_monitor.protocols import DocumentTree

logger = logging.getLogger(__name__)


class BadgeStabilizer:
    def __init__(
        self,
        state: BadgeState,
        notification_state: NotificationState,
        config: BadgeConfig,
    ) -> None:
        self._state = state
        self._notification_state = notification_state
        self._threshold = config.zero_confirmation_threshold

    @property
    def state(self) -> BadgeState:
        return self._state

    def evaluate(self, unread_count: int) -> int:
        """Fold one instantaneous reading into the badge state.

        Returns:
            The badge value to publish
        """
        state = self._state
        if unread_count > 0:
            state.shown_count = unread_count
            state.consecutive_zero_readings = 0
        elif state.shown_count > 0:
            state.consecutive_zero_readings += 1
            if state.consecutive_zero_readings >= self._threshold:
                logger.info("Unread count confirmed at zero; clearing badge")
                state.shown_count = 0
                state.consecutive_zero_readings = 0
                # Caught up: old dedup entries must not hide a repeated future message
                self._notification_state.clear()
        return state.shown_count


def count_unread(tree: DocumentTree, extractor: ConversationExtractor, selectors: SelectorTable) -> int:
    """Number of grid rows currently carrying the unread marker.

    The sidebar shows no per-conversation message counts, so the badge
    counts conversations, not messages.
    """
    rows = tree.select(tree.root(), selectors.unread_rows)
    return sum(1 for row in rows if extractor.is_unread(row))
