"""Outbound topics and the publish seam to the host process."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from sidebar_monitor.protocols import PublishCallback

logger = logging.getLogger(__name__)


class Topic(str, Enum):
    CONVERSATIONS = "conversations"
    NOTIFICATION = "notification"
    UPDATE_TRAY_ICON = "update-tray-icon"


class Publisher:
    """Delivers payloads to the host through a sync or async callback.

    Delivery failures are logged and dropped: the monitor must keep running
    whatever the transport does.
    """

    def __init__(self, callback: PublishCallback) -> None:
        self._callback = callback

    async def publish(self, topic: Topic, payload: object) -> bool:
        try:
            result = self._callback(topic.value, payload)
            if asyncio.iscoroutine(result):
                await result
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Publishing to %s failed", topic.value)
            return False
        return True
