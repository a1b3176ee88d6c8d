"""Sidebar monitor - owns the state for one watched page and wires it together."""

from __future__ import annotations

import logging
from typing import Optional

from sidebar_monitor.badge import BadgeStabilizer, count_unread
from sidebar_monitor.config.schema import MonitorConfig
from sidebar_monitor.conversation_list import ConversationListBuilder
from sidebar_monitor.dom import Document, MutationObserver, ObserverOptions
from sidebar_monitor.extractor import ConversationExtractor
from sidebar_monitor.icons import IconResolver
from sidebar_monitor.models import BadgeState, NotificationState
from sidebar_monitor.notifications import NotificationDeduplicator
from sidebar_monitor.protocols import IconRenderer, Node, PublishCallback
from sidebar_monitor.publisher import Publisher
from sidebar_monitor.scheduler import BatchKind, FocusGained, ReconciliationScheduler, VisibilityChanged
from sidebar_monitor.task_registry import TaskRegistry
from sidebar_monitor.utils import wait_for_element

logger = logging.getLogger(__name__)

# Row restyles show up as class changes; rows coming and going as childList
LIST_OBSERVER = ObserverOptions(child_list=True, attributes=True, subtree=True, attribute_filter=frozenset({"class"}))
# New message text, and emoji images swapped in the preview
CONTENT_OBSERVER = ObserverOptions(
    child_list=True,
    attributes=True,
    character_data=True,
    subtree=True,
    attribute_filter=frozenset({"src", "alt"}),
)
BADGE_OBSERVER = ObserverOptions(child_list=True, subtree=True)


class SidebarMonitor:
    """Watches one page's conversation sidebar.

    Each instance holds its own notification and badge state, so several
    monitors can run side by side.

    Example:
        monitor = SidebarMonitor(document, renderer, publish)
        await monitor.start()
        ...
        await monitor.stop()
    """

    def __init__(
        self,
        document: Document,
        renderer: IconRenderer,
        publish: PublishCallback,
        config: Optional[MonitorConfig] = None,
    ) -> None:
        self.config = config or MonitorConfig()
        selectors = self.config.selectors

        self.document = document
        self.notification_state = NotificationState()
        self.badge_state = BadgeState()
        self.publisher = Publisher(publish)

        self.icons = IconResolver(document, renderer, selectors, self.config.icons)
        self.extractor = ConversationExtractor(document, selectors, self.icons, self.config.notifications)
        self.list_builder = ConversationListBuilder(document, self.extractor, selectors, self.config.lookup)
        self.deduplicator = NotificationDeduplicator(
            document, self.extractor, selectors, self.notification_state, self.config.notifications
        )
        self.badge = BadgeStabilizer(self.badge_state, self.notification_state, self.config.badge)

        self._tasks = TaskRegistry()
        self.scheduler = ReconciliationScheduler(
            list_builder=self.list_builder,
            deduplicator=self.deduplicator,
            badge=self.badge,
            count_unread=lambda: count_unread(document, self.extractor, selectors),
            publisher=self.publisher,
            tasks=self._tasks,
            poll_interval=self.config.badge.poll_interval_s,
        )
        self._observers: list[MutationObserver] = []
        self._sidebar: Optional[Node] = None

    @property
    def running(self) -> bool:
        return bool(self._observers)

    async def start(self) -> bool:
        """Attach to the sidebar once it exists and start reconciling.

        Returns:
            False if the sidebar never appeared (within lookup.timeout_s)
        """
        if self.running:
            return True

        lookup = self.config.lookup
        sidebar = await wait_for_element(
            self.document,
            self.config.selectors.sidebar,
            poll_interval=lookup.poll_interval_s,
            timeout=lookup.timeout_s,
        )
        if sidebar is None:
            logger.error("Could not find sidebar %s; monitor stays idle", self.config.selectors.sidebar)
            return False
        self._sidebar = sidebar

        for options, kind in (
            (LIST_OBSERVER, BatchKind.LIST),
            (CONTENT_OBSERVER, BatchKind.CONTENT),
            (BADGE_OBSERVER, BatchKind.BADGE),
        ):
            self._observers.append(self.document.observe(sidebar, options, self.scheduler.observer_callback(kind)))

        await self.scheduler.evaluate_badge()
        self.scheduler.request_rebuild()

        self._tasks.spawn(self.scheduler.run(), name="reconciliation-consumer")
        self._tasks.spawn(self.scheduler.run_timer(), name="badge-poll")

        self.document.add_event_listener("focus", self._on_focus)
        self.document.add_event_listener("visibilitychange", self._on_visibility_change)

        logger.info("Sidebar monitor started")
        return True

    async def stop(self, timeout: float = 1.0) -> None:
        for observer in self._observers:
            observer.disconnect()
        self._observers.clear()
        self.document.remove_event_listener("focus", self._on_focus)
        self.document.remove_event_listener("visibilitychange", self._on_visibility_change)
        await self._tasks.shutdown(timeout=timeout)
        logger.info("Sidebar monitor stopped")

    async def settle(self) -> None:
        """Deliver pending mutations and wait until they have been handled."""
        self.document.flush()
        await self.scheduler.drain()

    def _on_focus(self) -> None:
        self.scheduler.submit(FocusGained())

    def _on_visibility_change(self) -> None:
        self.scheduler.submit(VisibilityChanged(visible=not self.document.hidden))
