"""Reconciliation scheduler - the single consumer of monitor events.

Observer callbacks, the badge timer and focus/visibility listeners only put
events on one queue; run() drains it in arrival order, so the notification
and badge state are only ever touched from this one task.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Union

from sidebar_monitor.badge import BadgeStabilizer
from sidebar_monitor.conversation_list import ConversationListBuilder
from sidebar_monitor.dom import MutationObserver, MutationRecord
from sidebar_monitor.notifications import NotificationDeduplicator
from sidebar_monitor.publisher import Publisher, Topic
from sidebar_monitor.task_registry import TaskRegistry

logger = logging.getLogger(__name__)

REBUILD_TASK = "conversation-list-rebuild"


class BatchKind(str, Enum):
    LIST = "list"  # rows added/removed/restyled: rebuild the conversation list
    CONTENT = "content"  # text/image changes: check for new messages
    BADGE = "badge"  # rows added/removed: re-count unread


@dataclass
class MutationBatch:
    kind: BatchKind
    records: list[MutationRecord] = field(default_factory=list)


@dataclass
class TimerTick:
    pass


@dataclass
class FocusGained:
    pass


@dataclass
class VisibilityChanged:
    visible: bool


MonitorEvent = Union[MutationBatch, TimerTick, FocusGained, VisibilityChanged]


class ReconciliationScheduler:
    def __init__(
        self,
        list_builder: ConversationListBuilder,
        deduplicator: NotificationDeduplicator,
        badge: BadgeStabilizer,
        count_unread: Callable[[], int],
        publisher: Publisher,
        tasks: TaskRegistry,
        poll_interval: float,
    ) -> None:
        self._list_builder = list_builder
        self._deduplicator = deduplicator
        self._badge = badge
        self._count_unread = count_unread
        self._publisher = publisher
        self._tasks = tasks
        self._poll_interval = poll_interval
        self._queue: asyncio.Queue[MonitorEvent] = asyncio.Queue()
        self._rebuild_pending = False

    def submit(self, event: MonitorEvent) -> None:
        self._queue.put_nowait(event)

    def observer_callback(self, kind: BatchKind) -> Callable[[list[MutationRecord], MutationObserver], None]:
        """Callback for a document observer that forwards its batches as `kind`."""

        def _forward(records: list[MutationRecord], _observer: MutationObserver) -> None:
            self.submit(MutationBatch(kind, list(records)))

        return _forward

    async def run(self) -> None:
        """Drain the event queue until cancelled."""
        while True:
            event = await self._queue.get()
            try:
                await self.handle(event)
            except asyncio.CancelledError:
                raise
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("Failed to handle %s", type(event).__name__)
            finally:
                self._queue.task_done()

    async def run_timer(self) -> None:
        """Schedule a badge evaluation every poll interval.

        Catches anything the observers missed or that the host page changed
        without a mutation we subscribe to.
        """
        while True:
            await asyncio.sleep(self._poll_interval)
            self.submit(TimerTick())

    async def handle(self, event: MonitorEvent) -> None:
        if isinstance(event, MutationBatch):
            if event.kind is BatchKind.LIST:
                self.request_rebuild()
            elif event.kind is BatchKind.CONTENT:
                await self.process_content(event.records)
            else:
                await self.evaluate_badge()
        elif isinstance(event, (TimerTick, FocusGained)):
            await self.evaluate_badge()
        elif isinstance(event, VisibilityChanged):
            if event.visible:
                await self.evaluate_badge()
        else:
            logger.warning("Ignoring unknown monitor event %r", event)

    async def process_content(self, records: list[MutationRecord]) -> None:
        for request in self._deduplicator.process_batch(records):
            logger.info("Notifying new message in conversation %d", request.id)
            await self._publisher.publish(Topic.NOTIFICATION, request.model_dump())

    async def evaluate_badge(self) -> int:
        value = self._badge.evaluate(self._count_unread())
        await self._publisher.publish(Topic.UPDATE_TRAY_ICON, value)
        return value

    def request_rebuild(self) -> None:
        """Rebuild the conversation list in the background.

        Rebuilds may wait on icon rendering, so they never run on the consumer
        task. Requests made while one is running collapse into one more pass.
        """
        if self._tasks.is_running(REBUILD_TASK):
            self._rebuild_pending = True
            return
        self._tasks.spawn(self._rebuild(), name=REBUILD_TASK)

    async def _rebuild(self) -> None:
        while True:
            self._rebuild_pending = False
            try:
                await self._list_builder.send_conversation_list(self._publisher)
            except asyncio.CancelledError:
                raise
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("Conversation list rebuild failed")
            if not self._rebuild_pending:
                return

    async def drain(self) -> None:
        """Wait until every queued event and any running rebuild has been handled."""
        while True:
            await self._queue.join()
            task = self._tasks.get(REBUILD_TASK)
            if task is not None and not task.done():
                await asyncio.wait({task})
                continue
            if self._queue.empty():
                return
