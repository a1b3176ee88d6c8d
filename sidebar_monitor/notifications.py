"""Notification deduplicator - mutation batches in, notification requests out.

The sidebar exposes neither message ids nor timestamps, so the last notified
body text per conversation is the only way to tell a new message from the
host page re-rendering an old one.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sidebar_monitor.config.schema import NotificationsConfig, SelectorTable
from sidebar_monitor.dom import MutationRecord, MutationType
from sidebar_monitor.extractor import ConversationExtractor
from sidebar_monitor.models import NotificationRequest, NotificationState
from sidebar_monitor.protocols import DocumentTree, Node
from sidebar_monitor.utils import conversation_id

logger = logging.getLogger(__name__)


class NotificationDeduplicator:
    def __init__(
        self,
        tree: DocumentTree,
        extractor: ConversationExtractor,
        selectors: SelectorTable,
        state: NotificationState,
        config: Optional[NotificationsConfig] = None,
    ) -> None:
        self._tree = tree
        self._extractor = extractor
        self._selectors = selectors
        self._state = state
        self._config = config or NotificationsConfig()

    def resolve_row(self, record: MutationRecord) -> Optional[Node]:
        """Find the conversation row a mutation belongs to.

        For childList records the target is already the changed parent; for
        attribute and text records the target is the node itself, so go up
        one level first.
        """
        if record.type is MutationType.CHILD_LIST:
            target: Optional[Node] = record.target
        else:
            target = self._tree.parent(record.target)
        if target is None:
            return None

        row = self._tree.closest(target, self._selectors.row)
        if row is not None or record.type is not MutationType.CHILD_LIST:
            return row

        # A whole row was (re)inserted, e.g. a conversation moving to the top
        for node in record.added_nodes:
            if self._tree.matches(node, self._selectors.row):
                return node
        return None

    def process_batch(self, records: Sequence[MutationRecord]) -> list[NotificationRequest]:
        already_checked: set[str] = set()
        requests: list[NotificationRequest] = []

        # Latest mutation first, so the freshest state of a row wins
        for record in reversed(records):
            row = self.resolve_row(record)
            if row is None:
                continue

            # Other [role=row] elements on the page are not conversations
            if self._tree.closest(row, self._selectors.grid) is None:
                continue

            link = self._tree.select_one(row, self._selectors.permalink)
            identity = self._tree.get_attribute(link, "href") if link is not None else None
            if not identity:
                continue

            if identity in already_checked:
                continue
            already_checked.add(identity)

            if not self._extractor.is_unread(row):
                continue

            request = self._build_request(row, identity)
            if request is not None:
                requests.append(request)

        return requests

    def _build_request(self, row: Node, identity: str) -> Optional[NotificationRequest]:
        icon = self._extractor.icons.cached_icon(row)
        slots = self._tree.select(row, self._selectors.text_slots)
        title = self._extractor.text_slot(slots[0]) if slots else ""
        body = self._extractor.text_slot(slots[1]) if len(slots) > 1 else None

        if not title or not icon:
            logger.debug("Skipping unread row %s without title or icon", identity)
            return None

        content = body or ""
        if self._state.last_content(identity) == content:
            logger.debug("Suppressing repeat notification for %s", identity)
            return None
        self._state.record(identity, content)

        return NotificationRequest(
            id=conversation_id(identity),
            title=title,
            body=body or self._config.fallback_body,
            icon=icon,
            silent=False,
        )
