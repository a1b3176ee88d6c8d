"""Conversation list builder - full rebuild of the sidebar as Conversations."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sidebar_monitor.config.schema import LookupConfig, SelectorTable
from sidebar_monitor.extractor import ConversationExtractor
from sidebar_monitor.models import Conversation
from sidebar_monitor.protocols import DocumentTree
from sidebar_monitor.publisher import Publisher, Topic
from sidebar_monitor.utils import wait_for_element

logger = logging.getLogger(__name__)


class ConversationListBuilder:
    """Rebuilds the whole list on every call.

    The sidebar holds tens of rows, so a full rebuild is cheap and avoids
    tracking row identity across the host page's re-renders.
    """

    def __init__(
        self,
        tree: DocumentTree,
        extractor: ConversationExtractor,
        selectors: SelectorTable,
        lookup: Optional[LookupConfig] = None,
    ) -> None:
        self._tree = tree
        self._extractor = extractor
        self._selectors = selectors
        self._lookup = lookup or LookupConfig()

    async def build(self) -> list[Conversation]:
        query = self._selectors.conversation_list
        container = await wait_for_element(
            self._tree,
            query,
            poll_interval=self._lookup.poll_interval_s,
            timeout=self._lookup.timeout_s,
        )
        if container is None:
            logger.error("Could not find conversation list %s", query)
            return []

        # The host page always appends one non-conversation element after the rows
        rows = self._tree.children(container)[:-1]

        conversations = await asyncio.gather(*(self._extractor.extract(row) for row in rows))
        return [conversation for conversation in conversations if conversation.label]

    async def send_conversation_list(self, publisher: Publisher) -> list[Conversation]:
        conversations = await self.build()
        await publisher.publish(Topic.CONVERSATIONS, [c.model_dump() for c in conversations])
        logger.debug("Published %d conversations", len(conversations))
        return conversations
