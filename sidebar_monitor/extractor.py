"""Conversation extraction - turns one sidebar row into a Conversation.

Only structural heuristics are available: role attributes, position and text.
Class names in the selector table are a snapshot of the host page and are
expected to rot; every lookup here tolerates absence.
"""

from __future__ import annotations

import logging
from typing import Optional

from sidebar_monitor.config.schema import NotificationsConfig, SelectorTable
from sidebar_monitor.icons import IconResolver
from sidebar_monitor.models import Conversation
from sidebar_monitor.protocols import DocumentTree, Node

logger = logging.getLogger(__name__)


class ConversationExtractor:
    def __init__(
        self,
        tree: DocumentTree,
        selectors: SelectorTable,
        icons: IconResolver,
        notifications: Optional[NotificationsConfig] = None,
    ) -> None:
        self._tree = tree
        self._selectors = selectors
        self._icons = icons
        self._notifications = notifications or NotificationsConfig()

    @property
    def icons(self) -> IconResolver:
        return self._icons

    def is_unread(self, row: Node) -> bool:
        """Detect the visually hidden "unread" label the host page adds for screen readers.

        Exact match on trimmed text of a leaf element; localized or restyled
        markers are not recognized.
        """
        marker = self._selectors.unread_marker_text
        for candidate in self._tree.select(row, self._selectors.unread_marker_candidates):
            if self._tree.children(candidate):
                continue
            if self._tree.text(candidate).strip() == marker:
                return True
        return False

    def is_selected(self, row: Node) -> bool:
        return self._tree.select_one(row, self._selectors.selected) is not None

    def label_element(self, row: Node) -> Optional[Node]:
        # Attribute-based candidates can match several elements; the first is the name
        for query in self._selectors.label_candidates:
            candidates = self._tree.select(row, query)
            if candidates:
                return candidates[0]
        return None

    def label(self, row: Node) -> str:
        element = self.label_element(row)
        if element is None:
            return ""

        label = self._tree.text(element)

        if not label.strip():
            aria_label = self._tree.get_attribute(element, "aria-label")
            if aria_label and aria_label.strip():
                label = aria_label

        if not label.strip():
            # Emoji-only names are rendered as images; read them back from alt text
            label = self._tree.substituted_text(element, lambda child: self._child_image_alt(element, child))

        return label.strip()

    def _child_image_alt(self, element: Node, child: Node) -> Optional[str]:
        if self._tree.parent(child) is not element:
            return None
        image = child if self._tree.matches(child, "img") else self._tree.select_one(child, "img")
        if image is None:
            return ""
        return self._tree.get_attribute(image, "alt") or ""

    def text_slot(self, node: Node) -> str:
        """Text of a title/body slot, with emoji images turned back into text.

        Each image's parent element is replaced by the image's alt text; the
        host page's thumbs-up aliases become the thumbs-up glyph.
        """
        return self._tree.substituted_text(node, self._image_parent_alt)

    def _image_parent_alt(self, element: Node) -> Optional[str]:
        image = next((child for child in self._tree.children(element) if self._tree.matches(child, "img")), None)
        if image is None:
            return None
        alt = self._tree.get_attribute(image, "alt") or ""
        if alt in self._notifications.thumbs_up_aliases:
            return self._notifications.thumbs_up_glyph
        return alt

    async def extract(self, row: Node) -> Conversation:
        unread = self.is_unread(row)
        return Conversation(
            label=self.label(row),
            unread=unread,
            icon=await self._icons.get_icon(row, unread),
            selected=self.is_selected(row),
        )
