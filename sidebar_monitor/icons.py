"""Conversation icon discovery and caching.

Rendered icons are cached as attributes on the row's avatar element (or on the
row when it has no avatar), so the avatar is rendered once per element rather
than on every list rebuild. The notification path reads the same attributes.
"""

from __future__ import annotations

import logging
from typing import Optional

from sidebar_monitor.config.schema import IconsConfig, SelectorTable
from sidebar_monitor.constants import EMPTY_ICON, ICON_ATTRIBUTE, ICON_UNREAD_ATTRIBUTE
from sidebar_monitor.errors import IconLoadError
from sidebar_monitor.protocols import DocumentTree, IconHandle, IconRenderer, Node

logger = logging.getLogger(__name__)


class IconResolver:
    def __init__(
        self,
        tree: DocumentTree,
        renderer: IconRenderer,
        selectors: SelectorTable,
        config: IconsConfig,
    ) -> None:
        self._tree = tree
        self._renderer = renderer
        self._selectors = selectors
        self._config = config

    def icon_host(self, row: Node) -> Node:
        """Element carrying the cached icon attributes for `row`."""
        avatar = self._tree.select_one(row, self._selectors.avatar)
        if avatar is not None:
            return avatar
        # List rows are the row's wrapper; notification rows are the [role=row] itself
        if not self._tree.matches(row, self._selectors.row):
            inner = self._tree.select_one(row, self._selectors.row)
            if inner is not None:
                return inner
        return row

    def cached_icon(self, row: Node, unread: bool = False) -> Optional[IconHandle]:
        attribute = ICON_UNREAD_ATTRIBUTE if unread else ICON_ATTRIBUTE
        return self._tree.get_attribute(self.icon_host(row), attribute) or None

    async def get_icon(self, row: Node, unread: bool) -> IconHandle:
        """Return the row's icon, rendering and caching it on first request."""
        host = self.icon_host(row)
        if not self._tree.get_attribute(host, ICON_ATTRIBUTE):
            await self._discover(host, self._tree.matches(host, self._selectors.avatar))
        attribute = ICON_UNREAD_ATTRIBUTE if unread else ICON_ATTRIBUTE
        return self._tree.get_attribute(host, attribute) or EMPTY_ICON

    async def _discover(self, host: Node, is_avatar: bool) -> None:
        url = self._tree.get_attribute(host, "src") if is_avatar else None
        if not url:
            url = self._fallback_url()

        read_icon = await self._render(url, unread=False)
        unread_icon = await self._render(url, unread=True)
        self._tree.set_attribute(host, ICON_ATTRIBUTE, read_icon)
        self._tree.set_attribute(host, ICON_UNREAD_ATTRIBUTE, unread_icon)

    def _fallback_url(self) -> str:
        logger.warning("Could not discover profile picture. Falling back to default image.")
        favicon = self._tree.select_one(self._tree.root(), self._selectors.favicon)
        href = self._tree.get_attribute(favicon, "href") if favicon is not None else None
        return href or self._config.default_url

    async def _render(self, url: str, unread: bool) -> IconHandle:
        try:
            return await self._renderer.render_icon(url, self._config.size, unread=unread)
        except IconLoadError as e:
            logger.error("Image not found %s: %s", url, e.reason or e)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Icon renderer failed for %s", url)
        return EMPTY_ICON
