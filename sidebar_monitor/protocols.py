"""Protocol definitions for the capabilities the monitor consumes."""

from typing import Any, Awaitable, Callable, Optional, Protocol, Union, runtime_checkable

# Nodes are opaque to the core; only the tree that produced them can inspect them.
Node = Any

IconHandle = str


@runtime_checkable
class DocumentTree(Protocol):
    """Read/annotate access to the externally owned document.

    Every lookup is optional: absence is reported as None or an empty list,
    never as an exception.
    """

    def root(self) -> Node:
        """Return the document root element."""
        ...

    def select(self, scope: Node, query: str) -> list[Node]:
        """Return all elements under `scope` matching `query`, in document order."""
        ...

    def select_one(self, scope: Node, query: str) -> Optional[Node]:
        """Return the first element under `scope` matching `query`."""
        ...

    def matches(self, node: Node, query: str) -> bool:
        """Return True if `node` is an element matching `query`."""
        ...

    def closest(self, node: Node, query: str) -> Optional[Node]:
        """Return the nearest ancestor-or-self element matching `query`."""
        ...

    def parent(self, node: Node) -> Optional[Node]:
        """Return the parent element of any node (element or text)."""
        ...

    def children(self, node: Node) -> list[Node]:
        """Return the element children of `node`."""
        ...

    def text(self, node: Node) -> str:
        """Return the concatenated text content of `node`."""
        ...

    def substituted_text(self, node: Node, substitute: Callable[[Node], Optional[str]]) -> str:
        """Return text content with some descendant elements replaced.

        `substitute` is called top-down for descendant elements; a string
        result replaces that element's whole subtree, None descends into it.
        The tree itself is not modified.
        """
        ...

    def get_attribute(self, node: Node, name: str) -> Optional[str]:
        """Return an attribute value, or None if the node has no such attribute."""
        ...

    def set_attribute(self, node: Node, name: str, value: str) -> None:
        """Set an attribute on an element."""
        ...


@runtime_checkable
class IconRenderer(Protocol):
    """Turns an avatar URL into a small round icon handle."""

    async def render_icon(self, source_url: str, size: int, unread: bool = False) -> IconHandle:
        """Render the icon at `source_url`.

        Args:
            source_url: Image URL (avatar, favicon or default site icon)
            size: Edge length in pixels
            unread: Render the variant carrying the unread marker dot

        Returns:
            Icon handle (typically a data URL)

        Raises:
            IconLoadError: If the image cannot be loaded
        """
        ...


PublishCallback = Callable[[str, object], Union[None, Awaitable[None]]]
