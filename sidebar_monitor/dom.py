"""In-process document model with MutationObserver-style change batching.

Document wraps a BeautifulSoup tree (queries go through soupsieve) and
implements the DocumentTree capability the monitor consumes. Mutations made
through its methods are queued as MutationRecords for every observer whose
registration covers the changed node; flush() hands each observer its queued
records as one batch, the way a browser delivers them at a microtask
checkpoint. Hosts that replay a live page's changes (and tests building
synthetic sidebars) drive the monitor through this class.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Union

import soupsieve
from bs4 import BeautifulSoup, Comment, NavigableString, Tag

logger = logging.getLogger(__name__)

DomNode = Union[Tag, NavigableString]
ObserverCallback = Callable[[list["MutationRecord"], "MutationObserver"], None]
EventListener = Callable[[], None]


class MutationType(str, Enum):
    CHILD_LIST = "childList"
    ATTRIBUTES = "attributes"
    CHARACTER_DATA = "characterData"


@dataclass
class MutationRecord:
    """One low-level change, as reported to observers."""

    type: MutationType
    target: DomNode
    added_nodes: list[DomNode] = field(default_factory=list)
    removed_nodes: list[DomNode] = field(default_factory=list)
    attribute_name: Optional[str] = None
    old_value: Optional[str] = None


@dataclass(frozen=True)
class ObserverOptions:
    child_list: bool = False
    attributes: bool = False
    character_data: bool = False
    subtree: bool = False
    attribute_filter: Optional[frozenset[str]] = None

    def accepts(self, record: MutationRecord) -> bool:
        if record.type is MutationType.CHILD_LIST:
            return self.child_list
        if record.type is MutationType.CHARACTER_DATA:
            return self.character_data
        if not self.attributes:
            return False
        return self.attribute_filter is None or record.attribute_name in self.attribute_filter


def _is_inclusive_ancestor(ancestor: DomNode, node: Optional[DomNode]) -> bool:
    current = node
    while current is not None:
        if current is ancestor:
            return True
        current = current.parent
    return False


class MutationObserver:
    """Collects records for the subtrees it observes until the document flushes."""

    def __init__(self, document: Document, callback: ObserverCallback) -> None:
        self._document = document
        self._callback = callback
        self._registrations: list[tuple[DomNode, ObserverOptions]] = []
        self._pending: list[MutationRecord] = []

    def observe(self, target: DomNode, options: ObserverOptions) -> None:
        if not (options.child_list or options.attributes or options.character_data):
            raise ValueError("ObserverOptions must enable at least one of child_list, attributes, character_data")
        self._registrations = [(t, o) for t, o in self._registrations if t is not target]
        self._registrations.append((target, options))
        self._document._register(self)

    def disconnect(self) -> None:
        self._registrations.clear()
        self._pending.clear()
        self._document._unregister(self)

    def take_records(self) -> list[MutationRecord]:
        records, self._pending = self._pending, []
        return records

    def _interested_in(self, record: MutationRecord) -> bool:
        for target, options in self._registrations:
            if not options.accepts(record):
                continue
            if record.target is target:
                return True
            if options.subtree and _is_inclusive_ancestor(target, record.target):
                return True
        return False

    def _enqueue(self, record: MutationRecord) -> None:
        if self._interested_in(record):
            self._pending.append(record)

    def _deliver(self) -> bool:
        records = self.take_records()
        if not records:
            return False
        self._callback(records, self)
        return True


class Document:
    """A mutable HTML document implementing the DocumentTree capability."""

    def __init__(self, html: str = "", hidden: bool = False) -> None:
        # Keep class as a plain string so [class="..."] queries see the raw attribute
        self._soup = BeautifulSoup(html, "html.parser", multi_valued_attributes=None)
        self._observers: list[MutationObserver] = []
        self._listeners: dict[str, list[EventListener]] = {}
        self.hidden = hidden

    # --- DocumentTree -----------------------------------------------------

    def root(self) -> Tag:
        return self._soup

    def select(self, scope: Tag, query: str) -> list[Tag]:
        return list(scope.select(query))

    def select_one(self, scope: Tag, query: str) -> Optional[Tag]:
        return scope.select_one(query)

    def matches(self, node: DomNode, query: str) -> bool:
        if not isinstance(node, Tag) or isinstance(node, BeautifulSoup):
            return False
        return soupsieve.match(query, node)

    def closest(self, node: DomNode, query: str) -> Optional[Tag]:
        current = node if isinstance(node, Tag) else node.parent
        while current is not None and not isinstance(current, BeautifulSoup):
            if soupsieve.match(query, current):
                return current
            current = current.parent
        return None

    def parent(self, node: DomNode) -> Optional[Tag]:
        parent = node.parent
        if parent is None or isinstance(parent, BeautifulSoup):
            return None
        return parent

    def children(self, node: Tag) -> list[Tag]:
        return [child for child in node.children if isinstance(child, Tag)]

    def text(self, node: DomNode) -> str:
        if isinstance(node, Tag):
            return node.get_text()
        return "" if isinstance(node, Comment) else str(node)

    def substituted_text(self, node: DomNode, substitute: Callable[[Tag], Optional[str]]) -> str:
        if not isinstance(node, Tag):
            return self.text(node)
        parts: list[str] = []
        for child in node.children:
            if isinstance(child, Tag):
                replacement = substitute(child)
                parts.append(replacement if replacement is not None else self.substituted_text(child, substitute))
            elif not isinstance(child, Comment):
                parts.append(str(child))
        return "".join(parts)

    def get_attribute(self, node: DomNode, name: str) -> Optional[str]:
        if not isinstance(node, Tag):
            return None
        value = node.get(name)
        if value is None:
            return None
        return value if isinstance(value, str) else " ".join(value)

    def set_attribute(self, node: Tag, name: str, value: str) -> None:
        old_value = self.get_attribute(node, name)
        node[name] = value
        self._record(MutationRecord(MutationType.ATTRIBUTES, node, attribute_name=name, old_value=old_value))

    # --- Mutations --------------------------------------------------------

    def create_element(self, html: str) -> Tag:
        """Parse an HTML fragment and return its first element, detached."""
        fragment = BeautifulSoup(html, "html.parser", multi_valued_attributes=None)
        element = next((child for child in fragment.children if isinstance(child, Tag)), None)
        if element is None:
            raise ValueError(f"Fragment contains no element: {html!r}")
        return element.extract()

    def insert_child(self, parent: Tag, node: Union[Tag, str], index: Optional[int] = None) -> Tag:
        """Insert an element (or HTML fragment) under `parent`, appending by default."""
        element = self.create_element(node) if isinstance(node, str) else node
        if element.parent is not None:
            self.remove(element)
        if index is None:
            parent.append(element)
        else:
            parent.insert(index, element)
        self._record(MutationRecord(MutationType.CHILD_LIST, parent, added_nodes=[element]))
        return element

    def remove(self, node: DomNode) -> None:
        parent = node.parent
        if parent is None:
            return
        node.extract()
        self._record(MutationRecord(MutationType.CHILD_LIST, parent, removed_nodes=[node]))

    def replace_child(self, old: Tag, new: Union[Tag, str]) -> Tag:
        """Swap `old` for `new` in place (one childList record, like replaceWith)."""
        parent = old.parent
        if parent is None:
            raise ValueError("Cannot replace a detached node")
        element = self.create_element(new) if isinstance(new, str) else new
        old.replace_with(element)
        self._record(MutationRecord(MutationType.CHILD_LIST, parent, added_nodes=[element], removed_nodes=[old]))
        return element

    def remove_attribute(self, node: Tag, name: str) -> None:
        if name not in node.attrs:
            return
        old_value = self.get_attribute(node, name)
        del node[name]
        self._record(MutationRecord(MutationType.ATTRIBUTES, node, attribute_name=name, old_value=old_value))

    def set_text(self, node: DomNode, value: str) -> DomNode:
        """Change text.

        On a text node this is a characterData change; on an element it
        replaces all children with one text node (a childList change).
        Returns the node now holding the text.
        """
        if isinstance(node, Tag):
            removed = list(node.contents)
            node.clear()
            text_node = NavigableString(value)
            node.append(text_node)
            self._record(MutationRecord(MutationType.CHILD_LIST, node, added_nodes=[text_node], removed_nodes=removed))
            return text_node
        old_value = str(node)
        text_node = NavigableString(value)
        node.replace_with(text_node)
        self._record(MutationRecord(MutationType.CHARACTER_DATA, text_node, old_value=old_value))
        return text_node

    def text_nodes(self, element: Tag) -> list[NavigableString]:
        return [node for node in element.descendants if isinstance(node, NavigableString) and not isinstance(node, Comment)]

    # --- Observation ------------------------------------------------------

    def observe(self, target: DomNode, options: ObserverOptions, callback: ObserverCallback) -> MutationObserver:
        observer = MutationObserver(self, callback)
        observer.observe(target, options)
        return observer

    def flush(self) -> int:
        """Deliver pending records to observers.

        Repeats until no observer has pending records, since callbacks may
        mutate the document. Returns the number of batches delivered.
        """
        delivered = 0
        while True:
            progressed = False
            for observer in list(self._observers):
                if observer._deliver():
                    delivered += 1
                    progressed = True
            if not progressed:
                return delivered

    def _register(self, observer: MutationObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def _unregister(self, observer: MutationObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _record(self, record: MutationRecord) -> None:
        for observer in self._observers:
            observer._enqueue(record)

    # --- Window/page events -----------------------------------------------

    def add_event_listener(self, event: str, listener: EventListener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def remove_event_listener(self, event: str, listener: EventListener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def dispatch(self, event: str) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener()
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("Listener for %s failed", event)

    def focus(self) -> None:
        self.dispatch("focus")

    def set_hidden(self, hidden: bool) -> None:
        if hidden == self.hidden:
            return
        self.hidden = hidden
        self.dispatch("visibilitychange")

