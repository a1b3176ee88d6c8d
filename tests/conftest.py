"""Pytest configuration and shared fixtures for sidebar-monitor tests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import pytest

from sidebar_monitor.config.schema import MonitorConfig
from sidebar_monitor.dom import Document
from sidebar_monitor.errors import IconLoadError

TEXT_SLOT_CLASS = "x1lliihq x6ikm8r x10wlt62 x1n2onr6 xlyipyv xuxw1ft"
FAVICON_URL = "https://static.example.test/favicon.ico"


def pytest_collection_modifyitems(config, items):
    """Set per-marker timeouts: unit=1s, integration=5s."""
    for item in items:
        if "unit" in item.keywords:
            item.add_marker(pytest.mark.timeout(1))
        elif "integration" in item.keywords:
            item.add_marker(pytest.mark.timeout(5))


@pytest.fixture(autouse=True)
def _sidebar_monitor_debug_logs():
    logging.getLogger("sidebar_monitor").setLevel(logging.DEBUG)
    yield


@dataclass
class RowSpec:
    """One synthetic sidebar row."""

    slug: str
    title: str
    body: Optional[str] = None
    unread: bool = False
    selected: bool = False
    avatar: bool = True
    href: Optional[str] = None


def row_html(row: RowSpec) -> str:
    href = row.href if row.href is not None else f"/t/{row.slug}/"
    link_attr = f' href="{href}"' if href else ""
    avatar = f'<img src="https://cdn.example.test/{row.slug}.jpg" alt="">' if row.avatar else ""
    body = f'<span class="{TEXT_SLOT_CLASS}">{row.body}</span>' if row.body is not None else ""
    marker = '<span class="sr-only">Unread message:</span>' if row.unread else ""
    # A selected row's link holds a single div; others carry a second, empty one
    padding = "" if row.selected else '<div class="pad"></div>'
    return (
        f'<div class="wrapper" data-slug="{row.slug}">'
        '<div role="row"><div role="gridcell">'
        f'<a role="link"{link_attr}>'
        f"<div>{avatar}"
        f'<div class="texts"><span class="{TEXT_SLOT_CLASS}">{row.title}</span>{body}</div>'
        f"{marker}</div>"
        f"{padding}"
        "</a></div></div></div>"
    )


def sidebar_html(rows: list[RowSpec], favicon: bool = True, extra_body: str = "") -> str:
    icon_link = f'<link rel="icon" href="{FAVICON_URL}">' if favicon else ""
    return (
        f"<html><head>{icon_link}</head><body>"
        '<div role="navigation" aria-label="Thread list"><div role="grid"><div class="x1n2onr6">'
        + "".join(row_html(row) for row in rows)
        + '<div class="footer">Loading more...</div>'
        "</div></div></div>"
        f"{extra_body}</body></html>"
    )


class FakeRenderer:
    """IconRenderer stand-in that records calls and can fail on chosen URLs."""

    def __init__(self, fail_urls: tuple[str, ...] = ()) -> None:
        self.fail_urls = set(fail_urls)
        self.calls: list[tuple[str, int, bool]] = []

    async def render_icon(self, source_url: str, size: int, unread: bool = False) -> str:
        self.calls.append((source_url, size, unread))
        if source_url in self.fail_urls:
            raise IconLoadError(source_url, "404")
        variant = "unread" if unread else "read"
        return f"icon:{source_url}:{variant}"


class PublishRecorder:
    """Publish callback collecting (topic, payload) pairs."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, object]] = []

    def __call__(self, topic: str, payload: object) -> None:
        self.messages.append((topic, payload))

    def payloads(self, topic: str) -> list[object]:
        return [payload for t, payload in self.messages if t == topic]


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def recorder() -> PublishRecorder:
    return PublishRecorder()


@pytest.fixture
def config() -> MonitorConfig:
    # Long poll interval: tests trigger badge evaluations explicitly
    return MonitorConfig.model_validate({"badge": {"poll_interval_s": 60}, "lookup": {"timeout_s": 0.05}})


@pytest.fixture
def make_document() -> Callable[..., Document]:
    def _make(rows: list[RowSpec], **kwargs: object) -> Document:
        return Document(sidebar_html(rows, **kwargs))  # type: ignore[arg-type]

    return _make
