"""Data models for conversation state derived from the sidebar."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict

from sidebar_monitor.protocols import IconHandle


class Conversation(BaseModel):
    """One sidebar entry, rebuilt from scratch on every list rebuild."""

    model_config = ConfigDict(frozen=True)

    label: str
    unread: bool = False
    icon: Optional[IconHandle] = None
    selected: bool = False


class NotificationRequest(BaseModel):
    """Payload for the `notification` topic."""

    id: int
    title: str
    body: str
    icon: IconHandle
    silent: bool = False


@dataclass
class BadgeState:
    """Debounced badge counter; see BadgeStabilizer for the transitions."""

    shown_count: int = 0
    consecutive_zero_readings: int = 0


class NotificationState:
    """Last notified body text per conversation permalink.

    An entry exists only once a notification has fired for that permalink.
    """

    def __init__(self) -> None:
        self._last_content: dict[str, str] = {}

    def last_content(self, identity: str) -> Optional[str]:
        return self._last_content.get(identity)

    def record(self, identity: str, content: str) -> None:
        self._last_content[identity] = content

    def clear(self) -> None:
        self._last_content.clear()

    def __contains__(self, identity: object) -> bool:
        return identity in self._last_content

    def __len__(self) -> int:
        return len(self._last_content)

    def __iter__(self) -> Iterator[str]:
        return iter(self._last_content)
