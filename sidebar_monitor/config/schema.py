from typing import List, Optional

import soupsieve
from pydantic import BaseModel, ConfigDict, Field, field_validator

from sidebar_monitor.constants import (
    BADGE_POLL_INTERVAL_S,
    DEFAULT_ICON_URL,
    FALLBACK_NOTIFICATION_BODY,
    ICON_SIZE,
    LOOKUP_POLL_INTERVAL_S,
    LOOKUP_TIMEOUT_S,
    SUPPORTED_SELECTOR_VERSIONS,
    THUMBS_UP_ALIASES,
    THUMBS_UP_GLYPH,
    UNREAD_MARKER_TEXT,
    ZERO_CONFIRMATION_THRESHOLD,
)


def _check_query(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Selector must not be empty")
    try:
        soupsieve.compile(value)
    except soupsieve.SelectorSyntaxError as e:
        raise ValueError(f"Invalid selector {value!r}: {e}") from e
    return value


class SelectorTable(BaseModel):
    """Structural queries against the host page.

    The host page changes its markup without notice, so the table is
    versioned and every query is compiled at load time.
    """

    model_config = ConfigDict(extra="allow")
    version: int = 1
    # Sidebar root, observed for mutations
    sidebar: str = "[role=navigation]:has([role=grid])"
    # Container whose direct children are the conversation rows
    conversation_list: str = '[role=navigation] [role=grid] [class="x1n2onr6"]'
    grid: str = "[role=grid]"
    row: str = "[role=row]"
    selected: str = "[role=row] [role=link] > div:only-child"
    permalink: str = '[role="link"]'
    avatar: str = "img"
    favicon: str = 'link[rel~="icon"]'
    unread_marker_candidates: str = "div, span"
    unread_marker_text: str = UNREAD_MARKER_TEXT
    # Title is the first match, body the second
    text_slots: str = '[class="x1lliihq x6ikm8r x10wlt62 x1n2onr6 xlyipyv xuxw1ft"]'
    # Tried in order; the first query matching anything supplies the label element
    label_candidates: List[str] = Field(
        default_factory=lambda: [
            ".a8c37x1j.ni8dbmo4.stjgntxs.l9j0dhe7 > span > span",
            '[class*="x1lliihq"][class*="x6ikm8r"][class*="x10wlt62"][class*="xlyipyv"][class*="xuxw1ft"]',
            '[class*="x1y1zt4g"]',
            "[aria-label]:not([role=button]):not([role=menu]):not([role=navigation])",
        ]
    )

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: int) -> int:
        if v not in SUPPORTED_SELECTOR_VERSIONS:
            raise ValueError(
                f"Unsupported selector table version {v}; supported: {sorted(SUPPORTED_SELECTOR_VERSIONS)}"
            )
        return v

    @field_validator(
        "sidebar",
        "conversation_list",
        "grid",
        "row",
        "selected",
        "permalink",
        "avatar",
        "favicon",
        "unread_marker_candidates",
        "text_slots",
    )
    @classmethod
    def validate_query(cls, v: str) -> str:
        return _check_query(v)

    @field_validator("label_candidates")
    @classmethod
    def validate_label_candidates(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one label candidate selector is required")
        return [_check_query(item) for item in v]

    @field_validator("unread_marker_text")
    @classmethod
    def validate_marker(cls, v: str) -> str:
        # Compared against trimmed text, so surrounding whitespace could never match
        if not v or v != v.strip():
            raise ValueError("unread_marker_text must be non-empty and carry no surrounding whitespace")
        return v

    @property
    def unread_rows(self) -> str:
        """Rows inside the grid, as counted for the badge."""
        return f"{self.grid} {self.row}"


class BadgeConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    poll_interval_s: float = Field(default=BADGE_POLL_INTERVAL_S, gt=0)
    zero_confirmation_threshold: int = Field(default=ZERO_CONFIRMATION_THRESHOLD, ge=1)


class IconsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    size: int = Field(default=ICON_SIZE, ge=1)
    default_url: str = DEFAULT_ICON_URL


class NotificationsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    fallback_body: str = FALLBACK_NOTIFICATION_BODY
    thumbs_up_aliases: List[str] = Field(default_factory=lambda: list(THUMBS_UP_ALIASES))
    thumbs_up_glyph: str = THUMBS_UP_GLYPH


class LookupConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    poll_interval_s: float = Field(default=LOOKUP_POLL_INTERVAL_S, gt=0)
    # None waits for the element forever
    timeout_s: Optional[float] = Field(default=LOOKUP_TIMEOUT_S, gt=0)


class MonitorConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    selectors: SelectorTable = Field(default_factory=SelectorTable)
    badge: BadgeConfig = Field(default_factory=BadgeConfig)
    icons: IconsConfig = Field(default_factory=IconsConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    lookup: LookupConfig = Field(default_factory=LookupConfig)
