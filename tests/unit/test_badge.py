"""Unit tests for the badge stabilizer and unread counting."""

import pytest

from sidebar_monitor.badge import BadgeStabilizer, count_unread
from sidebar_monitor.config.schema import BadgeConfig, IconsConfig, SelectorTable
from sidebar_monitor.dom import Document
from sidebar_monitor.extractor import ConversationExtractor
from sidebar_monitor.icons import IconResolver
from sidebar_monitor.models import BadgeState, NotificationState
from tests.conftest import FakeRenderer, RowSpec, sidebar_html


def _stabilizer(threshold=3):
    notification_state = NotificationState()
    stabilizer = BadgeStabilizer(BadgeState(), notification_state, BadgeConfig(zero_confirmation_threshold=threshold))
    return stabilizer, notification_state


@pytest.mark.parametrize(
    ("readings", "expected"),
    [
        ([2, 0, 0, 0], [2, 2, 2, 0]),
        ([2, 3, 0], [2, 3, 3]),
        ([0, 0, 0], [0, 0, 0]),
        ([1, 0, 0, 1, 0, 0, 0], [1, 1, 1, 1, 1, 1, 0]),
        ([4, 2], [4, 2]),
    ],
)
def test_evaluate_sequences(readings, expected):
    stabilizer, _ = _stabilizer()

    assert [stabilizer.evaluate(reading) for reading in readings] == expected


def test_threshold_is_configurable():
    stabilizer, _ = _stabilizer(threshold=1)

    assert [stabilizer.evaluate(r) for r in (3, 0)] == [3, 0]


def test_confirmed_zero_clears_notification_state():
    stabilizer, notification_state = _stabilizer()
    notification_state.record("/t/alice/", "Hello")

    stabilizer.evaluate(1)
    stabilizer.evaluate(0)
    stabilizer.evaluate(0)
    assert "/t/alice/" in notification_state

    stabilizer.evaluate(0)
    assert len(notification_state) == 0
    assert stabilizer.state == BadgeState(shown_count=0, consecutive_zero_readings=0)


def test_zero_readings_at_zero_keep_notification_state():
    stabilizer, notification_state = _stabilizer()
    notification_state.record("/t/alice/", "Hello")

    for _ in range(5):
        stabilizer.evaluate(0)

    assert "/t/alice/" in notification_state


def test_positive_reading_resets_zero_streak():
    stabilizer, _ = _stabilizer()

    stabilizer.evaluate(2)
    stabilizer.evaluate(0)
    stabilizer.evaluate(0)
    stabilizer.evaluate(2)

    assert stabilizer.state.consecutive_zero_readings == 0


def test_count_unread():
    selectors = SelectorTable()
    document = Document(
        sidebar_html(
            [
                RowSpec("alice", "Alice", unread=True),
                RowSpec("bob", "Bob"),
                RowSpec("carol", "Carol", unread=True),
            ],
            # Unread rows outside the grid are not conversations
            extra_body='<div role="row"><span>Unread message:</span></div>',
        )
    )
    icons = IconResolver(document, FakeRenderer(), selectors, IconsConfig())
    extractor = ConversationExtractor(document, selectors, icons)

    assert count_unread(document, extractor, selectors) == 2
