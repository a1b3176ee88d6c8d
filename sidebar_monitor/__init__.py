"""sidebar_monitor - conversation list, notifications and unread badge from a chat sidebar."""

from sidebar_monitor.badge import BadgeStabilizer, count_unread
from sidebar_monitor.config import MonitorConfig, SelectorTable, get_config
from sidebar_monitor.conversation_list import ConversationListBuilder
from sidebar_monitor.dom import Document, MutationObserver, MutationRecord, MutationType, ObserverOptions
from sidebar_monitor.errors import ConfigError, IconLoadError, SidebarMonitorError
from sidebar_monitor.extractor import ConversationExtractor
from sidebar_monitor.icons import IconResolver
from sidebar_monitor.models import BadgeState, Conversation, NotificationRequest, NotificationState
from sidebar_monitor.monitor import SidebarMonitor
from sidebar_monitor.notifications import NotificationDeduplicator
from sidebar_monitor.protocols import DocumentTree, IconRenderer
from sidebar_monitor.publisher import Publisher, Topic
from sidebar_monitor.scheduler import ReconciliationScheduler
from sidebar_monitor.utils import conversation_id

__version__ = "0.1.0"

__all__ = [
    "BadgeStabilizer",
    "BadgeState",
    "ConfigError",
    "Conversation",
    "ConversationExtractor",
    "ConversationListBuilder",
    "Document",
    "DocumentTree",
    "IconLoadError",
    "IconRenderer",
    "IconResolver",
    "MonitorConfig",
    "MutationObserver",
    "MutationRecord",
    "MutationType",
    "NotificationDeduplicator",
    "NotificationRequest",
    "NotificationState",
    "ObserverOptions",
    "Publisher",
    "ReconciliationScheduler",
    "SelectorTable",
    "SidebarMonitor",
    "SidebarMonitorError",
    "Topic",
    "conversation_id",
    "count_unread",
    "get_config",
]
