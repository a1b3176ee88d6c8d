"""Utility functions for sidebar-monitor."""

import asyncio
import logging
import os
import re
import time
from typing import Optional

from sidebar_monitor.constants import CONVERSATION_ID_MODULUS, LOOKUP_POLL_INTERVAL_S
from sidebar_monitor.protocols import DocumentTree, Node

logger = logging.getLogger(__name__)


def expand_env_vars(config: object) -> object:
    """Recursively expand environment variables in config.

    Replaces ${VAR} patterns with environment variable values. Unknown
    variables are left as-is.

    Args:
        config: Configuration object (dict, list, str, or primitive)

    Returns:
        Configuration with all known ${VAR} patterns replaced
    """
    if isinstance(config, dict):
        return {k: expand_env_vars(v) for k, v in config.items()}  # type: ignore[misc]
    if isinstance(config, list):
        return [expand_env_vars(item) for item in config]
    if isinstance(config, str):

        def replace_env_var(match: re.Match[str]) -> str:
            env_var = match.group(1)
            return os.getenv(env_var, match.group(0))

        return re.sub(r"\$\{([^}]+)\}", replace_env_var, config)
    return config


def conversation_id(permalink: str) -> int:
    """Derive a stable numeric notification id from a conversation permalink.

    Rolling hash over code points: hash = (hash * 31 + cp) mod 2147483647.
    The notification collaborator uses it to replace earlier notifications
    for the same conversation.
    """
    value = 0
    for char in permalink:
        value = (value * 31 + ord(char)) % CONVERSATION_ID_MODULUS
    return value


async def wait_for_element(
    tree: DocumentTree,
    query: str,
    poll_interval: float = LOOKUP_POLL_INTERVAL_S,
    timeout: Optional[float] = None,
) -> Optional[Node]:
    """Wait until an element matching `query` exists in the document.

    Args:
        tree: Document to query
        query: Structural query for the element
        poll_interval: Seconds between lookups
        timeout: Give up after this many seconds (None = wait forever)

    Returns:
        The element, or None if the timeout expired first
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        element = tree.select_one(tree.root(), query)
        if element is not None:
            return element
        if deadline is not None and time.monotonic() >= deadline:
            logger.debug("Element %s did not appear within %.1fs", query, timeout)
            return None
        await asyncio.sleep(poll_interval)
