"""
PartScout utilities module.
"""

from partscout.utils.config import get_project_root, get_settings
from partscout.utils.events import (
    LifecycleEventBus,
    SessionEvent,
    get_lifecycle_events,
)
from partscout.utils.logging import (
    LogContext,
    bind_context,
    configure_logging,
    get_logger,
    unbind_context,
)

__all__ = [
    # Config
    "get_settings",
    "get_project_root",
    # Logging
    "get_logger",
    "configure_logging",
    "bind_context",
    "unbind_context",
    "LogContext",
    # Events
    "LifecycleEventBus",
    "SessionEvent",
    "get_lifecycle_events",
]
