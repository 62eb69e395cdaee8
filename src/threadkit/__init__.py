"""threadkit package exports."""

from .config import Settings, settings
from .domain import ConversationEngine, Thread, ThreadRegistry, ToolRegistry
from .service import create_thread_registry

__all__ = [
    "ConversationEngine",
    "Settings",
    "Thread",
    "ThreadRegistry",
    "ToolRegistry",
    "create_thread_registry",
    "settings",
]
