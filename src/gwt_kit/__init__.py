"""Git worktree, desktop notification and AI assistant helpers."""

from .assistants import AssistantLauncher, UsageError
from .config import KitConfig, load_config
from .notify import NotificationMessage, Notifier
from .worktree import CleanupReport, WorktreeError, WorktreeInfo, WorktreeManager

__all__ = [
    "AssistantLauncher",
    "CleanupReport",
    "KitConfig",
    "NotificationMessage",
    "Notifier",
    "UsageError",
    "WorktreeError",
    "WorktreeInfo",
    "WorktreeManager",
    "load_config",
]
