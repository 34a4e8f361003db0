"""Track GitHub repository issues by label and notify Telegram chats."""

__version__ = "0.1.0"

__all__ = [
    "actions",
    "errors",
    "keyboards",
    "messaging",
    "pagination",
    "poller",
    "repo_entity",
    "repository",
    "storage",
]