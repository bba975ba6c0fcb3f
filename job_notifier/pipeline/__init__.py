"""Process-level wiring of the notification pipeline."""

from .runtime import NotificationRuntime

__all__ = ["NotificationRuntime"]
