"""Background scheduling for the notification runtime."""

from .service import ReconnectScheduler

__all__ = ["ReconnectScheduler"]
