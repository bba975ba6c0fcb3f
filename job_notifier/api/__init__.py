"""HTTP surface: notification filter CRUD and mailbox listing."""

from .app import create_app

__all__ = ["create_app"]
