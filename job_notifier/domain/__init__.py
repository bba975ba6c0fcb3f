"""Core domain models for the notification pipeline."""

from .models import (
    Candidate,
    JobPostingEvent,
    MailboxEntry,
    NotificationSetting,
    NotificationSettingInput,
)

__all__ = [
    "Candidate",
    "JobPostingEvent",
    "MailboxEntry",
    "NotificationSetting",
    "NotificationSettingInput",
]
