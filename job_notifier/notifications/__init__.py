"""Mailbox delivery for matched job postings.

Public API:
    - MailboxDeliveryService: fans one job event out to matching candidate mailboxes
    - MailboxEntryBuilder: renders the entry a candidate receives
    - DeliveryResult: outcome of one delivery
    - NotificationError, NotificationTemplateError
"""

from .models import DeliveryResult, NotificationError, NotificationTemplateError
from .service import MailboxDeliveryService
from .templates import MailboxEntryBuilder

__all__ = [
    "MailboxDeliveryService",
    "MailboxEntryBuilder",
    "DeliveryResult",
    "NotificationError",
    "NotificationTemplateError",
]
