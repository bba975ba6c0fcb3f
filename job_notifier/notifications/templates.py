"""Mailbox entry construction using a Jinja2 text template.

The template sees ``sender``, ``company_name``, ``role``, ``job_id`` and the
truncated ``description``. StrictUndefined turns a missing variable into a
NotificationTemplateError instead of a silently blank mailbox entry.
"""

import logging
from typing import Dict, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from job_notifier.config.models import MailboxConfig
from job_notifier.domain.models import JobPostingEvent, MailboxEntry
from job_notifier.utils.text import capitalize_first, truncate_text
from job_notifier.utils.timestamps import to_epoch_millis

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


class MailboxEntryBuilder:
    """Builds the mailbox entry a matched candidate receives for a job."""

    def __init__(
        self,
        mailbox_config: Optional[MailboxConfig] = None,
        template_dir: str = "templates",
        context_template: str = "mailbox_context.txt.j2",
    ):
        self.config = mailbox_config or MailboxConfig()
        self.context_template_name = context_template

        # Plain text output, nothing to escape
        self.env = Environment(
            loader=PackageLoader("job_notifier.notifications", template_dir),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=False,
        )

        logger.debug(f"Initialized MailboxEntryBuilder with templates from {template_dir}")

    def sender_for(self, event: JobPostingEvent) -> str:
        """Display name of the sending company: first character upper-cased."""
        return capitalize_first(event.company_name)

    def build_context(self, event: JobPostingEvent) -> Dict[str, str]:
        return {
            "job_id": event.id,
            "sender": self.sender_for(event),
            "company_name": event.company_name,
            "role": event.role,
            "description": self._truncate(event.description),
        }

    def render_context(self, event: JobPostingEvent) -> str:
        """Render the human-readable notification text for a job.

        Raises:
            NotificationTemplateError: If template rendering fails
        """
        try:
            template = self.env.get_template(self.context_template_name)
            return template.render(self.build_context(event)).strip()
        except TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e

    def build(self, event: JobPostingEvent, date: Optional[int] = None) -> MailboxEntry:
        """Build the mailbox entry for a job.

        Args:
            event: The job posting being delivered
            date: Delivery time in epoch milliseconds (defaults to now)
        """
        return MailboxEntry(
            date=to_epoch_millis() if date is None else date,
            sender=self.sender_for(event),
            context=self.render_context(event),
        )

    def _truncate(self, description: str) -> str:
        return truncate_text(
            description, self.config.context_max_length, suffix=self.config.context_suffix
        )
