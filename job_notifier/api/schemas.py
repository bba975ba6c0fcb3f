"""Response models for the notification filter API."""

from typing import List, Optional

from pydantic import BaseModel, Field

from job_notifier.domain.models import MailboxEntry, NotificationSetting


class MessageResponse(BaseModel):
    message: str


class FilterCreatedResponse(MessageResponse):
    id: str = Field(..., description="Id of the new notification filter")


class NotificationFiltersResponse(BaseModel):
    notification_filters: List[NotificationSetting] = Field(
        default_factory=list, alias="notificationFilters"
    )

    model_config = {"populate_by_name": True}


class MailboxResponse(BaseModel):
    emails: List[MailboxEntry] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "ok"
    consumer: Optional[str] = Field(None, description="Consumer state, or 'disabled'")
