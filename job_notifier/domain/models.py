"""Core domain models for job events, notification filters, and mailboxes.

Wire and storage formats use camelCase names (``companyName``,
``notificationSettings``); Python code uses snake_case attributes. Every model
accepts either spelling on input and emits camelCase with ``by_alias=True``.

- JobPostingEvent: the unit published to the broker
- NotificationSetting: one saved filter owned by a candidate
- MailboxEntry: one delivered notification
- Candidate: external candidate record embedding filters and mailbox
"""

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class JobPostingEvent(BaseModel):
    """Normalized job posting as published to the broker.

    Immutable once constructed. ``company_name`` and ``role`` are expected to be
    normalized (lower-cased, single-spaced) by the publisher; the model only
    enforces that they are present.
    """

    id: str = Field(..., min_length=1, description="Generator-assigned unique job id")
    company_name: str = Field(..., alias="companyName", description="Hiring company")
    role: str = Field(..., description="Job role")
    description: str = Field("", description="Full job description text")

    model_config = {
        "populate_by_name": True,
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "id": "5f0c6c1e-3d5b-4a8e-9a51-0d7d1f1a2b3c",
                "companyName": "globex",
                "role": "backend engineer",
                "description": "Build pipelines for our data platform.",
            }
        },
    }

    @field_validator("company_name", "role")
    @classmethod
    def require_non_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v):
        return "" if v is None else v

    def to_wire(self) -> dict:
        """Return the camelCase wire representation."""
        return self.model_dump(by_alias=True)


class NotificationSettingInput(BaseModel):
    """The three optional match criteria of a notification filter.

    ``None`` (absent) and ``[]`` (empty) both mean the dimension imposes no
    constraint; they are stored and returned exactly as given.
    """

    company_names: Optional[List[str]] = Field(None, alias="companyNames")
    job_roles: Optional[List[str]] = Field(None, alias="jobRoles")
    keywords: Optional[List[str]] = Field(None, alias="keywords")

    model_config = {"populate_by_name": True}


class NotificationSetting(NotificationSettingInput):
    """A saved notification filter with its candidate-scoped id."""

    id: str = Field(..., min_length=1, description="Filter id, unique within the candidate")

    def criteria(self) -> NotificationSettingInput:
        """Return just the match criteria (no id)."""
        return NotificationSettingInput(
            company_names=self.company_names,
            job_roles=self.job_roles,
            keywords=self.keywords,
        )


class MailboxEntry(BaseModel):
    """One delivered notification in a candidate's mailbox."""

    date: int = Field(..., ge=0, description="Delivery time in epoch milliseconds")
    sender: str = Field(..., description="Display name of the sending company")
    context: str = Field(..., description="Human-readable notification text")


class Candidate(BaseModel):
    """Candidate record as owned by the external candidate store.

    Accepts the candidate data-file format (``_id``, ``notificationSettings``,
    ``mailbox``) so existing candidate collections can be imported as-is;
    unrelated fields in that format are ignored.
    """

    id: str = Field(..., alias="_id", min_length=1, description="Candidate id")
    full_name: str = Field("", description="Display name")
    email: Optional[EmailStr] = Field(None, description="Contact address")
    notification_settings: List[NotificationSetting] = Field(
        default_factory=list, alias="notificationSettings"
    )
    mailbox: List[MailboxEntry] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("notification_settings", "mailbox", mode="before")
    @classmethod
    def null_list_is_empty(cls, v):
        return [] if v is None else v
