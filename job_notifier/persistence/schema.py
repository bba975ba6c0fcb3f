"""Database schema definition and ORM models.

A candidate record owns its notification filters and mailbox entries through
foreign keys. Filters and mailbox entries live in their own tables so every
write is a single-row INSERT, UPDATE, or DELETE; nothing rewrites a
candidate's whole collection.
"""

import logging
from typing import List, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    inspect,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from job_notifier.domain.models import Candidate, MailboxEntry, NotificationSetting
from job_notifier.utils.timestamps import format_timestamp, utc_now

logger = logging.getLogger(__name__)

Base = declarative_base()


def _now_str() -> str:
    return format_timestamp(utc_now(), include_microseconds=True)


class CandidateModel(Base):
    """ORM model for the candidates table (the fields this pipeline needs)."""

    __tablename__ = "candidates"

    id = Column(String(64), primary_key=True, nullable=False)
    full_name = Column(String(255), nullable=False, default="")
    email = Column(String(320), nullable=True)
    created_at = Column(String(50), nullable=False, default=_now_str)

    def to_domain(
        self,
        settings: Optional[List[NotificationSetting]] = None,
        mailbox: Optional[List[MailboxEntry]] = None,
    ) -> Candidate:
        return Candidate(
            id=self.id,
            full_name=self.full_name,
            email=self.email,
            notification_settings=settings or [],
            mailbox=mailbox or [],
        )

    @classmethod
    def from_domain(cls, candidate: Candidate) -> "CandidateModel":
        return cls(
            id=candidate.id,
            full_name=candidate.full_name,
            email=candidate.email,
            created_at=_now_str(),
        )


class NotificationSettingModel(Base):
    """ORM model for notification_settings table.

    ``seq`` preserves creation order; ``setting_id`` is the public filter id,
    unique among one candidate's filters only.
    A NULL criterion column means the criterion was absent.
    """

    __tablename__ = "notification_settings"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    setting_id = Column(String(64), nullable=False)
    candidate_id = Column(
        String(64), ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False
    )
    company_names = Column(JSON, nullable=True)
    job_roles = Column(JSON, nullable=True)
    keywords = Column(JSON, nullable=True)
    created_at = Column(String(50), nullable=False, default=_now_str)
    updated_at = Column(String(50), nullable=True)

    __table_args__ = (
        UniqueConstraint("candidate_id", "setting_id", name="uq_settings_candidate_setting"),
        Index("idx_settings_candidate", "candidate_id", "seq"),
    )

    def to_domain(self) -> NotificationSetting:
        return NotificationSetting(
            id=self.setting_id,
            company_names=self.company_names,
            job_roles=self.job_roles,
            keywords=self.keywords,
        )


class MailboxEntryModel(Base):
    """ORM model for mailbox_entries table.

    ``seq`` is the delivery order. ``job_id`` records which job event produced
    the entry; it is informational and deliberately not unique, so a
    redelivered event appends a second entry.
    """

    __tablename__ = "mailbox_entries"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    candidate_id = Column(
        String(64), ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False
    )
    date = Column(BigInteger, nullable=False)
    sender = Column(String(255), nullable=False)
    context = Column(Text, nullable=False)
    job_id = Column(String(64), nullable=True)
    delivered_at = Column(String(50), nullable=False, default=_now_str)

    __table_args__ = (Index("idx_mailbox_candidate", "candidate_id", "seq"),)

    def to_domain(self) -> MailboxEntry:
        return MailboxEntry(date=self.date, sender=self.sender, context=self.context)

    @classmethod
    def from_domain(
        cls, candidate_id: str, entry: MailboxEntry, job_id: Optional[str] = None
    ) -> "MailboxEntryModel":
        return cls(
            candidate_id=candidate_id,
            date=entry.date,
            sender=entry.sender,
            context=entry.context,
            job_id=job_id,
            delivered_at=_now_str(),
        )


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
