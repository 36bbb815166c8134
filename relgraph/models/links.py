"""
Relationship edges with confidence scores.

Each edge is unique on its pair. Writers upsert; on conflict the stored
confidence only moves up.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, Float, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from relgraph.db.base import Base
from relgraph.models.base_model import utc_now


def _confidence_check(table: str) -> CheckConstraint:
    return CheckConstraint(
        "confidence >= 0 AND confidence <= 1",
        name=f"ck_{table}_confidence",
    )


class MeetingCompanyLink(Base):
    """Meeting <-> company edge."""

    __tablename__ = "meeting_company_links"

    meeting_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("meetings.id", ondelete="CASCADE"),
        primary_key=True,
    )

    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("org_companies.id"),
        primary_key=True,
        index=True,
    )

    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)

    linked_by: Mapped[str] = mapped_column(String(20), nullable=False, default="manual")  # manual, auto, backfill

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (_confidence_check("meeting_company_links"),)


class EmailCompanyLink(Base):
    """Email message <-> company edge, with the reason the message matched."""

    __tablename__ = "email_company_links"

    message_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("email_messages.id", ondelete="CASCADE"),
        primary_key=True,
    )

    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("org_companies.id"),
        primary_key=True,
        index=True,
    )

    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)

    linked_by: Mapped[str] = mapped_column(String(20), nullable=False, default="auto")

    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (_confidence_check("email_company_links"),)


class EmailContactLink(Base):
    """Email message <-> contact edge."""

    __tablename__ = "email_contact_links"

    message_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("email_messages.id", ondelete="CASCADE"),
        primary_key=True,
    )

    contact_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("contacts.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)

    linked_by: Mapped[str] = mapped_column(String(20), nullable=False, default="auto")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (_confidence_check("email_contact_links"),)
