"""
Contact models.

A contact is a person seen in meetings or email. A contact may own several
email addresses; exactly one of them is primary and mirrored on
contacts.email.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from relgraph.db.base import Base
from relgraph.models.base_model import TimestampedModel, utc_now


CONTACT_TYPES = ("investor", "founder", "operator")


class Contact(TimestampedModel):
    """
    Contact table - a person resolved from attendee lists or email.
    """

    __tablename__ = "contacts"

    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Only set when the full name splits into exactly two tokens
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    normalized_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        index=True,
    )

    # Denormalized primary email; always equals the primary contact_emails row
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )

    primary_company_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("org_companies.id"),
        nullable=True,
        index=True,
    )

    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    contact_type: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
    )  # investor, founder, operator

    linkedin_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)


class ContactEmail(Base):
    """
    Email address owned by a contact.

    At most one row per contact has is_primary set; the partial unique index
    makes the store reject a second one.
    """

    __tablename__ = "contact_emails"

    contact_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("contacts.id", ondelete="CASCADE"),
        primary_key=True,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
    )

    is_primary: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_contact_emails_email"),
        Index("ix_contact_emails_contact", "contact_id"),
        Index(
            "uq_contact_emails_single_primary",
            "contact_id",
            unique=True,
            sqlite_where=text("is_primary = 1"),
            postgresql_where=text("is_primary"),
        ),
    )


class OrgCompanyContact(Base):
    """Edge between a company and a contact (primary or secondary affiliation)."""

    __tablename__ = "org_company_contacts"

    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("org_companies.id"),
        primary_key=True,
    )

    contact_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("contacts.id", ondelete="CASCADE"),
        primary_key=True,
    )

    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
