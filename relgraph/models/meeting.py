"""
Meeting and email message records.

Only the fields the resolution engine reads are modelled here; recording,
transcripts and message bodies belong to their own subsystems.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import String, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from relgraph.db.base import Base
from relgraph.models.base_model import TimestampedModel, utc_now
from relgraph.utils.json_lists import dump_string_list, parse_string_list


PARTICIPANT_ROLES = ("from", "to", "cc", "bcc", "reply_to")


class Meeting(TimestampedModel):
    """
    Meeting table - attendees and companies are JSON arrays of strings.
    """

    __tablename__ = "meetings"

    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    attendees_json: Mapped[Optional[str]] = mapped_column("attendees", Text, nullable=True)
    attendee_emails_json: Mapped[Optional[str]] = mapped_column("attendee_emails", Text, nullable=True)
    companies_json: Mapped[Optional[str]] = mapped_column("companies", Text, nullable=True)

    @property
    def attendees(self) -> List[str]:
        return parse_string_list(self.attendees_json)

    @attendees.setter
    def attendees(self, values: Optional[List[str]]) -> None:
        self.attendees_json = dump_string_list(values)

    @property
    def attendee_emails(self) -> List[str]:
        return parse_string_list(self.attendee_emails_json)

    @attendee_emails.setter
    def attendee_emails(self, values: Optional[List[str]]) -> None:
        self.attendee_emails_json = dump_string_list(values)

    @property
    def companies(self) -> List[str]:
        return parse_string_list(self.companies_json)

    @companies.setter
    def companies(self, values: Optional[List[str]]) -> None:
        self.companies_json = dump_string_list(values)


class EmailMessage(TimestampedModel):
    """Email message header fields used for linking."""

    __tablename__ = "email_messages"

    subject: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    from_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    from_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    received_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class EmailMessageParticipant(Base):
    """One address on a message header, resolved to a contact when possible."""

    __tablename__ = "email_message_participants"

    message_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("email_messages.id", ondelete="CASCADE"),
        primary_key=True,
    )

    role: Mapped[str] = mapped_column(String(10), primary_key=True)  # from, to, cc, bcc, reply_to

    email: Mapped[str] = mapped_column(String(255), primary_key=True)

    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    contact_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    domain: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
