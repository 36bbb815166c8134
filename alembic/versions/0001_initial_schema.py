"""Initial relationship graph schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True, nullable=False)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def _confidence_check(table: str) -> sa.CheckConstraint:
    return sa.CheckConstraint("confidence >= 0 AND confidence <= 1", name=f"ck_{table}_confidence")


def _company_history_table(name: str, *columns: sa.Column, nullable_company: bool = False) -> None:
    op.create_table(
        name,
        _id(),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("org_companies.id"), nullable=nullable_company),
        *columns,
        *_timestamps(),
    )
    op.create_index(f"ix_{name}_company_id", name, ["company_id"])


def upgrade() -> None:
    op.create_table(
        "org_companies",
        _id(),
        sa.Column("canonical_name", sa.String(255), nullable=False),
        sa.Column("normalized_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("primary_domain", sa.String(255), nullable=True),
        sa.Column("website_url", sa.String(500), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("stage", sa.String(50), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="active"),
        sa.Column("entity_type", sa.String(20), nullable=False, server_default="unknown"),
        sa.Column("include_in_companies_view", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("classification_source", sa.String(10), nullable=False, server_default="auto"),
        sa.Column("classification_confidence", sa.Float(), nullable=True),
        sa.Column("priority", sa.String(20), nullable=True),
        sa.Column("post_money_valuation", sa.Float(), nullable=True),
        sa.Column("raise_size", sa.Float(), nullable=True),
        sa.Column("round", sa.String(20), nullable=True),
        sa.Column("pipeline_stage", sa.String(20), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("normalized_name"),
        sa.CheckConstraint(
            "classification_confidence IS NULL OR (classification_confidence >= 0 AND classification_confidence <= 1)",
            name="ck_org_companies_classification_confidence",
        ),
    )
    op.create_index("ix_org_companies_primary_domain", "org_companies", ["primary_domain"])
    op.create_index("ix_org_companies_entity_type", "org_companies", ["entity_type"])
    op.create_index("ix_org_companies_include_in_companies_view", "org_companies", ["include_in_companies_view"])

    op.create_table(
        "org_company_aliases",
        _id(),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("org_companies.id"), nullable=False),
        sa.Column("alias_value", sa.String(500), nullable=False),
        sa.Column("alias_type", sa.String(20), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("company_id", "alias_type", "alias_value", name="uq_org_company_aliases_value"),
    )
    op.create_index("ix_org_company_aliases_company_id", "org_company_aliases", ["company_id"])
    op.create_index("ix_org_company_aliases_type_value", "org_company_aliases", ["alias_type", "alias_value"])

    op.create_table(
        "companies",
        sa.Column("domain", sa.String(255), primary_key=True, nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("enriched_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "contacts",
        _id(),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("normalized_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("primary_company_id", sa.String(36), sa.ForeignKey("org_companies.id"), nullable=True),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("contact_type", sa.String(20), nullable=True),
        sa.Column("linkedin_url", sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_contacts_normalized_name", "contacts", ["normalized_name"])
    op.create_index("ix_contacts_email", "contacts", ["email"])
    op.create_index("ix_contacts_primary_company_id", "contacts", ["primary_company_id"])

    op.create_table(
        "contact_emails",
        sa.Column(
            "contact_id",
            sa.String(36),
            sa.ForeignKey("contacts.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column("email", sa.String(255), primary_key=True, nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.UniqueConstraint("email", name="uq_contact_emails_email"),
    )
    op.create_index("ix_contact_emails_contact", "contact_emails", ["contact_id"])
    op.create_index(
        "uq_contact_emails_single_primary",
        "contact_emails",
        ["contact_id"],
        unique=True,
        sqlite_where=sa.text("is_primary = 1"),
        postgresql_where=sa.text("is_primary"),
    )

    op.create_table(
        "org_company_contacts",
        sa.Column("company_id", sa.String(36), sa.ForeignKey("org_companies.id"), primary_key=True, nullable=False),
        sa.Column(
            "contact_id",
            sa.String(36),
            sa.ForeignKey("contacts.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )

    op.create_table(
        "meetings",
        _id(),
        sa.Column("title", sa.String(500), nullable=False, server_default=""),
        sa.Column("date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("attendees", sa.Text(), nullable=True),
        sa.Column("attendee_emails", sa.Text(), nullable=True),
        sa.Column("companies", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "email_messages",
        _id(),
        sa.Column("subject", sa.Text(), nullable=True),
        sa.Column("from_email", sa.String(255), nullable=True),
        sa.Column("from_name", sa.String(255), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "email_message_participants",
        sa.Column(
            "message_id",
            sa.String(36),
            sa.ForeignKey("email_messages.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column("role", sa.String(10), primary_key=True, nullable=False),
        sa.Column("email", sa.String(255), primary_key=True, nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("contact_id", sa.String(36), sa.ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("domain", sa.String(255), nullable=True),
        _created_at(),
    )
    op.create_index("ix_email_message_participants_contact_id", "email_message_participants", ["contact_id"])

    op.create_table(
        "meeting_company_links",
        sa.Column(
            "meeting_id",
            sa.String(36),
            sa.ForeignKey("meetings.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("org_companies.id"), primary_key=True, nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False, server_default="1"),
        sa.Column("linked_by", sa.String(20), nullable=False, server_default="manual"),
        _created_at(),
        _confidence_check("meeting_company_links"),
    )
    op.create_index("ix_meeting_company_links_company_id", "meeting_company_links", ["company_id"])

    op.create_table(
        "email_company_links",
        sa.Column(
            "message_id",
            sa.String(36),
            sa.ForeignKey("email_messages.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("org_companies.id"), primary_key=True, nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False, server_default="1"),
        sa.Column("linked_by", sa.String(20), nullable=False, server_default="auto"),
        sa.Column("reason", sa.Text(), nullable=True),
        _created_at(),
        _confidence_check("email_company_links"),
    )
    op.create_index("ix_email_company_links_company_id", "email_company_links", ["company_id"])

    op.create_table(
        "email_contact_links",
        sa.Column(
            "message_id",
            sa.String(36),
            sa.ForeignKey("email_messages.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column(
            "contact_id",
            sa.String(36),
            sa.ForeignKey("contacts.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column("confidence", sa.Float(), nullable=False, server_default="1"),
        sa.Column("linked_by", sa.String(20), nullable=False, server_default="auto"),
        _created_at(),
        _confidence_check("email_contact_links"),
    )
    op.create_index("ix_email_contact_links_contact_id", "email_contact_links", ["contact_id"])

    _company_history_table("deals", sa.Column("stage", sa.String(50), nullable=True), sa.Column("amount", sa.Float(), nullable=True))
    _company_history_table("company_notes", sa.Column("content", sa.Text(), nullable=False, server_default=""))
    _company_history_table("company_conversations", sa.Column("title", sa.String(255), nullable=True))
    _company_history_table("investment_memos", sa.Column("title", sa.String(255), nullable=True))
    _company_history_table("theses", sa.Column("statement", sa.Text(), nullable=False, server_default=""))
    _company_history_table(
        "artifacts",
        sa.Column("meeting_id", sa.String(36), sa.ForeignKey("meetings.id"), nullable=True),
        sa.Column("title", sa.String(255), nullable=True),
        nullable_company=True,
    )
    op.create_index("ix_artifacts_meeting_id", "artifacts", ["meeting_id"])

    op.create_table(
        "industries",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "org_company_industries",
        sa.Column("company_id", sa.String(36), sa.ForeignKey("org_companies.id"), primary_key=True, nullable=False),
        sa.Column("industry_id", sa.String(36), sa.ForeignKey("industries.id"), primary_key=True, nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False, server_default="1"),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.CheckConstraint("confidence >= 0 AND confidence <= 1", name="ck_org_company_industries_confidence"),
    )

    op.create_table(
        "themes",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "org_company_themes",
        sa.Column("company_id", sa.String(36), sa.ForeignKey("org_companies.id"), primary_key=True, nullable=False),
        sa.Column("theme_id", sa.String(36), sa.ForeignKey("themes.id"), primary_key=True, nullable=False),
        sa.Column("relevance_score", sa.Float(), nullable=False, server_default="1"),
        _created_at(),
        sa.CheckConstraint(
            "relevance_score >= 0 AND relevance_score <= 1",
            name="ck_org_company_themes_relevance_score",
        ),
    )

    op.create_table(
        "audit_log",
        _id(),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(100), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("changes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_audit_log_entity_type", "audit_log", ["entity_type"])
    op.create_index("ix_audit_log_entity_id", "audit_log", ["entity_id"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("org_company_themes")
    op.drop_table("themes")
    op.drop_table("org_company_industries")
    op.drop_table("industries")
    for name in ("artifacts", "theses", "investment_memos", "company_conversations", "company_notes", "deals"):
        op.drop_table(name)
    op.drop_table("email_contact_links")
    op.drop_table("email_company_links")
    op.drop_table("meeting_company_links")
    op.drop_table("email_message_participants")
    op.drop_table("email_messages")
    op.drop_table("meetings")
    op.drop_table("org_company_contacts")
    op.drop_table("contact_emails")
    op.drop_table("contacts")
    op.drop_table("companies")
    op.drop_table("org_company_aliases")
    op.drop_table("org_companies")
