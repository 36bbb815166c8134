"""
Company models.

Represents organisations seen in meetings and email: the canonical
company record, its alias index and the enrichment name cache.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    Text,
    Float,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from relgraph.db.base import Base
from relgraph.models.base_model import TimestampedModel, utc_now

ENTITY_TYPES = (
    "prospect",
    "portfolio",
    "vc_fund",
    "customer",
    "partner",
    "vendor",
    "other",
    "unknown",
)

CLASSIFICATION_SOURCES = ("manual", "auto")

ALIAS_TYPES = ("name", "domain")


class Company(TimestampedModel):
    """
    Company table - one canonical record per organisation.

    normalized_name is the dedupe key (lower-cased, punctuation collapsed).
    primary_domain is stored without scheme and without a leading "www.".
    """

    __tablename__ = "org_companies"

    canonical_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    normalized_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    primary_domain: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )

    website_url: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )

    # Location
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    stage: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="active",
    )

    # Classification
    entity_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="unknown",
        index=True,
    )  # prospect, portfolio, vc_fund, customer, partner, vendor, other, unknown

    include_in_companies_view: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
    )

    classification_source: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="auto",
    )  # manual, auto

    classification_confidence: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
    )  # 0.0 to 1.0

    # Pipeline fields
    priority: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    post_money_valuation: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    raise_size: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    round: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    pipeline_stage: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "classification_confidence IS NULL OR (classification_confidence >= 0 AND classification_confidence <= 1)",
            name="ck_org_companies_classification_confidence",
        ),
    )


class CompanyAlias(TimestampedModel):
    """
    Company alias - historical or alternate names and domains.

    Append-only. The same value may be claimed by several companies; lookups
    take the oldest alias, so registration order decides.
    """

    __tablename__ = "org_company_aliases"

    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("org_companies.id"),
        nullable=False,
        index=True,
    )

    alias_value: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    alias_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )  # 'name', 'domain'

    __table_args__ = (
        UniqueConstraint("company_id", "alias_type", "alias_value", name="uq_org_company_aliases_value"),
        Index("ix_org_company_aliases_type_value", "alias_type", "alias_value"),
    )


class CompanyDomainCache(Base):
    """Display names returned by the company enrichment service, by domain."""

    __tablename__ = "companies"

    domain: Mapped[str] = mapped_column(String(255), primary_key=True)

    display_name: Mapped[str] = mapped_column(String(255), nullable=False)

    enriched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
