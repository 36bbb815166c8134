"""
Company-linked history.

Deals, notes, conversations, memos, industry/theme tags, theses and
artifacts all hang off a company id. They carry only the columns the merge
engine needs to move them between companies; their own features live
elsewhere in the application.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, Float, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from relgraph.db.base import Base
from relgraph.models.base_model import TimestampedModel, utc_now


class Deal(TimestampedModel):
    __tablename__ = "deals"

    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("org_companies.id"), nullable=False, index=True)
    stage: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)


class CompanyNote(TimestampedModel):
    __tablename__ = "company_notes"

    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("org_companies.id"), nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")


class CompanyConversation(TimestampedModel):
    """Chat thread scoped to a company."""

    __tablename__ = "company_conversations"

    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("org_companies.id"), nullable=False, index=True)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class InvestmentMemo(TimestampedModel):
    __tablename__ = "investment_memos"

    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("org_companies.id"), nullable=False, index=True)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class Industry(TimestampedModel):
    __tablename__ = "industries"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class CompanyIndustry(Base):
    """Industry tag on a company; unique per pair."""

    __tablename__ = "org_company_industries"

    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("org_companies.id"), primary_key=True)
    industry_id: Mapped[str] = mapped_column(String(36), ForeignKey("industries.id"), primary_key=True)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        CheckConstraint("confidence >= 0 AND confidence <= 1", name="ck_org_company_industries_confidence"),
    )


class Theme(TimestampedModel):
    __tablename__ = "themes"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class CompanyTheme(Base):
    """Theme tag on a company; unique per pair."""

    __tablename__ = "org_company_themes"

    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("org_companies.id"), primary_key=True)
    theme_id: Mapped[str] = mapped_column(String(36), ForeignKey("themes.id"), primary_key=True)
    relevance_score: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        CheckConstraint("relevance_score >= 0 AND relevance_score <= 1", name="ck_org_company_themes_relevance_score"),
    )


class Thesis(TimestampedModel):
    __tablename__ = "theses"

    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("org_companies.id"), nullable=False, index=True)
    statement: Mapped[str] = mapped_column(Text, nullable=False, default="")


class Artifact(TimestampedModel):
    """File or generated document attached to a company (and maybe a meeting)."""

    __tablename__ = "artifacts"

    company_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("org_companies.id"), nullable=True, index=True)
    meeting_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("meetings.id"), nullable=True, index=True)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
