"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
"""

from relgraph.models.company import Company, CompanyAlias, CompanyDomainCache
from relgraph.models.contact import Contact, ContactEmail, OrgCompanyContact
from relgraph.models.meeting import Meeting, EmailMessage, EmailMessageParticipant
from relgraph.models.links import MeetingCompanyLink, EmailCompanyLink, EmailContactLink
from relgraph.models.company_history import (
    Deal,
    CompanyNote,
    CompanyConversation,
    InvestmentMemo,
    Industry,
    CompanyIndustry,
    Theme,
    CompanyTheme,
    Thesis,
    Artifact,
)
from relgraph.models.audit import AuditLog

# Export all models
__all__ = [
    "Company",
    "CompanyAlias",
    "CompanyDomainCache",
    "Contact",
    "ContactEmail",
    "OrgCompanyContact",
    "Meeting",
    "EmailMessage",
    "EmailMessageParticipant",
    "MeetingCompanyLink",
    "EmailCompanyLink",
    "EmailContactLink",
    "Deal",
    "CompanyNote",
    "CompanyConversation",
    "InvestmentMemo",
    "Industry",
    "CompanyIndustry",
    "Theme",
    "CompanyTheme",
    "Thesis",
    "Artifact",
    "AuditLog",
]
