"""
Pydantic schemas for contacts and attendee sync.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from relgraph.schemas.base import RecordRead

ContactType = Literal["investor", "founder", "operator"]


class ContactCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    title: Optional[str] = None
    contact_type: Optional[ContactType] = None
    linkedin_url: Optional[str] = None
    primary_company_id: Optional[str] = None


class ContactUpdate(BaseModel):
    full_name: Optional[str] = None
    title: Optional[str] = None
    contact_type: Optional[ContactType] = None
    linkedin_url: Optional[str] = None


class ContactRead(RecordRead):
    full_name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    normalized_name: str
    email: Optional[str] = None
    primary_company_id: Optional[str] = None
    title: Optional[str] = None
    contact_type: Optional[str] = None
    linkedin_url: Optional[str] = None


class ContactEmailRead(BaseModel):
    contact_id: str
    email: str
    is_primary: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ContactEmailAdd(BaseModel):
    email: str
    is_primary: bool = False


class PrimaryCompanyRequest(BaseModel):
    """Replaces a contact's company affiliation; None clears it."""

    company_id: Optional[str] = None


class AttendeeSyncRequest(BaseModel):
    attendees: List[str] = Field(default_factory=list)
    attendee_emails: List[str] = Field(default_factory=list)


class ContactSyncResult(BaseModel):
    candidates: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    invalid: int = 0


class MeetingContactSyncResult(ContactSyncResult):
    scanned_meetings: int = 0


class AutoLinkResult(BaseModel):
    linked: int = 0
