"""
Pydantic schemas for email participant ingestion.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ParticipantRole = Literal["from", "to", "cc", "bcc", "reply_to"]


class EmailParticipantInput(BaseModel):
    role: ParticipantRole
    email: str
    display_name: Optional[str] = None


class EmailIngestRequest(BaseModel):
    message_id: str
    participants: List[EmailParticipantInput] = Field(default_factory=list)
    company_id: Optional[str] = None
    confidence: float = Field(default=1.0, ge=0, le=1)
    reason: Optional[str] = None
    account_email: Optional[str] = None
    subject: Optional[str] = None
    sent_at: Optional[datetime] = None
    received_at: Optional[datetime] = None


class EmailIngestResult(BaseModel):
    message_id: str
    participants: int = 0
    skipped: int = 0
    contacts_created: int = 0
    contacts_updated: int = 0
    contact_links: int = 0
    company_ids: List[str] = Field(default_factory=list)
