"""
Pydantic schemas for link maintenance.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class MeetingCompanySyncRequest(BaseModel):
    companies: List[str] = Field(default_factory=list)
    attendee_emails: List[str] = Field(default_factory=list)
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    linked_by: str = "auto"


class MeetingCompanySyncResult(BaseModel):
    meeting_id: str
    company_ids: List[str] = Field(default_factory=list)
    companies_created: int = 0
    links_removed: int = 0
