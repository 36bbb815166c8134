"""
Pydantic schemas for company classification.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ClassificationSignals(BaseModel):
    has_memo: bool = False
    has_deal: bool = False
    has_notes: bool = False
    stage_present: bool = False
    meeting_count: int = 0


class Classification(BaseModel):
    entity_type: str
    include_in_view: bool
    confidence: float


class ClassificationRunRequest(BaseModel):
    company_ids: Optional[List[str]] = None


class ClassificationRunResult(BaseModel):
    scanned: int = 0
    updated: int = 0
    skipped_manual: int = 0
    updated_ids: List[str] = Field(default_factory=list)
