"""
Pydantic schemas for company merges.
"""

from typing import Dict

from pydantic import BaseModel, Field


class MergeRequest(BaseModel):
    target_id: str
    source_id: str


class MergeResult(BaseModel):
    target_id: str
    source_id: str
    relinked: Dict[str, int] = Field(default_factory=dict)
