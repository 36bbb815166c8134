"""
Pydantic schemas for the enrichment name cache.
"""

from typing import Optional

from pydantic import BaseModel, Field


class EnrichmentRecord(BaseModel):
    domain: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)


class EnrichmentResult(BaseModel):
    domain: str
    display_name: str
    company_id: Optional[str] = None
    alias_added: bool = False
