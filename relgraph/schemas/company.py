"""
Pydantic schemas for companies.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from relgraph.models.company import ENTITY_TYPES
from relgraph.schemas.base import RecordRead

ClassificationSource = Literal["manual", "auto"]


def normalize_entity_type(value: Optional[str]) -> str:
    """Unrecognized entity types collapse to "unknown"."""
    normalized = (value or "").strip().lower()
    return normalized if normalized in ENTITY_TYPES else "unknown"


class _EntityTypeMixin(BaseModel):
    @field_validator("entity_type", mode="before", check_fields=False)
    @classmethod
    def _normalize_entity_type(cls, value):
        if value is None:
            return None
        return normalize_entity_type(value)


class CompanyFields(BaseModel):
    description: Optional[str] = None
    primary_domain: Optional[str] = None
    website_url: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    stage: Optional[str] = None
    priority: Optional[str] = None
    post_money_valuation: Optional[float] = None
    raise_size: Optional[float] = None
    round: Optional[str] = None
    pipeline_stage: Optional[str] = None


class CompanyCreate(_EntityTypeMixin, CompanyFields):
    """
    Create-or-merge request keyed on the normalized name.

    Classification fields left unset keep their stored values on an existing
    company; on a new company they default to a manual prospect.
    """

    canonical_name: str = Field(..., min_length=1)
    status: Optional[str] = None
    entity_type: Optional[str] = None
    include_in_companies_view: Optional[bool] = None
    classification_source: Optional[ClassificationSource] = None
    classification_confidence: Optional[float] = Field(default=None, ge=0, le=1)


class CompanyUpdate(_EntityTypeMixin, CompanyFields):
    """Partial update; only fields present in the request are applied."""

    canonical_name: Optional[str] = None
    status: Optional[str] = None
    entity_type: Optional[str] = None
    include_in_companies_view: Optional[bool] = None
    classification_source: Optional[ClassificationSource] = None
    classification_confidence: Optional[float] = Field(default=None, ge=0, le=1)


class CompanyClassificationUpsert(_EntityTypeMixin):
    canonical_name: str = Field(..., min_length=1)
    primary_domain: Optional[str] = None
    entity_type: str
    include_in_companies_view: Optional[bool] = None
    classification_source: ClassificationSource = "manual"
    classification_confidence: Optional[float] = Field(default=1.0, ge=0, le=1)


class CompanyRead(RecordRead, CompanyFields):
    canonical_name: str
    normalized_name: str
    status: str
    entity_type: str
    include_in_companies_view: bool
    classification_source: str
    classification_confidence: Optional[float] = None


class CompanyDetail(CompanyRead):
    industries: List[str] = Field(default_factory=list)
    themes: List[str] = Field(default_factory=list)
    aliases: List[str] = Field(default_factory=list)


class CompanyListFilter(BaseModel):
    query: Optional[str] = None
    view: Literal["companies", "all"] = "companies"
    entity_types: List[str] = Field(default_factory=list)
    limit: int = Field(default=200, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)


class CompanyResolveResult(BaseModel):
    company_id: Optional[str] = None
