"""
Companies router - resolution, CRUD, classification and merge endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.core.dependencies import get_db
from relgraph.schemas.classification import ClassificationRunRequest, ClassificationRunResult
from relgraph.schemas.company import (
    CompanyClassificationUpsert,
    CompanyCreate,
    CompanyDetail,
    CompanyListFilter,
    CompanyRead,
    CompanyResolveResult,
    CompanyUpdate,
)
from relgraph.schemas.merge import MergeRequest, MergeResult
from relgraph.services.classification_service import ClassificationService
from relgraph.services.company_merge_service import CompanyMergeService
from relgraph.services.company_resolver_service import CompanyResolverService

router = APIRouter(prefix="/companies", tags=["companies"])


@router.get("", response_model=List[CompanyRead])
async def list_companies(
    db: AsyncSession = Depends(get_db),
    query: Optional[str] = None,
    view: str = Query("companies", pattern="^(companies|all)$"),
    entity_types: Optional[List[str]] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """
    List companies.

    The default view only shows companies flagged for the companies view.
    """
    service = CompanyResolverService(db)
    return await service.list_companies(
        CompanyListFilter(query=query, view=view, entity_types=entity_types or [], limit=limit, offset=offset)
    )


@router.get("/resolve", response_model=CompanyResolveResult)
async def resolve_company(
    name: Optional[str] = None,
    domain: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """Resolve a name and/or domain to a company id (null when unknown)."""
    service = CompanyResolverService(db)
    return CompanyResolveResult(company_id=await service.resolve_company_id(name=name, domain=domain))


@router.post("", response_model=CompanyDetail, status_code=status.HTTP_201_CREATED)
async def create_company(data: CompanyCreate, db: AsyncSession = Depends(get_db)):
    """Create a company, or merge into the one with the same normalized name."""
    service = CompanyResolverService(db)
    return await service.create_company(data)


@router.put("/classification", response_model=CompanyDetail)
async def upsert_company_classification(data: CompanyClassificationUpsert, db: AsyncSession = Depends(get_db)):
    service = CompanyResolverService(db)
    return await service.upsert_company_classification(data)


@router.post("/merge", response_model=MergeResult)
async def merge_companies(data: MergeRequest, db: AsyncSession = Depends(get_db)):
    """Merge source into target; the source company is deleted."""
    service = CompanyMergeService(db)
    return await service.merge_companies(data.target_id, data.source_id)


@router.post("/classify", response_model=ClassificationRunResult)
async def classify_companies(
    data: Optional[ClassificationRunRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    service = ClassificationService(db)
    return await service.classify_companies(data.company_ids if data else None)


@router.get("/{company_id}", response_model=CompanyDetail)
async def get_company(company_id: str, db: AsyncSession = Depends(get_db)):
    service = CompanyResolverService(db)
    return await service.get_company(company_id)


@router.patch("/{company_id}", response_model=CompanyDetail)
async def update_company(company_id: str, changes: CompanyUpdate, db: AsyncSession = Depends(get_db)):
    """Partial update; renames keep the old name as an alias."""
    service = CompanyResolverService(db)
    return await service.update_company(company_id, changes)
