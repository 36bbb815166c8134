"""
Enrichment router - record enriched company names.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.core.dependencies import get_db
from relgraph.schemas.enrichment import EnrichmentRecord, EnrichmentResult
from relgraph.services.enrichment_cache_service import EnrichmentCacheService

router = APIRouter(prefix="/enrichment", tags=["enrichment"])


@router.post("", response_model=EnrichmentResult)
async def record_enrichment(data: EnrichmentRecord, db: AsyncSession = Depends(get_db)):
    """Cache a (domain, display name) pair and alias it onto the matching company."""
    service = EnrichmentCacheService(db)
    return await service.record_enrichment(data.domain, data.display_name)
