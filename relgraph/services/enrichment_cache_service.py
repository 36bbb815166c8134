"""
Enrichment name cache.

An external enricher turns a domain into a display name ("acme.io" ->
"Acme Robotics"). Results are cached per domain and, when the domain
already belongs to a company, recorded as a name alias of that company.
"""

import logging
from typing import Dict, Iterable, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.errors import ValidationError
from relgraph.models.company import CompanyDomainCache
from relgraph.models.base_model import utc_now
from relgraph.repositories.alias_repository import AliasRepository
from relgraph.repositories.merge_policies import apply_unconditional, upsert_by_key
from relgraph.schemas.enrichment import EnrichmentResult
from relgraph.services.company_resolver_service import CompanyResolverService
from relgraph.utils.domains import humanize_domain
from relgraph.utils.normalization import normalize_domain

logger = logging.getLogger(__name__)


class CompanyEnricher(Protocol):
    """Anything that can name the company behind a domain."""

    async def enrich(self, domain: str) -> Optional[str]:
        ...


class EnrichmentCacheService:
    """Cache of enriched display names, keyed by normalized domain."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.aliases = AliasRepository(db)
        self.resolver = CompanyResolverService(db)

    async def record_enrichment(self, domain: str, display_name: str) -> EnrichmentResult:
        normalized = normalize_domain(domain)
        name = (display_name or "").strip()
        if not normalized or not name:
            raise ValidationError("domain and display_name are required", {"domain": domain})

        values = {"display_name": name, "enriched_at": utc_now()}
        await upsert_by_key(
            self.db,
            CompanyDomainCache,
            {"domain": normalized},
            values,
            lambda row: apply_unconditional(row, values),
        )

        result = EnrichmentResult(domain=normalized, display_name=name)
        company_id = await self.resolver.find_company_id_by_domain(normalized)
        if company_id:
            result.company_id = company_id
            result.alias_added = await self.aliases.add_alias(company_id, name, "name") is not None
        return result

    async def cached_display_name(self, domain: Optional[str]) -> Optional[str]:
        normalized = normalize_domain(domain)
        if not normalized:
            return None
        row = await self.db.get(CompanyDomainCache, normalized)
        return row.display_name if row else None

    async def cached_display_names(self, domains: Iterable[str]) -> Dict[str, str]:
        keys = sorted({d for d in (normalize_domain(x) for x in domains) if d})
        if not keys:
            return {}
        result = await self.db.execute(select(CompanyDomainCache).where(CompanyDomainCache.domain.in_(keys)))
        return {row.domain: row.display_name for row in result.scalars().all()}

    async def suggest_company_name(self, domain: Optional[str]) -> str:
        """Cached display name, or a title-cased guess from the domain."""
        return await self.cached_display_name(domain) or humanize_domain(domain)

    async def enrich_domains(self, domains: Iterable[str], enricher: CompanyEnricher) -> List[EnrichmentResult]:
        """
        Name each domain, using the cache first.

        Enricher failures are logged and fall back to the domain heuristic.
        """
        results: List[EnrichmentResult] = []
        seen: List[str] = []
        for raw in domains:
            domain = normalize_domain(raw)
            if not domain or domain in seen:
                continue
            seen.append(domain)

            cached = await self.cached_display_name(domain)
            if cached:
                results.append(EnrichmentResult(domain=domain, display_name=cached))
                continue

            name: Optional[str] = None
            try:
                name = await enricher.enrich(domain)
            except Exception as exc:
                logger.warning("Enrichment failed for %s: %s", domain, exc)

            name = (name or "").strip() or humanize_domain(domain)
            results.append(await self.record_enrichment(domain, name))
        return results
