"""
Repository for the company alias index.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.models.company import Company, CompanyAlias
from relgraph.utils.domains import domain_candidates
from relgraph.utils.normalization import normalize_domain

logger = logging.getLogger(__name__)


class AliasRepository:
    """Append-only name/domain aliases for companies."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_alias(self, company_id: str, value: Optional[str], alias_type: str) -> Optional[CompanyAlias]:
        """
        Add an alias; empty values are skipped and duplicates ignored.

        Returns the new row, or None when nothing was written.
        """
        if alias_type == "domain":
            cleaned = normalize_domain(value)
        elif alias_type == "name":
            cleaned = (value or "").strip()
        else:
            raise ValueError(f"unknown alias type: {alias_type}")
        if not cleaned:
            return None

        result = await self.db.execute(
            select(CompanyAlias.id).where(
                and_(
                    CompanyAlias.company_id == company_id,
                    CompanyAlias.alias_type == alias_type,
                    CompanyAlias.alias_value == cleaned,
                )
            )
        )
        if result.scalar_one_or_none() is not None:
            return None

        alias = CompanyAlias(company_id=company_id, alias_value=cleaned, alias_type=alias_type)
        self.db.add(alias)
        await self.db.flush()
        logger.debug("Alias %s=%r added for company %s", alias_type, cleaned, company_id)
        return alias

    async def find_company_id_by_name_alias(self, name: Optional[str]) -> Optional[str]:
        key = (name or "").strip().lower()
        if not key:
            return None
        result = await self.db.execute(
            select(CompanyAlias.company_id)
            .where(
                and_(
                    CompanyAlias.alias_type == "name",
                    func.lower(func.trim(CompanyAlias.alias_value)) == key,
                )
            )
            .order_by(CompanyAlias.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_company_id_by_domain_alias(self, candidates: List[str]) -> Optional[str]:
        """Oldest domain alias matching any candidate."""
        values = [c for c in candidates if c]
        if not values:
            return None
        result = await self.db.execute(
            select(CompanyAlias.company_id)
            .where(
                and_(
                    CompanyAlias.alias_type == "domain",
                    CompanyAlias.alias_value.in_(values),
                )
            )
            .order_by(CompanyAlias.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_aliases(self, company_id: str, alias_type: Optional[str] = None) -> List[CompanyAlias]:
        query = select(CompanyAlias).where(CompanyAlias.company_id == company_id)
        if alias_type:
            query = query.where(CompanyAlias.alias_type == alias_type)
        result = await self.db.execute(query.order_by(CompanyAlias.created_at.asc(), CompanyAlias.alias_value.asc()))
        return list(result.scalars().all())

    async def register_domain_aliases(self, company_id: str, domain: Optional[str]) -> int:
        added = 0
        for candidate in domain_candidates(domain):
            if await self.add_alias(company_id, candidate, "domain"):
                added += 1
        return added

    async def register_company_aliases(self, company: Company) -> int:
        """Canonical name plus every candidate of the primary and website domains."""
        added = 0
        if await self.add_alias(company.id, company.canonical_name, "name"):
            added += 1
        added += await self.register_domain_aliases(company.id, company.primary_domain)
        added += await self.register_domain_aliases(company.id, company.website_url)
        return added
